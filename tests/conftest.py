from __future__ import annotations

import numpy as np
import pytest

from portfolio.simulation import (
    CreditFacility,
    EstateAnalysis,
    LoanTrajectory,
    MarginCallStats,
    PercentileSeries,
    SimulationConfig,
    SimulationOutput,
    SimulationStatistics,
    YearlyPercentiles,
)

INITIAL_VALUE = 1_000_000.0
HORIZON = 10


def flat_band(year: int, value: float) -> YearlyPercentiles:
    return YearlyPercentiles(year=year, p10=value, p25=value, p50=value, p75=value, p90=value)


def scaled_series(center, spreads=(0.9, 0.95, 1.0, 1.05, 1.1)) -> PercentileSeries:
    center = np.asarray(center, dtype=float)
    return PercentileSeries(*[(center * s).tolist() for s in spreads])


@pytest.fixture
def yearly_percentiles():
    records = []
    for year in range(HORIZON + 1):
        median = INITIAL_VALUE * 1.07**year
        records.append(
            YearlyPercentiles(
                year=year,
                p10=median * (1 - 0.03 * year),
                p25=median * (1 - 0.015 * year),
                p50=median,
                p75=median * (1 + 0.02 * year),
                p90=median * (1 + 0.04 * year),
            )
        )
    return records


@pytest.fixture
def terminal_values():
    return np.linspace(500_000, 4_000_000, 1001)


@pytest.fixture
def base_config():
    return SimulationConfig(initial_value=INITIAL_VALUE, time_horizon=HORIZON)


@pytest.fixture
def leveraged_config():
    facility = CreditFacility(annual_withdrawal=50_000, withdrawal_growth=0.03, interest_rate=0.07)
    return SimulationConfig(initial_value=INITIAL_VALUE, time_horizon=HORIZON, credit_facility=facility)


@pytest.fixture
def base_output(yearly_percentiles, terminal_values):
    median = float(np.median(terminal_values))
    stats = SimulationStatistics(median=median, mean=float(np.mean(terminal_values)), stddev=1.0, success_rate=85.0)
    return SimulationOutput(terminal_values=terminal_values, yearly_percentiles=yearly_percentiles, statistics=stats)


@pytest.fixture
def loan_trajectory():
    years = list(range(HORIZON + 1))
    loan = [50_000 * year * 1.05 for year in years]
    return LoanTrajectory(
        years=years,
        loan_balance=scaled_series(loan),
        cumulative_interest=scaled_series([value * 0.1 for value in loan]),
        cumulative_withdrawals=scaled_series([50_000 * year for year in years], spreads=(1, 1, 1, 1, 1)),
    )


@pytest.fixture
def leveraged_output(yearly_percentiles, terminal_values, loan_trajectory):
    median = yearly_percentiles[-1].p50
    stats = SimulationStatistics(median=median, mean=median * 1.1, stddev=400_000, success_rate=88.0)
    loan_end = loan_trajectory.terminal_loan_balance()
    return SimulationOutput(
        terminal_values=terminal_values,
        yearly_percentiles=yearly_percentiles,
        statistics=stats,
        loan_trajectory=loan_trajectory,
        margin_call_stats=[
            MarginCallStats(year=year, probability=1.5, cumulative_probability=1.5 * year) for year in range(1, HORIZON + 1)
        ],
        estate_analysis=EstateAnalysis(
            bbd_net_estate=median - loan_end,
            sell_net_estate=(median - loan_end) * 0.8,
            bbd_advantage=(median - loan_end) * 0.2,
        ),
    )
