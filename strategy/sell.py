"""Replay of the "sell assets to fund withdrawals" strategy.

The borrow strategy's yearly percentile bands double as the price path: each
band (p10..p90, plus the midpoints between neighbouring bands) is replayed as
one scenario so both strategies see identical market returns.  Per year, in
order:

1. dividend income is taxed and the tax is paid out of the portfolio;
2. the (growing) withdrawal is sold, grossed up by the capital-gains tax on
   the gain portion of the sale;
3. the band's year-over-year growth is applied to what is left.

The cost basis starts at ``initial_value * cost_basis_ratio`` and shrinks in
proportion to every sale, so later sales carry a larger gain share.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from analytics.percentiles import percentile, percentile_band
from portfolio.simulation import YearlyPercentiles

logger = logging.getLogger(__name__)

FALLBACK_GROWTH_RATE = 0.07
TAX_ACCRUAL_EXPONENT = 1.2

# (lower band, upper band, weight toward upper); the midpoints smooth the distribution
REPLAY_PATHS: Tuple[Tuple[str, str, float], ...] = (
    ("p10", "p10", 0.0),
    ("p25", "p25", 0.0),
    ("p50", "p50", 0.0),
    ("p75", "p75", 0.0),
    ("p90", "p90", 0.0),
    ("p10", "p25", 0.5),
    ("p25", "p50", 0.5),
    ("p50", "p75", 0.5),
    ("p75", "p90", 0.5),
)


@dataclass
class SellStrategyConfig:
    """Inputs for the sell-assets replay."""

    initial_value: float
    annual_withdrawal: float
    withdrawal_growth: float
    time_horizon: int
    capital_gains_rate: float = 0.238
    cost_basis_ratio: float = 0.4
    dividend_yield: float = 0.02
    dividend_tax_rate: float | None = None  # qualified dividends default to the gains rate

    def __post_init__(self) -> None:
        if self.initial_value <= 0:
            raise ValueError("Initial value must be positive")
        if self.time_horizon < 1:
            raise ValueError("Time horizon must be at least one year")
        if self.annual_withdrawal < 0:
            raise ValueError("Annual withdrawal cannot be negative")
        if not 0 <= self.cost_basis_ratio <= 1:
            raise ValueError("Cost basis ratio must be within [0, 1]")
        if self.capital_gains_rate < 0:
            raise ValueError("Capital gains rate cannot be negative")

    @property
    def effective_dividend_tax_rate(self) -> float:
        return self.capital_gains_rate if self.dividend_tax_rate is None else self.dividend_tax_rate


@dataclass
class SellScenario:
    terminal_value: float
    capital_gains_taxes: float
    dividend_taxes: float
    depleted: bool
    yearly_values: List[float]

    @property
    def total_taxes(self) -> float:
        return self.capital_gains_taxes + self.dividend_taxes


@dataclass
class SellStrategyResult:
    """Terminal distribution and tax cost of the sell strategy."""

    terminal_net_worth: float
    success_rate: float
    lifetime_taxes: float
    lifetime_dividend_taxes: float
    total_lifetime_taxes: float
    primary_risk: str
    terminal_p10: float
    terminal_p90: float
    depletion_probability: float
    yearly_values: List[float] = field(default_factory=list)
    yearly_percentiles: List[YearlyPercentiles] = field(default_factory=list)
    cumulative_taxes: List[float] = field(default_factory=list)

    def as_dict(self) -> Dict[str, float | str]:
        return {
            "terminal_net_worth": self.terminal_net_worth,
            "success_rate": self.success_rate,
            "lifetime_taxes": self.lifetime_taxes,
            "lifetime_dividend_taxes": self.lifetime_dividend_taxes,
            "total_lifetime_taxes": self.total_lifetime_taxes,
            "primary_risk": self.primary_risk,
            "terminal_p10": self.terminal_p10,
            "terminal_p90": self.terminal_p90,
            "depletion_probability": self.depletion_probability,
        }


def _path_values(ordered: Sequence[YearlyPercentiles], lower: str, upper: str, weight: float) -> np.ndarray:
    lo = np.array([rec.value(lower) for rec in ordered], dtype=float)
    hi = np.array([rec.value(upper) for rec in ordered], dtype=float)
    return lo + (hi - lo) * weight


def _growth_rate(path: np.ndarray, year: int) -> float:
    if year >= path.size:
        return FALLBACK_GROWTH_RATE
    prev, curr = path[year - 1], path[year]
    return float((curr - prev) / prev) if prev > 0 else 0.0


def _replay(config: SellStrategyConfig, path: np.ndarray) -> SellScenario:
    value = config.initial_value
    basis = value * config.cost_basis_ratio
    withdrawal = config.annual_withdrawal
    dividend_rate = config.dividend_yield * config.effective_dividend_tax_rate
    gains_taxes = 0.0
    dividend_taxes = 0.0
    depleted = False
    yearly = [value]

    for year in range(1, config.time_horizon + 1):
        if value <= 0:
            depleted = True
            yearly.append(0.0)
            continue

        if dividend_rate > 0:
            dividend_tax = value * dividend_rate
            dividend_taxes += dividend_tax
            value -= dividend_tax
            if value <= 0:
                value, depleted = 0.0, True
                yearly.append(0.0)
                continue

        sale = withdrawal
        withdrawal *= 1 + config.withdrawal_growth
        if sale >= value:
            # liquidate everything that is left
            gains_taxes += max(0.0, value - basis) * config.capital_gains_rate
            value, depleted = 0.0, True
            yearly.append(0.0)
            continue

        basis_sold = basis * (sale / value)
        tax = max(0.0, sale - basis_sold) * config.capital_gains_rate
        gains_taxes += tax
        gross_sale = sale + tax
        if gross_sale >= value:
            value, depleted = 0.0, True
            yearly.append(0.0)
            continue

        basis *= 1 - gross_sale / value
        value -= gross_sale
        value *= 1 + _growth_rate(path, year)
        yearly.append(value)

    return SellScenario(
        terminal_value=value,
        capital_gains_taxes=gains_taxes,
        dividend_taxes=dividend_taxes,
        depleted=depleted,
        yearly_values=yearly,
    )


def _primary_risk(depletion_probability: float, terminal_values: np.ndarray, initial_value: float) -> str:
    if depletion_probability > 0:
        return f"Portfolio Depletion ({depletion_probability:.1f}%)"
    if np.any(terminal_values < initial_value):
        return "Sequence Risk"
    return "Low (0% depletion)"


def _yearly_bands(scenarios: Sequence[SellScenario], time_horizon: int) -> List[YearlyPercentiles]:
    bands = []
    for year in range(time_horizon + 1):
        band = percentile_band([s.yearly_values[year] for s in scenarios])
        bands.append(YearlyPercentiles(year=year, **band.as_dict()))
    return bands


def _cumulative_taxes(median_total: float, time_horizon: int) -> List[float]:
    # later years carry larger gains, so the accrual curve bends upward
    return [median_total * (year / time_horizon) ** TAX_ACCRUAL_EXPONENT for year in range(time_horizon + 1)]


def calculate_sell_strategy(
    config: SellStrategyConfig,
    yearly_percentiles: Sequence[YearlyPercentiles],
) -> SellStrategyResult:
    """Replay the sell strategy across the borrow run's percentile paths."""
    ordered = sorted(yearly_percentiles, key=lambda rec: rec.year)
    if len(ordered) < config.time_horizon + 1:
        logger.warning(
            "Percentile series covers %d years but the horizon is %d; missing years grow at %.0f%%",
            max(len(ordered) - 1, 0),
            config.time_horizon,
            FALLBACK_GROWTH_RATE * 100,
        )

    scenarios = [_replay(config, _path_values(ordered, lo, hi, w)) for lo, hi, w in REPLAY_PATHS]
    terminals = np.array([s.terminal_value for s in scenarios], dtype=float)
    depletion = float(np.mean([s.depleted for s in scenarios]) * 100)
    gains_taxes = percentile([s.capital_gains_taxes for s in scenarios], 50)
    dividend_taxes = percentile([s.dividend_taxes for s in scenarios], 50)
    median_total = percentile([s.total_taxes for s in scenarios], 50)

    return SellStrategyResult(
        terminal_net_worth=percentile(terminals, 50),
        success_rate=100.0 - depletion,
        lifetime_taxes=gains_taxes,
        lifetime_dividend_taxes=dividend_taxes,
        total_lifetime_taxes=gains_taxes + dividend_taxes,
        primary_risk=_primary_risk(depletion, terminals, config.initial_value),
        terminal_p10=percentile(terminals, 10),
        terminal_p90=percentile(terminals, 90),
        depletion_probability=depletion,
        yearly_values=[percentile([s.yearly_values[i] for s in scenarios], 50) for i in range(config.time_horizon + 1)],
        yearly_percentiles=_yearly_bands(scenarios, config.time_horizon),
        cumulative_taxes=_cumulative_taxes(median_total, config.time_horizon),
    )
