"""One entry point from a finished sampler run to the results view.

``build_derived_metrics`` turns a ``SimulationOutput`` and its
``SimulationConfig`` into a ``DerivedMetrics`` bundle: histogram, percentile
spectrum, extended statistics, performance tables, insights, and whichever
borrow-vs-sell sections the run supports.  Which optional sections appear:

* leverage sections (sell replay, strategy comparison, utilization, estate,
  risk considerations) need a loan trajectory, an estate analysis and a
  credit facility;
* margin-call figures need margin-call statistics;
* asset statistics need at least one requested symbol;
* run-to-run deltas need a previous run.

Nothing is cached between calls.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping

from advisor.recommendations import (
    DEFAULT_INSIGHT_CONFIG,
    Consideration,
    Insight,
    InsightConfig,
    generate_considerations,
    generate_insights,
)
from analytics.config import DEFAULT_CALCULATION_CONFIG, CalculationConfig
from analytics.deltas import ComparisonMetrics, RunSnapshot, TradeOffSummary, compute_comparison_metrics, summarize_trade_off
from analytics.distribution import Histogram, create_histogram_bins
from analytics.extended import ExtendedStatistics, compute_extended_statistics
from analytics.percentiles import PercentileSpectrum, percentile_spectrum
from analytics.performance import PerformanceTables, performance_tables
from analytics.utilization import UtilizationBands, UtilizationSummary, summarize_utilization, utilization_for_run
from portfolio.returns import HistoricalReturnSeries
from portfolio.simulation import CreditFacility, SimulationConfig, SimulationOutput
from portfolio.stats import AssetStatistics, asset_statistics_table
from strategy.comparison import StrategyComparison, compare_leveraged_run
from strategy.estate import EstatePosition, estate_position
from strategy.sell import SellStrategyConfig, SellStrategyResult, calculate_sell_strategy


@dataclass
class LeverageMetrics:
    """Sections that only exist for a run funded by a credit line."""

    sell_strategy: SellStrategyResult
    comparison: StrategyComparison
    utilization: UtilizationBands
    utilization_summary: UtilizationSummary | None
    estate: EstatePosition


@dataclass
class RunComparison:
    metrics: ComparisonMetrics
    trade_off: TradeOffSummary


@dataclass
class DerivedMetrics:
    """Every value the results view renders, derived from one run."""

    histogram: Histogram
    spectrum: PercentileSpectrum
    extended: ExtendedStatistics
    performance: PerformanceTables
    insights: List[Insight]
    considerations: List[Consideration]
    leverage: LeverageMetrics | None = None
    margin_call_probability: float | None = None
    asset_statistics: Dict[str, AssetStatistics] = field(default_factory=dict)
    comparison: RunComparison | None = None

    def headline_kpis(self) -> Dict[str, float]:
        """Scalar figures surfaced on the key-metrics banner."""
        kpis = {
            "median_terminal": self.spectrum.p50,
            "cagr": self.extended.cagr,
            "annualized_volatility": self.extended.annualized_volatility,
            "twrr": self.extended.twrr.twrr,
            "salary_equivalent": self.extended.salary_equivalent.salary,
        }
        if self.margin_call_probability is not None:
            kpis["margin_call_probability"] = self.margin_call_probability
        if self.leverage is not None:
            kpis["bbd_vs_sell"] = self.leverage.comparison.advantage
            kpis["sell_success_rate"] = self.leverage.sell_strategy.success_rate
            if self.leverage.utilization_summary is not None:
                kpis["median_utilization"] = self.leverage.utilization_summary.median_utilization
                kpis["peak_utilization_p90"] = self.leverage.utilization_summary.peak_utilization_p90
        return kpis


def sell_config_for(config: SimulationConfig, facility: CreditFacility, calc: CalculationConfig) -> SellStrategyConfig:
    """Sell replay funding the same withdrawals the credit line funds."""
    return SellStrategyConfig(
        initial_value=config.initial_value,
        annual_withdrawal=facility.annual_withdrawal,
        withdrawal_growth=facility.withdrawal_growth,
        time_horizon=config.time_horizon,
        capital_gains_rate=calc.capital_gains_tax_rate,
        cost_basis_ratio=facility.cost_basis_ratio,
        dividend_yield=facility.dividend_yield,
    )


def leverage_metrics(
    output: SimulationOutput,
    config: SimulationConfig,
    calc: CalculationConfig = DEFAULT_CALCULATION_CONFIG,
    insight_config: InsightConfig = DEFAULT_INSIGHT_CONFIG,
) -> LeverageMetrics | None:
    """Borrow-vs-sell sections, or ``None`` when the run has no credit line."""
    leverage = output.leverage
    facility = config.credit_facility
    if leverage is None or facility is None:
        return None

    sell = calculate_sell_strategy(sell_config_for(config, facility, calc), output.yearly_percentiles)
    comparison = compare_leveraged_run(output, sell)
    loan = leverage.loan_trajectory
    utilization = utilization_for_run(loan.loan_balance, loan.years, output.yearly_percentiles)
    estate = estate_position(
        terminal_portfolio_value=output.statistics.median,
        terminal_loan_balance=loan.terminal_loan_balance(),
        cost_basis=config.initial_value * facility.cost_basis_ratio,
        config=calc,
    )
    return LeverageMetrics(
        sell_strategy=sell,
        comparison=comparison,
        utilization=utilization,
        utilization_summary=summarize_utilization(utilization, insight_config.high_utilization_threshold),
        estate=estate,
    )


def compare_runs(
    previous: RunSnapshot,
    current: RunSnapshot,
    previous_name: str = "Previous",
    current_name: str = "Current",
) -> RunComparison:
    metrics = compute_comparison_metrics(previous, current)
    return RunComparison(metrics=metrics, trade_off=summarize_trade_off(metrics, previous_name, current_name))


def build_derived_metrics(
    output: SimulationOutput,
    config: SimulationConfig,
    history: Mapping[str, HistoricalReturnSeries] | None = None,
    symbols: Iterable[str] = (),
    calc: CalculationConfig = DEFAULT_CALCULATION_CONFIG,
    insight_config: InsightConfig = DEFAULT_INSIGHT_CONFIG,
    previous: RunSnapshot | None = None,
) -> DerivedMetrics:
    """Recompute every derived value for one run."""
    extended = compute_extended_statistics(
        initial_value=config.initial_value,
        years=config.time_horizon,
        terminal_values=output.terminal_values,
        yearly_percentiles=output.yearly_percentiles,
        median_terminal=output.statistics.median,
        annual_withdrawal=config.annual_withdrawal,
        effective_tax_rate=calc.effective_income_tax_rate,
    )
    leverage = leverage_metrics(output, config, calc, insight_config)
    margin_prob = output.final_margin_call_probability()
    considerations: List[Consideration] = []
    if leverage is not None:
        # leverage implies a credit facility
        considerations = generate_considerations(margin_prob or 0.0, config.credit_facility.interest_rate)

    return DerivedMetrics(
        histogram=create_histogram_bins(output.terminal_values),
        spectrum=percentile_spectrum(output.terminal_values),
        extended=extended,
        performance=performance_tables(
            output.terminal_values, config.initial_value, config.time_horizon, config.inflation_rate
        ),
        insights=generate_insights(
            output.statistics,
            config,
            margin_call_stats=output.margin_call_stats,
            utilization=leverage.utilization if leverage is not None else None,
            cagr=extended.cagr,
            insight_config=insight_config,
        ),
        considerations=considerations,
        leverage=leverage,
        margin_call_probability=margin_prob,
        asset_statistics=asset_statistics_table(symbols, history or {}),
        comparison=compare_runs(previous, (output, config)) if previous is not None else None,
    )
