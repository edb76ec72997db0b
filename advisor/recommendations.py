"""Rule-based advisory layer translating a finished run into guidance.

Each rule looks at one slice of the run (margin-call odds, growth assumption,
success rate, credit utilization, return model) and emits at most one
insight.  Thresholds live in ``InsightConfig`` so the report can quote the
exact limits that produced a warning.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence

from analytics.utilization import UtilizationBands
from portfolio.simulation import MarginCallStats, SimulationConfig, SimulationStatistics

# lower sorts first
SEVERITY_ORDER = {"warning": 0, "action": 1, "note": 2, "info": 3}


@dataclass
class Insight:
    type: str  # "warning", "action", "note" or "info"
    title: str
    message: str
    action: str | None = None


@dataclass
class Consideration:
    type: str  # "warning", "action" or "note"
    title: str
    message: str
    action: str | None = None
    value: float | None = None


@dataclass(frozen=True)
class InsightConfig:
    margin_call_warning_threshold: float = 15.0  # percent
    high_growth_threshold: float = 0.10
    success_rate_warning_threshold: float = 80.0
    high_utilization_threshold: float = 70.0  # percent LTV
    utilization_years_threshold: float = 20.0  # percent of years


DEFAULT_INSIGHT_CONFIG = InsightConfig()


def _margin_call_insight(stats: Sequence[MarginCallStats], initial_value: float, limit: float) -> Insight | None:
    if not stats:
        return None
    final_prob = stats[-1].cumulative_probability
    if final_prob <= limit:
        return None
    withdrawal_cut = math.ceil(final_prob / 5) * 5
    cash_buffer = math.ceil(initial_value * 0.1 / 10_000) * 10_000
    return Insight(
        type="warning",
        title="Elevated Leverage Risk",
        message=f"Your {final_prob:.1f}% margin call probability exceeds the typical comfort threshold of {limit:g}%.",
        action=f"Build a {cash_buffer:,.0f} cash buffer or reduce withdrawals by {withdrawal_cut}%",
    )


def _growth_insight(cagr: float | None, limit: float) -> Insight | None:
    if cagr is None or cagr <= limit:
        return None
    return Insight(
        type="note",
        title="Above-Average Growth Assumption",
        message=f"Your expected {cagr:.1%} CAGR exceeds the historical long-term average of ~{limit:.0%}.",
        action="Consider a conservative return regime for more realistic projections",
    )


def _success_insight(success_rate: float, limit: float) -> Insight | None:
    if success_rate >= limit:
        return None
    return Insight(
        type="warning",
        title="Success Probability Concern",
        message=(
            f"{success_rate:.1f}% of simulations maintained positive net worth, "
            f"which is below the {limit:g}% threshold."
        ),
        action="Review withdrawal rate or extend time horizon",
    )


def _utilization_insight(bands: UtilizationBands | None, config: InsightConfig) -> Insight | None:
    if bands is None or not bands.years:
        return None
    median = bands.median_case()
    above = sum(1 for value in median if value > config.high_utilization_threshold)
    share = above / len(median) * 100
    if share <= config.utilization_years_threshold:
        return None
    return Insight(
        type="warning",
        title="High Credit Utilization",
        message=(
            f"Your portfolio spends {share:.0f}% of years above {config.high_utilization_threshold:g}% LTV "
            "in the median scenario."
        ),
        action="Consider lower withdrawal or higher starting value",
    )


def _model_insight(resampling_method: str) -> Insight | None:
    if resampling_method != "regime":
        return None
    return Insight(
        type="info",
        title="Regime-Switching Returns",
        message="This simulation uses a regime-switching return model which captures bull, bear and crash cycles.",
    )


def generate_insights(
    statistics: SimulationStatistics,
    config: SimulationConfig,
    margin_call_stats: Sequence[MarginCallStats] | None = None,
    utilization: UtilizationBands | None = None,
    cagr: float | None = None,
    insight_config: InsightConfig = DEFAULT_INSIGHT_CONFIG,
) -> List[Insight]:
    """Apply every rule and return the triggered insights, most severe first."""
    candidates = [
        _margin_call_insight(margin_call_stats or [], config.initial_value, insight_config.margin_call_warning_threshold),
        _growth_insight(cagr, insight_config.high_growth_threshold),
        _success_insight(statistics.success_rate, insight_config.success_rate_warning_threshold),
        _utilization_insight(utilization, insight_config),
        _model_insight(config.resampling_method),
    ]
    insights = [insight for insight in candidates if insight is not None]
    return sorted(insights, key=lambda insight: SEVERITY_ORDER[insight.type])


def generate_considerations(margin_call_prob: float = 0.0, interest_rate: float = 0.07) -> List[Consideration]:
    """Standing risks of the borrow strategy, shown regardless of the run's outcome."""
    margin_message = (
        f"{margin_call_prob:.1f}% cumulative probability over the simulation period."
        if margin_call_prob > 0
        else "No margin calls projected in this scenario."
    )
    return [
        Consideration(type="warning", title="Margin Call Risk", message=margin_message, value=margin_call_prob),
        Consideration(
            type="warning",
            title="Sequence of Returns Risk",
            message=(
                "Poor returns early in retirement can significantly impact long-term outcomes "
                "even if average returns meet expectations."
            ),
        ),
        Consideration(
            type="note",
            title="Interest Rate Sensitivity",
            message=(
                f"Current model assumes a {interest_rate:.1%} interest rate. "
                "A 1% increase could add significant costs over the horizon."
            ),
        ),
        Consideration(
            type="note",
            title="Behavioral Factors",
            message="Market volatility may trigger emotional decisions that deviate from the plan and impact actual returns.",
        ),
        Consideration(
            type="note",
            title="Regulatory Risk",
            message=(
                "Tax laws and securities-based lending rules may change over time. "
                "The stepped-up basis benefit could be modified or eliminated."
            ),
        ),
        Consideration(
            type="action",
            title="Liquidity Constraints",
            message="Credit line availability may be restricted during market stress when you need it most.",
            action="Maintain 6-12 months of expenses in accessible cash reserve",
        ),
    ]
