"""Borrow-versus-sell verdict, wealth differential and narrative insights.

The comparison only exists for leveraged runs: ``compare_leveraged_run``
returns ``None`` when the run lacks a loan trajectory or an estate analysis,
and the caller simply omits the section.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict

from portfolio.simulation import SimulationOutput
from strategy.sell import SellStrategyResult

logger = logging.getLogger(__name__)

BBD_HEADLINE = "BBD Recommended"
SELL_HEADLINE = "Consider Sell Assets"


@dataclass
class BBDMetrics:
    terminal_net_worth: float
    success_rate: float
    lifetime_cost: float  # cumulative interest paid
    primary_risk: str
    margin_call_probability: float


@dataclass
class SellMetrics:
    terminal_net_worth: float
    success_rate: float
    lifetime_cost: float  # capital gains + dividend taxes
    primary_risk: str
    depletion_probability: float


@dataclass
class StrategyVerdict:
    recommendation: str  # "bbd" or "sell"
    headline: str
    rationale: str
    confidence: float


@dataclass
class WealthDifferential:
    bbd_vs_sell: float
    tax_savings: float
    estate_value: float


@dataclass
class StrategyInsights:
    quote: str
    explanation: str
    tax_deferral_benefit: float
    compounding_advantage: float


@dataclass
class StrategyComparison:
    """Everything the strategy-analysis section renders."""

    bbd: BBDMetrics
    sell: SellMetrics
    verdict: StrategyVerdict
    differential: WealthDifferential
    insights: StrategyInsights
    advantage_percent: float | None
    consistent_with_estate: bool = True

    @property
    def advantage(self) -> float:
        return self.differential.bbd_vs_sell

    @property
    def bbd_better(self) -> bool:
        return self.advantage > 0

    def as_dict(self) -> Dict[str, float | str | None]:
        return {
            "recommendation": self.verdict.recommendation,
            "headline": self.verdict.headline,
            "confidence": self.verdict.confidence,
            "bbd_vs_sell": self.differential.bbd_vs_sell,
            "tax_savings": self.differential.tax_savings,
            "estate_value": self.differential.estate_value,
            "advantage_percent": self.advantage_percent,
        }


def bbd_primary_risk(margin_call_probability: float) -> str:
    if margin_call_probability > 0:
        return f"Margin Call ({margin_call_probability:.1f}%)"
    return "Low (0% margin call risk)"


def _advantage_percent(advantage: float, losing_terminal: float) -> float | None:
    """Advantage relative to the losing strategy; undefined when the loser ends at or below zero."""
    if losing_terminal <= 0:
        return None
    return abs(advantage) / losing_terminal * 100


def _rationale(bbd_better: bool, advantage_percent: float | None) -> str:
    winner, loser = ("Borrowing against the portfolio", "selling assets") if bbd_better else (
        "Selling assets",
        "borrowing against the portfolio",
    )
    if advantage_percent is None:
        return f"{winner} preserves wealth while {loser} exhausts the portfolio by the end of the horizon."
    return (
        f"{winner} finishes with {advantage_percent:.1f}% more median net worth than {loser} "
        "while funding the same withdrawals."
    )


def _insights(bbd_better: bool, advantage: float, tax_savings: float, sell_taxes: float) -> StrategyInsights:
    if bbd_better:
        quote = "Deferred taxes keep the whole portfolio compounding."
        explanation = (
            "Every sale under the sell strategy realizes capital gains and shrinks the invested base. "
            "Borrowing leaves the base intact, so growth compounds on money that would otherwise have gone to tax, "
            "and the stepped-up basis at death removes the embedded gain altogether."
        )
    else:
        quote = "Interest on the credit line outweighs the tax it defers."
        explanation = (
            "In this scenario loan interest compounds faster than the tax drag of selling. "
            "A lower withdrawal, a cheaper credit line or a higher cost basis would narrow the gap."
        )
    return StrategyInsights(
        quote=quote,
        explanation=explanation,
        tax_deferral_benefit=sell_taxes,
        compounding_advantage=max(0.0, advantage - tax_savings),
    )


def compare_strategies(
    bbd_terminal_net_worth: float,
    bbd_success_rate: float,
    cumulative_interest: float,
    margin_call_probability: float,
    sell: SellStrategyResult,
    bbd_net_estate: float,
    sampler_advantage: float | None = None,
) -> StrategyComparison:
    """Combine the borrow run's median figures with the sell replay into one report."""
    advantage = bbd_terminal_net_worth - sell.terminal_net_worth
    bbd_better = advantage > 0
    losing_terminal = sell.terminal_net_worth if bbd_better else bbd_terminal_net_worth
    pct = _advantage_percent(advantage, losing_terminal)
    tax_savings = max(0.0, sell.lifetime_taxes - cumulative_interest)

    consistent = True
    if sampler_advantage is not None and advantage * sampler_advantage < 0:
        consistent = False
        logger.warning(
            "Borrow-vs-sell sign disagrees with the sampler estate analysis (derived %.2f, sampler %.2f)",
            advantage,
            sampler_advantage,
        )

    return StrategyComparison(
        bbd=BBDMetrics(
            terminal_net_worth=bbd_terminal_net_worth,
            success_rate=bbd_success_rate,
            lifetime_cost=cumulative_interest,
            primary_risk=bbd_primary_risk(margin_call_probability),
            margin_call_probability=margin_call_probability,
        ),
        sell=SellMetrics(
            terminal_net_worth=sell.terminal_net_worth,
            success_rate=sell.success_rate,
            lifetime_cost=sell.total_lifetime_taxes,
            primary_risk=sell.primary_risk,
            depletion_probability=sell.depletion_probability,
        ),
        verdict=StrategyVerdict(
            recommendation="bbd" if bbd_better else "sell",
            headline=BBD_HEADLINE if bbd_better else SELL_HEADLINE,
            rationale=_rationale(bbd_better, pct),
            confidence=bbd_success_rate,
        ),
        differential=WealthDifferential(bbd_vs_sell=advantage, tax_savings=tax_savings, estate_value=bbd_net_estate),
        insights=_insights(bbd_better, advantage, tax_savings, sell.total_lifetime_taxes),
        advantage_percent=pct,
        consistent_with_estate=consistent,
    )


def compare_leveraged_run(output: SimulationOutput, sell: SellStrategyResult) -> StrategyComparison | None:
    """Comparison for a run with a credit line, ``None`` for a non-leveraged run."""
    leverage = output.leverage
    if leverage is None:
        return None
    loan = leverage.loan_trajectory
    estate = leverage.estate_analysis
    margin = output.final_margin_call_probability()
    return compare_strategies(
        bbd_terminal_net_worth=output.statistics.median - loan.terminal_loan_balance(),
        bbd_success_rate=output.statistics.success_rate,
        cumulative_interest=loan.terminal_interest(),
        margin_call_probability=margin if margin is not None else 0.0,
        sell=sell,
        bbd_net_estate=estate.bbd_net_estate,
        sampler_advantage=estate.bbd_advantage,
    )
