"""Side-by-side deltas between two independent simulation runs."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from analytics.extended import calculate_cagr
from portfolio.simulation import SimulationConfig, SimulationOutput

NEUTRAL_THRESHOLD = 0.001
MAX_KEY_DIFFERENCES = 4

RunSnapshot = Tuple[SimulationOutput, SimulationConfig]


@dataclass
class DeltaMetrics:
    absolute: float  # current - previous
    percent_change: float
    direction: str  # "up", "down" or "neutral"

    def as_dict(self) -> Dict[str, float | str]:
        return {"absolute": self.absolute, "percent_change": self.percent_change, "direction": self.direction}


@dataclass
class ComparisonMetrics:
    """Optional deltas are ``None`` unless both runs carry the underlying data."""

    final_value: DeltaMetrics
    success_rate: DeltaMetrics
    cagr: DeltaMetrics | None = None
    margin_call_probability: DeltaMetrics | None = None

    def as_dict(self) -> Dict[str, Dict[str, float | str]]:
        fields = {
            "final_value": self.final_value,
            "success_rate": self.success_rate,
            "cagr": self.cagr,
            "margin_call_probability": self.margin_call_probability,
        }
        return {name: delta.as_dict() for name, delta in fields.items() if delta is not None}


@dataclass
class TradeOffSummary:
    headline: str
    assessment: str  # "previous-better", "current-better" or "similar"
    key_differences: List[str] = field(default_factory=list)
    recommendation: str = ""


def calculate_delta(previous: float, current: float) -> DeltaMetrics:
    absolute = current - previous
    if previous != 0:
        percent_change = absolute / abs(previous) * 100
    else:
        percent_change = 100.0 if current != 0 else 0.0

    if absolute > NEUTRAL_THRESHOLD:
        direction = "up"
    elif absolute < -NEUTRAL_THRESHOLD:
        direction = "down"
    else:
        direction = "neutral"
    return DeltaMetrics(absolute=absolute, percent_change=percent_change, direction=direction)


def _run_cagr(run: RunSnapshot) -> float | None:
    output, config = run
    if output.estate_analysis is None:
        return None
    return calculate_cagr(config.initial_value, output.statistics.median, config.time_horizon)


def compute_comparison_metrics(previous: RunSnapshot, current: RunSnapshot) -> ComparisonMetrics:
    prev_output, _ = previous
    curr_output, _ = current
    metrics = ComparisonMetrics(
        final_value=calculate_delta(prev_output.statistics.median, curr_output.statistics.median),
        success_rate=calculate_delta(prev_output.statistics.success_rate, curr_output.statistics.success_rate),
    )

    prev_cagr, curr_cagr = _run_cagr(previous), _run_cagr(current)
    if prev_cagr is not None and curr_cagr is not None:
        metrics.cagr = calculate_delta(prev_cagr, curr_cagr)

    prev_margin = prev_output.final_margin_call_probability()
    curr_margin = curr_output.final_margin_call_probability()
    if prev_margin is not None and curr_margin is not None:
        metrics.margin_call_probability = calculate_delta(prev_margin, curr_margin)
    return metrics


def _score(metrics: ComparisonMetrics) -> Tuple[int, int]:
    previous = current = 0
    # (delta, weight, higher is better)
    weighted = [
        (metrics.final_value, 2, True),
        (metrics.success_rate, 1, True),
        (metrics.margin_call_probability, 1, False),
        (metrics.cagr, 1, True),
    ]
    for delta, weight, higher_better in weighted:
        if delta is None or delta.direction == "neutral":
            continue
        if (delta.direction == "up") == higher_better:
            current += weight
        else:
            previous += weight
    return previous, current


def _key_differences(metrics: ComparisonMetrics, previous_name: str, current_name: str) -> List[str]:
    differences: List[Tuple[str, float]] = []

    def better(delta: DeltaMetrics, higher_better: bool = True) -> str:
        return current_name if (delta.direction == "up") == higher_better else previous_name

    final = metrics.final_value
    if final.direction != "neutral":
        magnitude = abs(final.absolute)
        differences.append((f"{better(final)} produces {magnitude:,.0f} higher median terminal value", magnitude))

    success = metrics.success_rate
    if success.direction != "neutral":
        magnitude = abs(success.percent_change)
        differences.append((f"{better(success)} has {magnitude:.1f}% higher success rate", magnitude))

    margin = metrics.margin_call_probability
    if margin is not None and margin.direction != "neutral":
        gap = abs(margin.absolute)
        # probability points are scaled up so they sort alongside currency gaps
        differences.append((f"{better(margin, higher_better=False)} has {gap:.1f}% lower margin call risk", gap * 100))

    cagr = metrics.cagr
    if cagr is not None and cagr.direction != "neutral":
        magnitude = abs(cagr.percent_change)
        differences.append((f"{better(cagr)} achieves {magnitude:.1f}% higher CAGR", magnitude))

    differences.sort(key=lambda item: item[1], reverse=True)
    return [text for text, _ in differences[:MAX_KEY_DIFFERENCES]]


def summarize_trade_off(
    metrics: ComparisonMetrics | None,
    previous_name: str = "Previous",
    current_name: str = "Current",
) -> TradeOffSummary:
    """Plain-language verdict on which parameter set performs better."""
    if metrics is None:
        return TradeOffSummary(
            headline="No comparison data available",
            assessment="similar",
            recommendation="Generate both simulations to see comparison.",
        )

    previous_score, current_score = _score(metrics)
    if current_score > previous_score:
        assessment = "current-better"
        headline = f"{current_name} strategy outperforms"
        recommendation = (
            f"The {current_name} strategy offers better risk-adjusted returns. Consider adopting these parameters."
        )
    elif previous_score > current_score:
        assessment = "previous-better"
        headline = f"{previous_name} strategy outperforms"
        recommendation = (
            f"The {previous_name} strategy appears more favorable. "
            f"Review what changed before switching to {current_name}."
        )
    else:
        assessment = "similar"
        headline = "Strategies produce similar outcomes"
        recommendation = "Both strategies produce comparable results. Your choice may depend on personal risk tolerance."

    return TradeOffSummary(
        headline=headline,
        assessment=assessment,
        key_differences=_key_differences(metrics, previous_name, current_name),
        recommendation=recommendation,
    )
