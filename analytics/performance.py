"""Return-probability, expected-return and performance-summary tables.

Only terminal values are available, so every horizon shorter than the run
reuses the draw's full-horizon implied CAGR.  Expected returns widen the
spread around the median by ``sqrt(T / h)`` to reflect the extra dispersion
of short holding periods.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

import numpy as np
import pandas as pd

from analytics.extended import terminal_annualized_returns
from analytics.percentiles import BAND_LEVELS, PercentileBand, percentile_band, to_array

DEFAULT_THRESHOLDS = (0.0, 0.025, 0.05, 0.075, 0.10, 0.125)
DEFAULT_TIME_HORIZONS = (1, 3, 5, 10, 15)
DEFAULT_INFLATION_RATE = 0.025


@dataclass
class ReturnProbabilities:
    """``probabilities[i][j]``: percent of draws reaching ``thresholds[i]`` by ``time_horizons[j]``."""

    thresholds: List[float]
    time_horizons: List[int]
    probabilities: List[List[float]]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.probabilities, index=self.thresholds, columns=self.time_horizons)


@dataclass
class ExpectedReturns:
    percentiles: List[int]
    time_horizons: List[int]
    values: List[List[float]]  # [percentile][horizon], decimals

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.values, index=self.percentiles, columns=self.time_horizons)


@dataclass
class PerformanceRow:
    label: str
    band: PercentileBand
    format: str  # "percent" or "currency"


@dataclass
class PerformanceSummary:
    rows: List[PerformanceRow] = field(default_factory=list)

    def row(self, label: str) -> PerformanceRow:
        for row in self.rows:
            if row.label == label:
                return row
        raise KeyError(label)

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame([row.band.as_dict() for row in self.rows], index=[row.label for row in self.rows])
        frame["format"] = [row.format for row in self.rows]
        return frame


def _valid_horizons(horizons: Sequence[int], max_horizon: int) -> List[int]:
    return [h for h in horizons if h <= max_horizon]


def calculate_return_probabilities(
    terminal_values: Iterable[float],
    initial_value: float,
    max_horizon: int,
    thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
    horizons: Sequence[int] = DEFAULT_TIME_HORIZONS,
) -> ReturnProbabilities:
    """Share of draws whose implied annual return meets each threshold."""
    arr = to_array(terminal_values)
    valid = _valid_horizons(horizons, max_horizon)
    if arr.size == 0:
        return ReturnProbabilities(list(thresholds), valid, [[0.0] * len(valid) for _ in thresholds])

    cagrs = terminal_annualized_returns(arr, initial_value, max_horizon)
    probabilities = []
    for threshold in thresholds:
        share = float(np.mean(cagrs >= threshold) * 100)
        probabilities.append([share] * len(valid))
    return ReturnProbabilities(list(thresholds), valid, probabilities)


def calculate_expected_returns(
    terminal_values: Iterable[float],
    initial_value: float,
    max_horizon: int,
    horizons: Sequence[int] = DEFAULT_TIME_HORIZONS,
) -> ExpectedReturns:
    """Annualized return at each percentile, spread scaled by ``sqrt(T / h)`` for shorter horizons."""
    arr = to_array(terminal_values)
    valid = _valid_horizons(horizons, max_horizon)
    levels = list(BAND_LEVELS)
    if arr.size == 0:
        return ExpectedReturns(levels, valid, [[0.0] * len(valid) for _ in levels])

    band = percentile_band(arr)
    cagrs = terminal_annualized_returns([band.p10, band.p25, band.p50, band.p75, band.p90], initial_value, max_horizon)
    median_cagr = float(cagrs[2])
    values = []
    for full_cagr in cagrs:
        spread = float(full_cagr) - median_cagr
        values.append([
            float(full_cagr) if h >= max_horizon else median_cagr + spread * np.sqrt(max_horizon / h)
            for h in valid
        ])
    return ExpectedReturns(levels, valid, values)


def calculate_performance_summary(
    terminal_values: Iterable[float],
    initial_value: float,
    time_horizon: int,
    inflation_rate: float = DEFAULT_INFLATION_RATE,
) -> PerformanceSummary:
    arr = to_array(terminal_values)
    if arr.size == 0:
        return PerformanceSummary()

    deflator = (1 + inflation_rate) ** time_horizon
    nominal = terminal_annualized_returns(arr, initial_value, time_horizon)
    real_terminal = arr / deflator
    real = terminal_annualized_returns(real_terminal, initial_value, time_horizon)
    mean_return = np.where(arr > 0, (arr - initial_value) / initial_value / time_horizon, -1.0)
    # dispersion of each draw's return around the median, scaled to the horizon
    dispersion = np.abs(nominal - np.median(nominal)) * np.sqrt(time_horizon)

    return PerformanceSummary(rows=[
        PerformanceRow("Time Weighted Rate of Return (nominal)", percentile_band(nominal), "percent"),
        PerformanceRow("Time Weighted Rate of Return (real)", percentile_band(real), "percent"),
        PerformanceRow("Portfolio End Balance (nominal)", percentile_band(arr), "currency"),
        PerformanceRow("Portfolio End Balance (real)", percentile_band(real_terminal), "currency"),
        PerformanceRow("Annual Mean Return (nominal)", percentile_band(mean_return), "percent"),
        PerformanceRow("Annualized Volatility", percentile_band(dispersion), "percent"),
    ])


@dataclass
class PerformanceTables:
    return_probabilities: ReturnProbabilities
    expected_returns: ExpectedReturns
    summary: PerformanceSummary


def performance_tables(
    terminal_values: Iterable[float],
    initial_value: float,
    time_horizon: int,
    inflation_rate: float = DEFAULT_INFLATION_RATE,
) -> PerformanceTables:
    arr = to_array(terminal_values)
    return PerformanceTables(
        return_probabilities=calculate_return_probabilities(arr, initial_value, time_horizon),
        expected_returns=calculate_expected_returns(arr, initial_value, time_horizon),
        summary=calculate_performance_summary(arr, initial_value, time_horizon, inflation_rate),
    )
