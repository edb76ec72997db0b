"""Credit-line utilization (loan / portfolio) risk bands.

Loan balance and portfolio value are correlated but not co-monotonic across
draws, so dividing same-rank percentiles would pull every band toward the
centre.  The bands here pair *opposing* percentiles instead:

    p90 utilization = p90(loan) / p10(portfolio)
    p75 utilization = p75(loan) / p25(portfolio)
    p50 utilization = p50(loan) / p50(portfolio)
    p25 utilization = p25(loan) / p75(portfolio)
    p10 utilization = p10(loan) / p90(portfolio)

This is a conservative heuristic for joint tail risk, not an exact statistic
of the utilization distribution.  Values are percentages, floored at zero and
deliberately not capped at 100: utilization above 100% is a real signal.
Within each year the bands are non-decreasing from p10 to p90, so an
exhausted portfolio band never ranks below a finite one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from portfolio.simulation import PERCENTILE_KEYS, PercentileSeries, YearlyPercentiles

logger = logging.getLogger(__name__)

# stands in for loan / 0 when the portfolio band is exhausted but debt remains
MAX_UTILIZATION_PCT = 1000.0
DEFAULT_UTILIZATION_THRESHOLD = 70.0

# utilization band -> (loan band, portfolio band)
OPPOSING_PAIRS = {
    "p10": ("p10", "p90"),
    "p25": ("p25", "p75"),
    "p50": ("p50", "p50"),
    "p75": ("p75", "p25"),
    "p90": ("p90", "p10"),
}


@dataclass
class UtilizationBands:
    """Per-year utilization bands in percent; ``p90`` is the worst case."""

    years: List[int]
    bands: PercentileSeries

    def worst_case(self) -> List[float]:
        return list(self.bands.p90)

    def median_case(self) -> List[float]:
        return list(self.bands.p50)

    def best_case(self) -> List[float]:
        return list(self.bands.p10)

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame({key: list(getattr(self.bands, key)) for key in PERCENTILE_KEYS}, index=self.years)
        frame.index.name = "year"
        return frame


@dataclass
class UtilizationSummary:
    median_utilization: float  # final-year p50
    peak_utilization_p90: float
    most_dangerous_year: int
    years_above_threshold_pct: float
    threshold: float
    safety_buffer_p10: float = 0.0  # headroom to 100% in the final-year best case
    years_above_threshold: int = 0

    def as_dict(self) -> Dict[str, float]:
        return {
            "median_utilization": self.median_utilization,
            "peak_utilization_p90": self.peak_utilization_p90,
            "most_dangerous_year": self.most_dangerous_year,
            "years_above_threshold_pct": self.years_above_threshold_pct,
            "threshold": self.threshold,
            "safety_buffer_p10": self.safety_buffer_p10,
            "years_above_threshold": self.years_above_threshold,
        }


def _ratio_pct(loan: np.ndarray, portfolio: np.ndarray) -> np.ndarray:
    ratio = np.zeros(loan.shape)
    solvent = portfolio > 0
    ratio[solvent] = loan[solvent] / portfolio[solvent] * 100
    exhausted = ~solvent & (loan > 0)
    if exhausted.any():
        logger.debug("Portfolio band at or below zero in %d year(s); utilization capped", int(exhausted.sum()))
        ratio[exhausted] = MAX_UTILIZATION_PCT
    return np.maximum(ratio, 0.0)


def estimate_utilization_bands(
    loan_balance: PercentileSeries,
    portfolio_value: PercentileSeries,
    years: Sequence[int],
) -> UtilizationBands:
    """Combine loan and portfolio bands by opposing percentile (see module docstring)."""
    if not len(loan_balance) == len(portfolio_value) == len(years):
        raise ValueError(
            f"Loan ({len(loan_balance)}), portfolio ({len(portfolio_value)}) and years ({len(years)}) must align"
        )
    ratios = []
    for loan_key, portfolio_key in OPPOSING_PAIRS.values():
        loan = np.asarray(getattr(loan_balance, loan_key), dtype=float)
        portfolio = np.asarray(getattr(portfolio_value, portfolio_key), dtype=float)
        ratios.append(_ratio_pct(loan, portfolio))
    # capped years can sit below a finite band from a thinner portfolio side
    stacked = np.maximum.accumulate(np.vstack(ratios), axis=0)
    bands = {key: row.tolist() for key, row in zip(OPPOSING_PAIRS, stacked)}
    return UtilizationBands(years=list(years), bands=PercentileSeries(**bands))


def align_portfolio_series(
    yearly_percentiles: Sequence[YearlyPercentiles],
    years: Sequence[int],
) -> tuple[List[int], PercentileSeries]:
    """Portfolio bands for the given years; years the sampler did not report are dropped."""
    by_year = {rec.year: rec for rec in yearly_percentiles}
    kept = [year for year in years if year in by_year]
    if len(kept) < len(years):
        logger.debug("Dropping %d loan year(s) without a portfolio band", len(years) - len(kept))
    series = PercentileSeries.from_yearly([by_year[year] for year in kept])
    return kept, series


def _take(series: PercentileSeries, positions: Sequence[int]) -> PercentileSeries:
    return PercentileSeries(**{key: [getattr(series, key)[i] for i in positions] for key in PERCENTILE_KEYS})


def utilization_for_run(
    loan_balance: PercentileSeries,
    loan_years: Sequence[int],
    yearly_percentiles: Sequence[YearlyPercentiles],
) -> UtilizationBands:
    """Bands for a run whose loan and portfolio series may cover different years."""
    kept, portfolio = align_portfolio_series(yearly_percentiles, loan_years)
    reported = set(kept)
    positions = [i for i, year in enumerate(loan_years) if year in reported]
    return estimate_utilization_bands(_take(loan_balance, positions), portfolio, kept)


def summarize_utilization(
    bands: UtilizationBands,
    threshold: float = DEFAULT_UTILIZATION_THRESHOLD,
) -> UtilizationSummary | None:
    """Headline utilization figures; ``None`` when there are no years to summarize."""
    if not bands.years:
        return None
    median = np.asarray(bands.bands.p50, dtype=float)
    worst = np.asarray(bands.bands.p90, dtype=float)
    best = np.asarray(bands.bands.p10, dtype=float)
    peak_index = int(np.argmax(worst))
    return UtilizationSummary(
        median_utilization=float(median[-1]),
        peak_utilization_p90=float(worst[peak_index]),
        most_dangerous_year=int(bands.years[peak_index]),
        years_above_threshold_pct=float(np.mean(median > threshold) * 100),
        threshold=threshold,
        safety_buffer_p10=float(100.0 - best[-1]),
        years_above_threshold=int(np.sum(median > threshold)),
    )
