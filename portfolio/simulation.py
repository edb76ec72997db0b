"""Value objects describing a finished Monte Carlo run of the borrow strategy.

The sampler that produces these objects lives outside this package.  Everything
here is treated as an immutable snapshot: the analytics layer reads them and
derives new values, it never mutates them.  Optional sections (loan trajectory,
margin-call statistics, estate analysis) are ``None`` when the run did not
produce them; ``SimulationOutput.leverage`` is the one place that decides
whether the borrow-vs-sell sections apply.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

PERCENTILE_KEYS = ("p10", "p25", "p50", "p75", "p90")


@dataclass(frozen=True)
class YearlyPercentiles:
    """Portfolio value band for a single simulated year (year 0 is the start)."""

    year: int
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float

    def value(self, key: str) -> float:
        if key not in PERCENTILE_KEYS:
            raise ValueError(f"Unknown percentile key: {key}")
        return float(getattr(self, key))

    def as_dict(self) -> Dict[str, float]:
        return {"year": self.year, "p10": self.p10, "p25": self.p25, "p50": self.p50, "p75": self.p75, "p90": self.p90}


@dataclass(frozen=True)
class PercentileSeries:
    """Five parallel per-year percentile series (index i is the i-th year)."""

    p10: Sequence[float]
    p25: Sequence[float]
    p50: Sequence[float]
    p75: Sequence[float]
    p90: Sequence[float]

    def __post_init__(self) -> None:
        lengths = {len(getattr(self, key)) for key in PERCENTILE_KEYS}
        if len(lengths) > 1:
            raise ValueError(f"Percentile series must share one length, received {sorted(lengths)}")

    def __len__(self) -> int:
        return len(self.p50)

    def as_array(self) -> np.ndarray:
        """Shape (5, years) array ordered p10..p90."""
        return np.vstack([np.asarray(getattr(self, key), dtype=float) for key in PERCENTILE_KEYS])

    @classmethod
    def from_yearly(cls, yearly: Sequence[YearlyPercentiles]) -> "PercentileSeries":
        ordered = sorted(yearly, key=lambda rec: rec.year)
        return cls(**{key: [rec.value(key) for rec in ordered] for key in PERCENTILE_KEYS})


@dataclass(frozen=True)
class SimulationStatistics:
    """Summary statistics precomputed by the sampler."""

    median: float
    mean: float
    stddev: float
    success_rate: float  # 0-100

    def __post_init__(self) -> None:
        if not 0 <= self.success_rate <= 100:
            raise ValueError(f"Success rate must be within [0, 100], received {self.success_rate}")


@dataclass(frozen=True)
class LoanTrajectory:
    """Per-year bands for the credit line: balance, interest paid, amount drawn."""

    years: Sequence[int]
    loan_balance: PercentileSeries
    cumulative_interest: PercentileSeries
    cumulative_withdrawals: PercentileSeries

    def __post_init__(self) -> None:
        expected = len(self.years)
        for name in ("loan_balance", "cumulative_interest", "cumulative_withdrawals"):
            if len(getattr(self, name)) != expected:
                raise ValueError(f"{name} does not cover the {expected} trajectory years")

    def terminal_loan_balance(self) -> float:
        """Median outstanding balance at the end of the horizon."""
        return float(self.loan_balance.p50[-1]) if self.years else 0.0

    def terminal_interest(self) -> float:
        return float(self.cumulative_interest.p50[-1]) if self.years else 0.0


@dataclass(frozen=True)
class MarginCallStats:
    """Margin-call likelihood for one year, both figures in percent."""

    year: int
    probability: float
    cumulative_probability: float


@dataclass(frozen=True)
class EstateAnalysis:
    """Terminal estate comparison supplied by the sampler."""

    bbd_net_estate: float
    sell_net_estate: float
    bbd_advantage: float


@dataclass(frozen=True)
class CreditFacility:
    """Terms of the securities-backed line of credit used to fund withdrawals."""

    annual_withdrawal: float = 0.0
    withdrawal_growth: float = 0.0
    interest_rate: float = 0.07
    max_ltv: float = 0.65
    cost_basis_ratio: float = 0.4
    dividend_yield: float = 0.02

    def __post_init__(self) -> None:
        if self.annual_withdrawal < 0:
            raise ValueError("Annual withdrawal cannot be negative")
        if not 0 <= self.cost_basis_ratio <= 1:
            raise ValueError("Cost basis ratio must be within [0, 1]")

    @property
    def is_active(self) -> bool:
        return self.annual_withdrawal > 0


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters the sampler was run with."""

    initial_value: float
    time_horizon: int
    iterations: int = 10_000
    inflation_rate: float = 0.025
    inflation_adjusted: bool = False
    resampling_method: str = "simple"  # "simple", "block" or "regime"
    credit_facility: CreditFacility | None = None

    def __post_init__(self) -> None:
        if self.initial_value <= 0:
            raise ValueError("Initial value must be positive")
        if self.time_horizon < 1:
            raise ValueError("Time horizon must be at least one year")
        if self.iterations < 1:
            raise ValueError("Iteration count must be at least one")

    @property
    def annual_withdrawal(self) -> float:
        return self.credit_facility.annual_withdrawal if self.credit_facility is not None else 0.0


@dataclass(frozen=True)
class LeverageView:
    """Loan trajectory and estate analysis, present together or not at all."""

    loan_trajectory: LoanTrajectory
    estate_analysis: EstateAnalysis


@dataclass(frozen=True)
class SimulationOutput:
    """Complete result of one sampler run."""

    terminal_values: np.ndarray
    yearly_percentiles: List[YearlyPercentiles]
    statistics: SimulationStatistics
    loan_trajectory: LoanTrajectory | None = None
    margin_call_stats: List[MarginCallStats] | None = None
    estate_analysis: EstateAnalysis | None = None

    @property
    def leverage(self) -> LeverageView | None:
        """Borrow-strategy sections, or ``None`` for a non-leveraged run."""
        if self.loan_trajectory is None or self.estate_analysis is None:
            return None
        return LeverageView(loan_trajectory=self.loan_trajectory, estate_analysis=self.estate_analysis)

    def final_margin_call_probability(self) -> float | None:
        """Cumulative margin-call probability at the horizon, ``None`` without margin-call data."""
        if not self.margin_call_stats:
            return None
        return float(self.margin_call_stats[-1].cumulative_probability)

    def portfolio_series(self) -> PercentileSeries:
        return PercentileSeries.from_yearly(self.yearly_percentiles)

    def yearly_frame(self) -> pd.DataFrame:
        """Yearly bands as a DataFrame indexed by year for the display layer."""
        frame = pd.DataFrame([rec.as_dict() for rec in self.yearly_percentiles], columns=["year", *PERCENTILE_KEYS])
        return frame.set_index("year").sort_index()
