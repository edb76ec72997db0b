"""Extended performance statistics: CAGR, volatility, TWRR and salary equivalent.

Each figure is computed independently so one missing input never blocks the
others.  All return values are finite: degenerate cases map to explicit
fallbacks (``-1.0`` for a total loss, ``0.0`` when there is nothing to
measure) instead of ``nan``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

import numpy as np

from analytics.percentiles import stddev, to_array
from portfolio.simulation import YearlyPercentiles

logger = logging.getLogger(__name__)


@dataclass
class TWRRResult:
    """Time-weighted return of the median yearly path."""

    twrr: float
    period_returns: List[float] = field(default_factory=list)
    cumulative_return: float = 0.0


@dataclass
class SalaryEquivalent:
    """Pre-tax salary needed to match a tax-free, loan-funded withdrawal."""

    annual_withdrawal: float
    salary: float
    effective_tax_rate: float
    tax_savings: float


@dataclass
class ExtendedStatistics:
    cagr: float
    annualized_volatility: float
    twrr: TWRRResult
    salary_equivalent: SalaryEquivalent

    def as_dict(self) -> Dict[str, float]:
        return {
            "cagr": self.cagr,
            "annualized_volatility": self.annualized_volatility,
            "twrr": self.twrr.twrr,
            "salary_equivalent": self.salary_equivalent.salary,
            "tax_savings": self.salary_equivalent.tax_savings,
        }


def _check_horizon(initial_value: float, years: float) -> None:
    if years <= 0:
        raise ValueError(f"Years must be positive, received {years}")
    if initial_value <= 0:
        raise ValueError(f"Initial value must be positive, received {initial_value}")


def calculate_cagr(initial_value: float, terminal_value: float, years: float) -> float:
    """``(terminal / initial) ** (1 / years) - 1``; a non-positive terminal is a total loss (-1.0)."""
    _check_horizon(initial_value, years)
    if terminal_value <= 0:
        return -1.0
    return float((terminal_value / initial_value) ** (1 / years) - 1)


def terminal_annualized_returns(terminal_values: Iterable[float], initial_value: float, years: float) -> np.ndarray:
    """Implied annual return of every terminal draw."""
    _check_horizon(initial_value, years)
    arr = to_array(terminal_values)
    growth = 1 + (arr - initial_value) / initial_value
    annualized = np.full(arr.shape, -1.0)
    positive = growth > 0
    annualized[positive] = np.power(growth[positive], 1 / years) - 1
    return annualized


def annualized_volatility(terminal_values: Iterable[float], initial_value: float, years: float) -> float:
    """Population stddev of the implied annual returns (return scale, not currency scale)."""
    returns = terminal_annualized_returns(terminal_values, initial_value, years)
    if returns.size == 0:
        logger.debug("Empty terminal sample; reporting zero volatility")
        return 0.0
    return stddev(returns)


def calculate_success_rate(terminal_values: Iterable[float], initial_value: float) -> float:
    """Percent of draws ending strictly above the starting value."""
    arr = to_array(terminal_values)
    if arr.size == 0:
        return 0.0
    return float(np.mean(arr > initial_value) * 100)


def calculate_twrr(yearly_percentiles: Sequence[YearlyPercentiles]) -> TWRRResult:
    """Chain the p50 year-over-year returns and annualize them geometrically."""
    if len(yearly_percentiles) < 2:
        return TWRRResult(twrr=0.0)
    ordered = sorted(yearly_percentiles, key=lambda rec: rec.year)
    period_returns: List[float] = []
    for prev, curr in zip(ordered, ordered[1:]):
        if prev.p50 <= 0:
            break  # the path is exhausted; later periods have no defined return
        period_returns.append((curr.p50 - prev.p50) / prev.p50)
    if not period_returns:
        return TWRRResult(twrr=0.0)
    growth = float(np.prod([1 + r for r in period_returns]))
    cumulative = growth - 1
    twrr = -1.0 if growth <= 0 else growth ** (1 / len(period_returns)) - 1
    return TWRRResult(twrr=float(twrr), period_returns=period_returns, cumulative_return=cumulative)


def calculate_salary_equivalent(annual_withdrawal: float, effective_tax_rate: float) -> SalaryEquivalent:
    """``salary = withdrawal / (1 - rate)``, ``tax_savings = salary - withdrawal``."""
    if effective_tax_rate >= 1:
        raise ValueError(f"Effective tax rate must be below 1, received {effective_tax_rate}")
    if annual_withdrawal <= 0:
        return SalaryEquivalent(annual_withdrawal=0.0, salary=0.0, effective_tax_rate=effective_tax_rate, tax_savings=0.0)
    rate = max(effective_tax_rate, 0.0)
    salary = annual_withdrawal / (1 - rate)
    return SalaryEquivalent(
        annual_withdrawal=annual_withdrawal,
        salary=salary,
        effective_tax_rate=rate,
        tax_savings=salary - annual_withdrawal,
    )


def compute_extended_statistics(
    initial_value: float,
    years: float,
    terminal_values: Iterable[float],
    yearly_percentiles: Sequence[YearlyPercentiles],
    median_terminal: float,
    annual_withdrawal: float,
    effective_tax_rate: float,
) -> ExtendedStatistics:
    """Assemble the four extended figures shown under the summary statistics."""
    return ExtendedStatistics(
        cagr=calculate_cagr(initial_value, median_terminal, years),
        annualized_volatility=annualized_volatility(terminal_values, initial_value, years),
        twrr=calculate_twrr(yearly_percentiles),
        salary_equivalent=calculate_salary_equivalent(annual_withdrawal, effective_tax_rate),
    )
