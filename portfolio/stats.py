"""Annualized per-asset statistics derived from historical daily returns."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping

import numpy as np

from portfolio.returns import HistoricalReturnSeries

logger = logging.getLogger(__name__)

TRADING_DAYS = 252
ESTIMATED_RETURN = 0.08
ESTIMATED_VOLATILITY = 0.16


@dataclass
class AssetStatistics:
    """Typed view of one asset's annualized return and volatility."""

    symbol: str
    name: str
    expected_return: float
    volatility: float
    is_estimate: bool
    observations: int = 0

    def as_dict(self) -> Dict[str, float]:
        return {
            "expected_return": self.expected_return,
            "volatility": self.volatility,
            "is_estimate": self.is_estimate,
            "observations": self.observations,
        }


def annualize_daily_returns(daily_returns: Iterable[float]) -> tuple[float, float]:
    """Return ``(annual_return, annual_volatility)`` for a non-empty daily series."""
    arr = np.asarray(list(daily_returns), dtype=float)
    if arr.size == 0:
        raise ValueError("At least one daily return is required to annualize")
    daily_mean = float(np.mean(arr))
    daily_std = float(np.std(arr, ddof=0))
    annual_return = float((1 + daily_mean) ** TRADING_DAYS - 1)
    annual_vol = float(daily_std * np.sqrt(TRADING_DAYS))
    return annual_return, annual_vol


def compute_asset_statistics(symbol: str, series: HistoricalReturnSeries | None) -> AssetStatistics:
    """Measured statistics when history exists, flagged placeholder defaults otherwise."""
    if series is None or len(series) == 0:
        logger.info("No return history for %s; using estimated defaults", symbol)
        return AssetStatistics(
            symbol=symbol,
            name=series.name if series is not None else symbol,
            expected_return=ESTIMATED_RETURN,
            volatility=ESTIMATED_VOLATILITY,
            is_estimate=True,
        )
    annual_return, annual_vol = annualize_daily_returns(series.values())
    return AssetStatistics(
        symbol=symbol,
        name=series.name,
        expected_return=annual_return,
        volatility=annual_vol,
        is_estimate=False,
        observations=len(series),
    )


def asset_statistics_table(
    symbols: Iterable[str],
    history: Mapping[str, HistoricalReturnSeries],
) -> Dict[str, AssetStatistics]:
    """Statistics for every requested symbol; missing history never raises."""
    return {symbol: compute_asset_statistics(symbol, history.get(symbol)) for symbol in symbols}
