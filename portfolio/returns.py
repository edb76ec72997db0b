"""Historical daily-return series handed to the asset statistics.

Price history is owned by the market-data service; this module only turns a
price panel (the same wide ``DataFrame`` shape the data service caches, one
column per symbol) into immutable per-asset return series.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class HistoricalReturnSeries:
    """Ordered periodic (daily) simple returns for one asset."""

    symbol: str
    name: str
    returns: pd.Series

    def __post_init__(self) -> None:
        cleaned = pd.Series(self.returns, dtype=float).dropna()
        object.__setattr__(self, "returns", cleaned)

    def __len__(self) -> int:
        return int(self.returns.size)

    def values(self) -> np.ndarray:
        return self.returns.to_numpy(dtype=float)

    @classmethod
    def from_prices(cls, symbol: str, prices: pd.Series, name: str | None = None) -> "HistoricalReturnSeries":
        """Build a return series from a close-price series, dropping the leading gap."""
        ordered = pd.Series(prices, dtype=float).sort_index().ffill().dropna()
        returns = ordered.pct_change().dropna()
        return cls(symbol=symbol.upper().strip(), name=name or symbol, returns=returns)


def returns_from_price_panel(
    prices: pd.DataFrame,
    names: Mapping[str, str] | None = None,
) -> Dict[str, HistoricalReturnSeries]:
    """Split a wide price panel into one return series per column."""
    names = names or {}
    series: Dict[str, HistoricalReturnSeries] = {}
    for column in prices.columns:
        column_prices = prices[column].dropna()
        if column_prices.size < 2:
            continue  # a single price carries no return
        item = HistoricalReturnSeries.from_prices(str(column), column_prices, name=names.get(str(column)))
        series[item.symbol] = item
    return series
