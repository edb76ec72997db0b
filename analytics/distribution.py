"""Histogram binning for the terminal net worth distribution."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

import numpy as np

from analytics.percentiles import to_array

logger = logging.getLogger(__name__)

DEFAULT_BIN_COUNT = 20


@dataclass
class HistogramBin:
    min: float
    max: float
    count: int

    def as_dict(self) -> Dict[str, float]:
        return {"min": self.min, "max": self.max, "count": self.count}


@dataclass
class Histogram:
    """Ordered bins plus their common width; no bins means no data."""

    bins: List[HistogramBin] = field(default_factory=list)
    bin_width: float = 0.0

    @property
    def total(self) -> int:
        return sum(b.count for b in self.bins)

    def as_dict(self) -> Dict:
        return {"bins": [b.as_dict() for b in self.bins], "bin_width": self.bin_width}


def create_histogram_bins(values: Iterable[float], bin_count: int = DEFAULT_BIN_COUNT) -> Histogram:
    """Bin ``values`` into ``bin_count`` equal-width buckets spanning [min, max]."""
    if bin_count < 1:
        raise ValueError(f"Bin count must be at least 1, received {bin_count}")
    arr = to_array(values)
    if arr.size == 0:
        return Histogram(bins=[], bin_width=0.0)

    lo = float(arr.min())
    hi = float(arr.max())
    if lo == hi:
        logger.debug("Degenerate sample of %d identical values; emitting a single unit-width bin", arr.size)
        return Histogram(bins=[HistogramBin(min=lo, max=lo + 1, count=int(arr.size))], bin_width=1.0)

    width = (hi - lo) / bin_count
    # the maximum lands exactly on bin_count, so it is folded into the last bin
    indices = np.minimum(np.floor((arr - lo) / width).astype(int), bin_count - 1)
    counts = np.bincount(indices, minlength=bin_count)
    bins = [
        HistogramBin(min=lo + i * width, max=lo + (i + 1) * width, count=int(counts[i]))
        for i in range(bin_count)
    ]
    return Histogram(bins=bins, bin_width=width)
