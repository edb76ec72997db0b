"""Order-statistic helpers shared by every derived metric."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable

import numpy as np

BAND_LEVELS = (10, 25, 50, 75, 90)


class EmptyInputError(ValueError):
    """Raised when a statistic is requested over an empty sample."""


@dataclass
class PercentileBand:
    """Five-point summary of a sample (p10 through p90)."""

    p10: float
    p25: float
    p50: float
    p75: float
    p90: float

    def as_dict(self) -> Dict[str, float]:
        return {"p10": self.p10, "p25": self.p25, "p50": self.p50, "p75": self.p75, "p90": self.p90}


@dataclass
class PercentileSpectrum:
    """Worst / typical / best triplet shown on the spectrum bar."""

    p10: float
    p50: float
    p90: float

    def as_dict(self) -> Dict[str, float]:
        return {"p10": self.p10, "p50": self.p50, "p90": self.p90}


def to_array(sample: Iterable[float]) -> np.ndarray:
    if not isinstance(sample, (np.ndarray, list, tuple)):
        sample = list(sample)
    return np.asarray(sample, dtype=float).ravel()


def _as_array(sample: Iterable[float]) -> np.ndarray:
    arr = to_array(sample)
    if arr.size == 0:
        raise EmptyInputError("Cannot compute a statistic over an empty sample")
    return arr


def percentile(sample: Iterable[float], p: float) -> float:
    """Value at rank ``p`` (0-100) using linear interpolation between order statistics."""
    if not 0 <= p <= 100:
        raise ValueError(f"Percentile rank must be within [0, 100], received {p}")
    arr = _as_array(sample)
    return float(np.percentile(arr, p, method="linear"))


def mean(sample: Iterable[float]) -> float:
    return float(np.mean(_as_array(sample)))


def stddev(sample: Iterable[float]) -> float:
    """Population (divide-by-N) standard deviation; exactly 0.0 when every draw is equal."""
    arr = _as_array(sample)
    if np.ptp(arr) == 0:
        return 0.0
    return float(np.std(arr, ddof=0))


def percentile_band(sample: Iterable[float]) -> PercentileBand:
    """P10..P90 of a sample; an empty sample yields an all-zero band ("no data")."""
    arr = to_array(sample)
    if arr.size == 0:
        return PercentileBand(0.0, 0.0, 0.0, 0.0, 0.0)
    p10, p25, p50, p75, p90 = np.percentile(arr, BAND_LEVELS, method="linear")
    return PercentileBand(p10=float(p10), p25=float(p25), p50=float(p50), p75=float(p75), p90=float(p90))


def percentile_spectrum(sample: Iterable[float]) -> PercentileSpectrum:
    band = percentile_band(sample)
    return PercentileSpectrum(p10=band.p10, p50=band.p50, p90=band.p90)
