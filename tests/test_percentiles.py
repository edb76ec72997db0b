import math

import numpy as np
import pytest

from analytics.percentiles import (
    EmptyInputError,
    mean,
    percentile,
    percentile_band,
    percentile_spectrum,
    stddev,
)


def test_percentile_interpolates_linearly():
    assert percentile([1, 2, 3, 4, 5], 50) == 3
    assert percentile([1, 2, 3, 4], 50) == pytest.approx(2.5)
    assert percentile([10, 20], 25) == pytest.approx(12.5)


def test_percentile_endpoints_are_min_and_max():
    sample = [7.0, -2.0, 15.0, 3.0]
    assert percentile(sample, 0) == -2.0
    assert percentile(sample, 100) == 15.0


def test_percentile_is_monotonic_in_rank():
    sample = np.random.default_rng(7).normal(size=2_000)
    values = [percentile(sample, p) for p in (10, 25, 50, 75, 90)]
    assert values == sorted(values)


def test_percentile_rejects_empty_sample():
    with pytest.raises(EmptyInputError):
        percentile([], 50)
    # callers guarding with ValueError still catch it
    with pytest.raises(ValueError):
        percentile(np.array([]), 50)


@pytest.mark.parametrize("rank", [-1, 100.5])
def test_percentile_rejects_rank_outside_range(rank):
    with pytest.raises(ValueError):
        percentile([1, 2, 3], rank)


def test_mean_and_stddev_use_population_definition():
    assert mean([1, 2, 3, 4]) == pytest.approx(2.5)
    assert stddev([1, 2, 3, 4]) == pytest.approx(math.sqrt(1.25))


def test_stddev_of_single_value_is_zero():
    assert stddev([42.0]) == 0.0


def test_stddev_of_repeated_large_value_is_exactly_zero():
    # the float mean of equal draws need not equal the draw itself
    assert stddev([1_500_000.0 * 1.0000001] * 100) == 0.0
    assert stddev([0.1] * 7) == 0.0


def test_mean_and_stddev_reject_empty_input():
    with pytest.raises(EmptyInputError):
        mean([])
    with pytest.raises(EmptyInputError):
        stddev([])


def test_band_of_empty_sample_is_all_zero():
    band = percentile_band([])
    assert band.as_dict() == {"p10": 0.0, "p25": 0.0, "p50": 0.0, "p75": 0.0, "p90": 0.0}


def test_spectrum_matches_band_ranks():
    spectrum = percentile_spectrum(np.linspace(0, 100, 101))
    assert spectrum.p10 == pytest.approx(10)
    assert spectrum.p50 == pytest.approx(50)
    assert spectrum.p90 == pytest.approx(90)


def test_accepts_generators():
    assert percentile((x for x in range(11)), 50) == 5
