import numpy as np
import pytest

from analytics.extended import (
    annualized_volatility,
    calculate_cagr,
    calculate_salary_equivalent,
    calculate_success_rate,
    calculate_twrr,
    compute_extended_statistics,
    terminal_annualized_returns,
)
from tests.conftest import flat_band


def test_cagr_of_doubling_over_ten_years():
    assert calculate_cagr(1_000_000, 2_000_000, 10) == pytest.approx(0.0718, abs=1e-4)


def test_cagr_of_total_loss_is_minus_one():
    assert calculate_cagr(1_000_000, 0, 10) == -1.0
    assert calculate_cagr(1_000_000, -5_000, 10) == -1.0


def test_cagr_rejects_degenerate_horizon():
    with pytest.raises(ValueError):
        calculate_cagr(1_000_000, 2_000_000, 0)
    with pytest.raises(ValueError):
        calculate_cagr(0, 2_000_000, 10)


def test_salary_equivalent_at_top_bracket():
    result = calculate_salary_equivalent(100_000, 0.37)
    assert result.salary == pytest.approx(158_730, rel=1e-5)
    assert result.tax_savings == pytest.approx(58_730, rel=1e-4)


def test_salary_equivalent_without_withdrawal_is_zero():
    result = calculate_salary_equivalent(0, 0.37)
    assert result.salary == 0.0
    assert result.tax_savings == 0.0


def test_salary_equivalent_rejects_full_tax_rate():
    with pytest.raises(ValueError):
        calculate_salary_equivalent(100_000, 1.0)


def test_implied_returns_map_losses_to_minus_one():
    returns = terminal_annualized_returns([1_210_000, 1_000_000, 0], 1_000_000, 2)
    assert returns.tolist() == pytest.approx([0.1, 0.0, -1.0])


def test_volatility_is_return_scale_population_stddev():
    assert annualized_volatility([1_210_000, 1_000_000], 1_000_000, 2) == pytest.approx(0.05)


def test_volatility_of_identical_draws_is_zero():
    assert annualized_volatility([1_500_000] * 100, 1_000_000, 10) == 0.0


def test_volatility_of_empty_sample_is_zero():
    assert annualized_volatility([], 1_000_000, 10) == 0.0


def test_success_rate_counts_draws_above_start():
    assert calculate_success_rate([500_000, 1_500_000, 2_000_000], 1_000_000) == pytest.approx(200 / 3)
    assert calculate_success_rate([], 1_000_000) == 0.0


def test_twrr_chains_median_path():
    records = [flat_band(2, 121.0), flat_band(0, 100.0), flat_band(1, 110.0)]
    result = calculate_twrr(records)
    assert result.twrr == pytest.approx(0.10)
    assert result.cumulative_return == pytest.approx(0.21)
    assert result.period_returns == pytest.approx([0.10, 0.10])


def test_twrr_needs_two_records():
    result = calculate_twrr([flat_band(0, 100.0)])
    assert result.twrr == 0.0
    assert result.period_returns == []


def test_twrr_stops_at_exhausted_path():
    result = calculate_twrr([flat_band(0, 100.0), flat_band(1, 0.0), flat_band(2, 50.0)])
    assert result.period_returns == [-1.0]
    assert result.twrr == -1.0


def test_extended_statistics_are_finite(yearly_percentiles, terminal_values):
    stats = compute_extended_statistics(
        initial_value=1_000_000,
        years=10,
        terminal_values=terminal_values,
        yearly_percentiles=yearly_percentiles,
        median_terminal=float(np.median(terminal_values)),
        annual_withdrawal=50_000,
        effective_tax_rate=0.37,
    )
    assert all(np.isfinite(value) for value in stats.as_dict().values())
    assert stats.twrr.twrr == pytest.approx(0.07)


def test_extended_statistics_tolerate_empty_sample(yearly_percentiles):
    stats = compute_extended_statistics(1_000_000, 10, [], yearly_percentiles, 1_500_000, 0, 0.37)
    assert stats.annualized_volatility == 0.0
    assert stats.salary_equivalent.salary == 0.0
