import logging

import pytest

from strategy.comparison import BBD_HEADLINE, SELL_HEADLINE, compare_leveraged_run, compare_strategies
from strategy.sell import SellStrategyConfig, SellStrategyResult, calculate_sell_strategy


def _sell(terminal, taxes=300_000, dividend_taxes=50_000):
    return SellStrategyResult(
        terminal_net_worth=terminal,
        success_rate=95.0,
        lifetime_taxes=taxes,
        lifetime_dividend_taxes=dividend_taxes,
        total_lifetime_taxes=taxes + dividend_taxes,
        primary_risk="Sequence Risk",
        terminal_p10=terminal * 0.6,
        terminal_p90=terminal * 1.5,
        depletion_probability=5.0,
    )


def _compare(bbd_terminal, sell_terminal, margin=5.0, sampler_advantage=None):
    return compare_strategies(
        bbd_terminal_net_worth=bbd_terminal,
        bbd_success_rate=90.0,
        cumulative_interest=100_000,
        margin_call_probability=margin,
        sell=_sell(sell_terminal),
        bbd_net_estate=2_100_000,
        sampler_advantage=sampler_advantage,
    )


def test_borrowing_wins_when_it_ends_richer():
    report = _compare(2_000_000, 1_500_000)
    assert report.bbd_better
    assert report.verdict.recommendation == "bbd"
    assert report.verdict.headline == BBD_HEADLINE
    assert report.verdict.confidence == 90.0
    assert report.advantage_percent == pytest.approx(100 / 3)
    assert "33.3%" in report.verdict.rationale


def test_wealth_differential():
    report = _compare(2_000_000, 1_500_000)
    assert report.differential.bbd_vs_sell == 500_000
    assert report.differential.tax_savings == 200_000
    assert report.differential.estate_value == 2_100_000
    assert report.insights.tax_deferral_benefit == 350_000
    assert report.insights.compounding_advantage == 300_000


def test_selling_wins_when_borrowing_ends_poorer():
    report = _compare(1_000_000, 1_500_000)
    assert not report.bbd_better
    assert report.verdict.recommendation == "sell"
    assert report.verdict.headline == SELL_HEADLINE
    # measured against the losing borrow strategy
    assert report.advantage_percent == pytest.approx(50.0)
    assert report.insights.compounding_advantage == 0.0


def test_tie_is_not_a_borrow_win():
    assert _compare(1_500_000, 1_500_000).verdict.recommendation == "sell"


def test_exhausted_loser_has_no_percentage():
    report = _compare(2_000_000, 0.0)
    assert report.advantage_percent is None
    assert "exhausts" in report.verdict.rationale


def test_tax_savings_never_negative():
    report = compare_strategies(2_000_000, 90.0, 900_000, 0.0, _sell(1_000_000), 2_000_000)
    assert report.differential.tax_savings == 0.0


def test_risk_label_follows_margin_call_probability():
    assert _compare(2_000_000, 1_500_000, margin=12.34).bbd.primary_risk == "Margin Call (12.3%)"
    assert _compare(2_000_000, 1_500_000, margin=0.0).bbd.primary_risk.startswith("Low")


def test_sign_disagreement_with_sampler_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="strategy.comparison"):
        report = _compare(2_000_000, 1_500_000, sampler_advantage=-10_000)
    assert report.consistent_with_estate is False
    assert "disagrees" in caplog.text


def test_leveraged_run_is_compared(leveraged_output):
    sell = calculate_sell_strategy(
        SellStrategyConfig(initial_value=1_000_000, annual_withdrawal=50_000, withdrawal_growth=0.03, time_horizon=10),
        leveraged_output.yearly_percentiles,
    )
    report = compare_leveraged_run(leveraged_output, sell)
    expected_bbd = leveraged_output.statistics.median - leveraged_output.loan_trajectory.terminal_loan_balance()
    assert report.bbd.terminal_net_worth == pytest.approx(expected_bbd)
    assert report.bbd.lifetime_cost == pytest.approx(leveraged_output.loan_trajectory.terminal_interest())
    assert report.bbd.primary_risk == "Margin Call (15.0%)"


def test_non_leveraged_run_has_no_comparison(base_output):
    assert compare_leveraged_run(base_output, _sell(1_000_000)) is None
