import logging

import numpy as np
import pandas as pd
import pytest

from portfolio.returns import HistoricalReturnSeries
from portfolio.stats import (
    ESTIMATED_RETURN,
    ESTIMATED_VOLATILITY,
    TRADING_DAYS,
    annualize_daily_returns,
    asset_statistics_table,
    compute_asset_statistics,
)


def test_missing_symbol_returns_flagged_estimate(caplog):
    with caplog.at_level(logging.INFO, logger="portfolio.stats"):
        stats = compute_asset_statistics("XYZ", None)
    assert stats.is_estimate is True
    assert stats.expected_return == 0.08
    assert stats.volatility == 0.16
    assert "XYZ" in caplog.text


def test_empty_history_is_treated_as_missing():
    series = HistoricalReturnSeries(symbol="NEW", name="New Listing", returns=pd.Series([], dtype=float))
    stats = compute_asset_statistics("NEW", series)
    assert stats.is_estimate is True
    assert stats.name == "New Listing"
    assert (stats.expected_return, stats.volatility) == (ESTIMATED_RETURN, ESTIMATED_VOLATILITY)


def test_measured_statistics_annualize_daily_moments():
    daily = np.array([0.01, -0.005, 0.002, 0.0])
    series = HistoricalReturnSeries(symbol="SPY", name="S&P 500", returns=pd.Series(daily))
    stats = compute_asset_statistics("SPY", series)
    assert stats.is_estimate is False
    assert stats.observations == 4
    assert stats.expected_return == pytest.approx((1 + daily.mean()) ** TRADING_DAYS - 1)
    assert stats.volatility == pytest.approx(daily.std() * np.sqrt(TRADING_DAYS))


def test_constant_returns_have_zero_volatility():
    annual_return, annual_vol = annualize_daily_returns([0.001] * 30)
    assert annual_return == pytest.approx(1.001**252 - 1)
    assert annual_vol == pytest.approx(0.0)


def test_annualize_rejects_empty_series():
    with pytest.raises(ValueError):
        annualize_daily_returns([])


def test_table_never_fails_on_missing_symbols():
    history = {"SPY": HistoricalReturnSeries(symbol="SPY", name="S&P 500", returns=pd.Series([0.001, 0.002]))}
    table = asset_statistics_table(["SPY", "PRIVATE"], history)
    assert table["SPY"].is_estimate is False
    assert table["PRIVATE"].is_estimate is True
