"""Tests for trend indicators."""

import numpy as np
import pandas as pd
import pytest

from credit_spread_engine.indicators import (
    calculate_ema,
    calculate_rsi,
    latest_ema,
    latest_rsi,
    latest_value,
)


class TestCalculateEMA:
    """Tests for calculate_ema function."""

    def test_constant_series(self):
        """Test EMA of a flat series equals the price."""
        series = pd.Series([50.0] * 20)
        assert calculate_ema(series, 10).iloc[-1] == pytest.approx(50.0)

    def test_first_value_seeds(self):
        """Test that the first EMA value equals the first price."""
        series = pd.Series([10.0, 20.0, 30.0])
        assert calculate_ema(series, 10).iloc[0] == 10.0

    def test_smoothing(self):
        """Test the span-based smoothing step."""
        series = pd.Series([10.0, 21.0])
        alpha = 2 / (10 + 1)
        assert calculate_ema(series, 10).iloc[1] == pytest.approx(10.0 + alpha * 11.0)

    def test_input_unchanged(self):
        """Test that the input series is not modified."""
        series = pd.Series([1.0, 2.0, 3.0])
        calculate_ema(series, 10)
        assert series.tolist() == [1.0, 2.0, 3.0]


class TestCalculateRSI:
    """Tests for calculate_rsi function."""

    def test_warmup_is_nan(self):
        """Test RSI is undefined before `period` changes."""
        rsi = calculate_rsi(pd.Series(np.arange(10, dtype=float)), 14)
        assert rsi.isna().all()

    def test_all_gains(self):
        """Test a strictly rising series reads 100."""
        rsi = calculate_rsi(pd.Series(np.arange(1, 31, dtype=float)), 14)
        assert rsi.iloc[-1] == 100.0

    def test_flat(self):
        """Test a flat series reads neutral 50."""
        rsi = calculate_rsi(pd.Series([42.0] * 30), 14)
        assert rsi.iloc[-1] == 50.0

    def test_bounded(self):
        """Test RSI stays within 0-100 on mixed moves."""
        rng = np.random.default_rng(7)
        close = pd.Series(100 + rng.normal(0, 1, 100).cumsum())
        rsi = calculate_rsi(close, 14).dropna()
        assert ((rsi >= 0) & (rsi <= 100)).all()

    def test_falling_series_is_low(self):
        """Test a falling series has RSI well under 50."""
        close = pd.Series(np.linspace(100, 70, 40))
        assert calculate_rsi(close, 14).iloc[-1] < 30


class TestLatestHelpers:
    """Tests for latest_* helpers."""

    def test_latest_value_empty(self):
        """Test empty series returns None."""
        assert latest_value(pd.Series([], dtype=float)) is None

    def test_latest_value_nan(self):
        """Test a trailing NaN returns None."""
        assert latest_value(pd.Series([1.0, np.nan])) is None

    def test_latest_value(self):
        """Test the last value is returned as a float."""
        value = latest_value(pd.Series([1, 2, 3]))
        assert value == 3.0
        assert isinstance(value, float)

    def test_latest_ema_short_history(self):
        """Test fewer closes than the period returns None."""
        assert latest_ema(pd.Series([1.0] * 9)) is None

    def test_latest_ema(self):
        """Test EMA with enough history."""
        assert latest_ema(pd.Series([5.0] * 10)) == pytest.approx(5.0)

    def test_latest_rsi_short_history(self):
        """Test RSI without enough closes returns None."""
        assert latest_rsi(pd.Series([1.0, 2.0, 3.0])) is None

    def test_latest_rsi(self):
        """Test RSI with enough history."""
        assert latest_rsi(pd.Series(np.arange(1, 31, dtype=float))) == 100.0
