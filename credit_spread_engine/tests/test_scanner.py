"""Tests for the batch ticker scanner."""

from datetime import timedelta

import pytest

from credit_spread_engine.config import ScannerFilters
from credit_spread_engine.models import MarketDataSnapshot
from credit_spread_engine.scanner import (
    EARNINGS_WINDOW,
    INDICATORS_UNAVAILABLE,
    INVALID_PRICE,
    IVR_UNAVAILABLE,
    NEUTRAL_TREND,
    NO_MARKET_DATA,
    ScannerEngine,
    scan_tickers,
)


def snapshot(ticker, price=150.0, iv_rank=40.0, ema10=155.0, rsi14=50.0, **kwargs):
    """Helper to create a snapshot, below its EMA by default."""
    return MarketDataSnapshot(
        ticker=ticker, price=price, iv_rank=iv_rank, ema10=ema10, rsi14=rsi14, **kwargs
    )


@pytest.fixture
def engine(filters):
    """Scanner with default filters."""
    return ScannerEngine(filters)


class TestEvaluateTicker:
    """Tests for ScannerEngine.evaluate_ticker."""

    def test_strong_candidate(self, engine, today):
        """Test high IVR below the EMA scores 45 and passes."""
        result = engine.evaluate_ticker("AAPL", snapshot("AAPL"), today)

        assert result.score == 45
        assert result.passes is True
        assert result.reasons == ()
        assert result.recommendations == (
            "Consider call spreads - price below 10-EMA",
            "Strong candidate for 2.5-wide spreads",
            "Target delta around 0.16",
            "Look for 5-7% credit",
        )

    def test_invalid_price(self, engine, today):
        """Test zero price short-circuits every other rule."""
        result = engine.evaluate_ticker("XYZ", snapshot("XYZ", price=0.0), today)

        assert result.score == 0
        assert result.passes is False
        assert result.reasons == (INVALID_PRICE,)
        assert result.recommendations == ()

    def test_negative_price(self, engine, today):
        """Test negative prices are treated as invalid."""
        result = engine.evaluate_ticker("XYZ", snapshot("XYZ", price=-1.0), today)
        assert result.reasons == (INVALID_PRICE,)

    def test_acceptable_ivr(self, engine, today):
        """Test IVR between min and preferred scores 20."""
        result = engine.evaluate_ticker("T", snapshot("T", iv_rank=30.0), today)

        assert result.score == 35
        assert result.reasons == ("IVR 30.0% acceptable but not optimal (prefer >=35%)",)
        assert result.passes is False

    def test_low_ivr(self, engine, today):
        """Test IVR below the minimum adds nothing."""
        result = engine.evaluate_ticker("T", snapshot("T", iv_rank=10.0), today)

        assert result.score == 15
        assert result.reasons == ("IVR 10.0% too low (need >=25%)",)

    def test_ivr_unavailable(self, engine, today):
        """Test missing IVR is a reason, not a crash."""
        result = engine.evaluate_ticker("T", snapshot("T", iv_rank=None), today)

        assert result.score == 15
        assert IVR_UNAVAILABLE in result.reasons

    def test_overbought(self, engine, today):
        """Test RSI above 65 with price above the EMA scores 10."""
        market = snapshot("T", price=160.0, ema10=155.0, rsi14=70.0)
        result = engine.evaluate_ticker("T", market, today)

        assert result.score == 40
        assert result.passes is True
        assert result.recommendations[0] == "Consider put spreads - RSI overbought"

    def test_neutral_trend(self, engine, today):
        """Test price above the EMA without overbought RSI."""
        market = snapshot("T", price=160.0, ema10=155.0, rsi14=50.0)
        result = engine.evaluate_ticker("T", market, today)

        assert result.score == 30
        assert result.reasons == (NEUTRAL_TREND,)

    @pytest.mark.parametrize("ema10,rsi14", [(None, 50.0), (155.0, None), (None, None)])
    def test_indicators_unavailable(self, engine, today, ema10, rsi14):
        """Test that both indicators are needed for the trend check."""
        market = snapshot("T", ema10=ema10, rsi14=rsi14)
        result = engine.evaluate_ticker("T", market, today)

        assert result.score == 30
        assert result.reasons == (INDICATORS_UNAVAILABLE,)

    def test_earnings_penalty(self, engine, today):
        """Test earnings 10 days out costs 50 points."""
        market = snapshot("T", earnings_date=today + timedelta(days=10))
        result = engine.evaluate_ticker("T", market, today)

        assert result.score == -5
        assert result.reasons == (EARNINGS_WINDOW,)
        assert result.passes is False

    def test_earnings_outside_window(self, engine, today):
        """Test earnings 20 days out are ignored."""
        market = snapshot("T", earnings_date=today + timedelta(days=20))
        assert engine.evaluate_ticker("T", market, today).score == 45

    def test_custom_filters_change_thresholds(self, today):
        """Test IVR tiers follow the configured thresholds."""
        engine = ScannerEngine(ScannerFilters(min_ivr=10, preferred_ivr=20, spread_width=5))
        result = engine.evaluate_ticker("T", snapshot("T", iv_rank=25.0), today)

        assert result.score == 45
        assert "Strong candidate for 5-wide spreads" in result.recommendations


class TestScanTickers:
    """Tests for ranking across a watchlist."""

    def test_missing_snapshot(self, engine, today):
        """Test a ticker without data gets a zero-score placeholder."""
        results = engine.scan_tickers(["AAPL", "GONE"], {"AAPL": snapshot("AAPL")}, today)

        assert [r.ticker for r in results] == ["AAPL", "GONE"]
        missing = results[1]
        assert missing.score == 0
        assert missing.passes is False
        assert missing.reasons == (NO_MARKET_DATA,)
        assert missing.market_data.price == 0.0

    def test_sorted_by_score(self, engine, today):
        """Test results are ordered highest score first."""
        data = {
            "AAPL": snapshot("AAPL"),
            "XYZ": snapshot("XYZ", price=0.0),
            "MID": snapshot("MID", iv_rank=30.0),
        }
        results = engine.scan_tickers(["XYZ", "MID", "AAPL"], data, today)

        assert [r.ticker for r in results] == ["AAPL", "MID", "XYZ"]
        assert [r.score for r in results] == [45, 35, 0]

    def test_ties_keep_watchlist_order(self, engine, today):
        """Test equal scores preserve input order."""
        neutral = dict(price=160.0, ema10=155.0, rsi14=50.0)
        data = {
            "AAA": snapshot("AAA", **neutral),
            "BBB": snapshot("BBB"),
            "CCC": snapshot("CCC", **neutral),
            "DDD": snapshot("DDD", **neutral),
        }
        results = engine.scan_tickers(["AAA", "BBB", "CCC", "DDD"], data, today)

        assert [r.ticker for r in results] == ["BBB", "AAA", "CCC", "DDD"]
        assert [r.score for r in results] == [45, 30, 30, 30]

    def test_empty_watchlist(self, engine, today):
        """Test scanning nothing returns nothing."""
        assert engine.scan_tickers([], {}, today) == []

    def test_function_interface_uses_default_filters(self, today):
        """Test module-level scan_tickers."""
        results = scan_tickers(["AAPL"], {"AAPL": snapshot("AAPL")}, today=today)
        assert results[0].score == 45


class TestGenerateRecommendations:
    """Tests for ScannerEngine.generate_recommendations."""

    def test_failing_result(self, engine, today):
        """Test that failing results get a single line."""
        result = engine.evaluate_ticker("XYZ", snapshot("XYZ", price=0.0), today)
        assert engine.generate_recommendations(result) == ["Does not meet criteria"]

    def test_passing_below_ema(self, engine, today):
        """Test the full line set for a bullish pass."""
        result = engine.evaluate_ticker("AAPL", snapshot("AAPL"), today)

        assert engine.generate_recommendations(result) == [
            "Meets basic criteria",
            "High IVR - excellent for premium selling",
            "Price below 10-EMA - good for call spreads",
            "Target 2.5-wide spreads",
            "Look for 5-7% credit",
        ]

    def test_passing_overbought(self, engine, today):
        """Test overbought tickers point at put spreads."""
        market = snapshot("T", price=160.0, ema10=155.0, rsi14=70.0)
        lines = engine.generate_recommendations(engine.evaluate_ticker("T", market, today))

        assert "RSI overbought - good for put spreads" in lines
        assert "Price below 10-EMA - good for call spreads" not in lines
