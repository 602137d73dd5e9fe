"""
Batch ticker scanner.

Triages a watchlist of underlyings before any spread is constructed:
each ticker gets an IVR / trend / earnings score, a pass/fail verdict and
narrative recommendations. Results are ranked by score, highest first,
with ties kept in watchlist order.
"""

import logging
from datetime import date
from typing import Iterable, List, Mapping, Optional

from credit_spread_engine.config import ScannerFilters
from credit_spread_engine.dates import is_within_earnings_window
from credit_spread_engine.models import MarketDataSnapshot, ScannerResult

logger = logging.getLogger(__name__)

PREFERRED_IVR_POINTS = 30
ACCEPTABLE_IVR_POINTS = 20
BELOW_EMA_POINTS = 15
OVERBOUGHT_POINTS = 10
OVERBOUGHT_RSI = 65
EARNINGS_PENALTY = 50

PASSING_SCORE = 40
MAX_REASONS = 3

NO_MARKET_DATA = "no market data available"
INVALID_PRICE = "invalid or missing price data"
IVR_UNAVAILABLE = "IVR data not available"
INDICATORS_UNAVAILABLE = "technical indicators not available"
NEUTRAL_TREND = "neutral trend - price above 10-EMA, RSI not overbought"
EARNINGS_WINDOW = "within earnings window — avoid trading"


def _format_percent(fraction: float) -> str:
    return f"{fraction * 100:g}"


class ScannerEngine:
    """
    Scores underlyings against a set of screening filters.

    Example usage:
        engine = ScannerEngine(create_default_filters())
        for result in engine.scan_tickers(["SPY", "QQQ"], snapshots):
            print(result.ticker, result.score, result.passes)
    """

    def __init__(self, filters: ScannerFilters) -> None:
        self.filters = filters

    def scan_tickers(
        self,
        tickers: Iterable[str],
        market_data_by_ticker: Mapping[str, MarketDataSnapshot],
        today: Optional[date] = None,
    ) -> List[ScannerResult]:
        """
        Evaluate every ticker and rank the results.

        Tickers without a snapshot get a failing zero-score result rather
        than an error.

        Args:
            tickers: Watchlist, in display order
            market_data_by_ticker: Snapshots keyed by ticker
            today: Reference date for the earnings window (default: date.today())

        Returns:
            ScannerResults sorted by score descending, stable on ties
        """
        results = []

        for ticker in tickers:
            market_data = market_data_by_ticker.get(ticker)
            if market_data is None:
                logger.warning(f"No market data for {ticker}")
                results.append(ScannerResult(
                    ticker=ticker,
                    market_data=MarketDataSnapshot.placeholder(ticker),
                    passes=False,
                    score=0,
                    reasons=(NO_MARKET_DATA,),
                ))
                continue

            results.append(self.evaluate_ticker(ticker, market_data, today))

        # sorted() is stable: equal scores keep watchlist order
        ranked = sorted(results, key=lambda r: r.score, reverse=True)

        passing = sum(1 for r in ranked if r.passes)
        logger.info(f"Scanned {len(ranked)} tickers, {passing} passing")

        return ranked

    def evaluate_ticker(
        self,
        ticker: str,
        market_data: MarketDataSnapshot,
        today: Optional[date] = None,
    ) -> ScannerResult:
        """
        Score a single ticker.

        Args:
            ticker: Underlying symbol
            market_data: Snapshot for the ticker
            today: Reference date for the earnings window

        Returns:
            ScannerResult
        """
        filters = self.filters
        reasons = []
        recommendations = []
        score = 0

        if market_data.price <= 0:
            return ScannerResult(
                ticker=ticker,
                market_data=market_data,
                passes=False,
                score=0,
                reasons=(INVALID_PRICE,),
            )

        ivr = market_data.iv_rank
        if ivr is None:
            reasons.append(IVR_UNAVAILABLE)
        elif ivr >= filters.preferred_ivr:
            score += PREFERRED_IVR_POINTS
        elif ivr >= filters.min_ivr:
            score += ACCEPTABLE_IVR_POINTS
            reasons.append(
                f"IVR {ivr:.1f}% acceptable but not optimal "
                f"(prefer >={filters.preferred_ivr:g}%)"
            )
        else:
            reasons.append(f"IVR {ivr:.1f}% too low (need >={filters.min_ivr:g}%)")

        if market_data.ema10 is not None and market_data.rsi14 is not None:
            if market_data.price < market_data.ema10:
                score += BELOW_EMA_POINTS
                recommendations.append("Consider call spreads - price below 10-EMA")
            elif market_data.rsi14 > OVERBOUGHT_RSI:
                score += OVERBOUGHT_POINTS
                recommendations.append("Consider put spreads - RSI overbought")
            else:
                reasons.append(NEUTRAL_TREND)
        else:
            reasons.append(INDICATORS_UNAVAILABLE)

        if is_within_earnings_window(market_data.earnings_date, today):
            reasons.append(EARNINGS_WINDOW)
            score -= EARNINGS_PENALTY

        passes = score >= PASSING_SCORE and len(reasons) <= MAX_REASONS

        if passes:
            recommendations.append(
                f"Strong candidate for {filters.spread_width:g}-wide spreads"
            )
            recommendations.append(f"Target delta around {filters.target_delta:g}")
            recommendations.append(
                f"Look for {_format_percent(filters.min_credit_percent)}-"
                f"{_format_percent(filters.max_credit_percent)}% credit"
            )

        logger.debug(f"{ticker}: scan score {score}, passes={passes}")

        return ScannerResult(
            ticker=ticker,
            market_data=market_data,
            passes=passes,
            score=score,
            reasons=tuple(reasons),
            recommendations=tuple(recommendations),
        )

    def generate_recommendations(self, result: ScannerResult) -> List[str]:
        """
        Build the detailed recommendation list shown alongside a scan result.

        Args:
            result: A result produced by this engine

        Returns:
            Ordered list of recommendation lines
        """
        filters = self.filters
        market_data = result.market_data

        if not result.passes:
            return ["Does not meet criteria"]

        lines = ["Meets basic criteria"]

        if market_data.iv_rank is not None and market_data.iv_rank >= filters.preferred_ivr:
            lines.append("High IVR - excellent for premium selling")
        if market_data.ema10 is not None and market_data.price < market_data.ema10:
            lines.append("Price below 10-EMA - good for call spreads")
        if market_data.rsi14 is not None and market_data.rsi14 > OVERBOUGHT_RSI:
            lines.append("RSI overbought - good for put spreads")

        lines.append(f"Target {filters.spread_width:g}-wide spreads")
        lines.append(
            f"Look for {_format_percent(filters.min_credit_percent)}-"
            f"{_format_percent(filters.max_credit_percent)}% credit"
        )
        return lines


def scan_tickers(
    tickers: Iterable[str],
    market_data_by_ticker: Mapping[str, MarketDataSnapshot],
    filters: Optional[ScannerFilters] = None,
    today: Optional[date] = None,
) -> List[ScannerResult]:
    """
    Simple function interface to the scanner.

    Args:
        tickers: Watchlist, in display order
        market_data_by_ticker: Snapshots keyed by ticker
        filters: Screening filters (default: ScannerFilters())
        today: Reference date for the earnings window

    Returns:
        ScannerResults sorted by score descending, stable on ties
    """
    if filters is None:
        filters = ScannerFilters()
    return ScannerEngine(filters).scan_tickers(tickers, market_data_by_ticker, today)
