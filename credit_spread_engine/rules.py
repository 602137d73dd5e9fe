"""
Single-trade rule check.

Additive scorer used as the final gate before a spread is placed. Its
weights are independent of the ticker scanner's: the scanner triages
underlyings, this check grades one concrete trade.
"""

import logging
from datetime import date
from typing import Optional

from credit_spread_engine.dates import days_until, is_within_earnings_window
from credit_spread_engine.models import MarketDataSnapshot, TradeData, TradeValidation

logger = logging.getLogger(__name__)

MIN_DTE = 7
MAX_DTE = 10
DTE_POINTS = 20

PREFERRED_IVR = 35
MIN_IVR = 25
PREFERRED_IVR_POINTS = 25
ACCEPTABLE_IVR_POINTS = 15

MIN_DELTA = 0.15
MAX_DELTA = 0.20
DELTA_POINTS = 20

MIN_CREDIT_PERCENT = 5.0
MAX_CREDIT_PERCENT = 7.0
CREDIT_POINTS = 20

BELOW_EMA_POINTS = 10
OVERBOUGHT_POINTS = 5
OVERBOUGHT_RSI = 65

EARNINGS_PENALTY = 30

PASSING_SCORE = 60
MAX_REASONS = 2


def validate_trade(
    ticker: str,
    market_data: MarketDataSnapshot,
    trade_data: TradeData,
    today: Optional[date] = None,
) -> TradeValidation:
    """
    Score a single trade against the fixed trade rules.

    Reasons accumulate regardless of the verdict and the score may go
    negative. A trade passes with a score of at least 60 and no more
    than two reasons.

    Args:
        ticker: Underlying symbol
        market_data: Snapshot for the underlying
        trade_data: DTE, short delta, credit, width and side of the trade
        today: Reference date for the earnings window (default: date.today())

    Returns:
        TradeValidation
    """
    reasons = []
    score = 0

    if MIN_DTE <= trade_data.dte <= MAX_DTE:
        score += DTE_POINTS
    else:
        reasons.append(f"DTE {trade_data.dte} outside preferred range ({MIN_DTE}-{MAX_DTE})")

    ivr = market_data.iv_rank
    if ivr is not None:
        if ivr >= PREFERRED_IVR:
            score += PREFERRED_IVR_POINTS
        elif ivr >= MIN_IVR:
            score += ACCEPTABLE_IVR_POINTS
            reasons.append(
                f"IVR {ivr:.1f}% is acceptable but not optimal (prefer >={PREFERRED_IVR}%)"
            )
        else:
            reasons.append(f"IVR {ivr:.1f}% too low (need >={MIN_IVR}%)")

    # Put deltas arrive negative; the band applies to magnitude
    delta = abs(trade_data.delta)
    if MIN_DELTA <= delta <= MAX_DELTA:
        score += DELTA_POINTS
    else:
        reasons.append(
            f"Delta {delta:.3f} outside target range ({MIN_DELTA:.2f}-{MAX_DELTA:.2f})"
        )

    credit_percent = trade_data.credit / trade_data.width * 100
    if MIN_CREDIT_PERCENT <= credit_percent <= MAX_CREDIT_PERCENT:
        score += CREDIT_POINTS
    else:
        reasons.append(
            f"Credit {credit_percent:.1f}% outside preferred range "
            f"({MIN_CREDIT_PERCENT:.0f}-{MAX_CREDIT_PERCENT:.0f}%)"
        )

    if trade_data.side == "call":
        below_ema = market_data.ema10 is not None and market_data.price < market_data.ema10
        overbought = market_data.rsi14 is not None and market_data.rsi14 > OVERBOUGHT_RSI
        if below_ema:
            score += BELOW_EMA_POINTS
        elif overbought:
            score += OVERBOUGHT_POINTS
            reasons.append("Price above 10-EMA, RSI > 65 - consider put spreads instead")
        else:
            reasons.append("Call spread not ideal - price above 10-EMA and RSI not overbought")

    if is_within_earnings_window(market_data.earnings_date, today):
        days = days_until(market_data.earnings_date, today)
        reasons.append(f"Earnings in {days} days - avoid trade")
        score -= EARNINGS_PENALTY

    passes = score >= PASSING_SCORE and len(reasons) <= MAX_REASONS

    logger.debug(f"{ticker}: trade score {score}, passes={passes}, {len(reasons)} reason(s)")

    return TradeValidation(passes=passes, reasons=tuple(reasons), score=score)
