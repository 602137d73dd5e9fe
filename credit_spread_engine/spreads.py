"""
Spread construction for vertical credit spreads.

Selects the short leg by delta-targeting and the long leg by exact
strike width, then prices the spread at the legs' mids.
"""

import logging
import math
from typing import Optional, Sequence

from credit_spread_engine.exceptions import (
    InsufficientOptionsError,
    NoMatchingLongLegError,
)
from credit_spread_engine.models import (
    VALID_SIDES,
    OptionChainSnapshot,
    OptionQuote,
    Spread,
)

logger = logging.getLogger(__name__)


def select_short_leg(quotes: Sequence[OptionQuote], target_delta: float) -> OptionQuote:
    """
    Pick the quote whose delta is closest to target_delta.

    Ties go to the earliest quote in chain order.

    Args:
        quotes: Quotes for one side of the chain
        target_delta: Delta to target

    Returns:
        The selected short leg
    """
    # sorted() is stable, so equal distances keep chain order
    ranked = sorted(quotes, key=lambda q: abs(q.delta - target_delta))
    return ranked[0]


def find_long_leg(
    quotes: Sequence[OptionQuote],
    short_leg: OptionQuote,
    width: float,
    side: str,
) -> Optional[OptionQuote]:
    """
    Find the first quote, in chain order, exactly width away from the short strike.

    The long leg sits further out of the money: above the short strike for
    calls, below it for puts. Matching is by numeric equality of the strike
    distance, not nearest match.

    Args:
        quotes: Quotes for one side of the chain
        short_leg: The selected short leg
        width: Required strike distance
        side: 'call' or 'put'

    Returns:
        The long leg or None if no strike is exactly width away
    """
    direction = 1 if side == "call" else -1
    for quote in quotes:
        if (quote.strike - short_leg.strike) * direction == width:
            return quote
    return None


def price_spread(
    ticker: str,
    side: str,
    short_leg: OptionQuote,
    long_leg: OptionQuote,
    width: float,
) -> Spread:
    """
    Compute credit, risk and breakeven for a pair of legs.

    Args:
        ticker: Underlying symbol
        side: 'call' or 'put'
        short_leg: Sold option
        long_leg: Bought option
        width: Strike width

    Returns:
        Priced Spread
    """
    credit = short_leg.mid
    debit = long_leg.mid
    net_credit = credit - debit

    max_risk = width - net_credit
    max_profit = net_credit
    credit_percent = net_credit / width * 100

    if max_risk == 0:
        risk_reward_ratio = math.inf
    else:
        risk_reward_ratio = max_profit / max_risk

    if side == "call":
        breakeven = short_leg.strike + net_credit
    else:
        breakeven = short_leg.strike - net_credit

    return Spread(
        ticker=ticker,
        side=side,
        short_leg=short_leg,
        long_leg=long_leg,
        credit=credit,
        debit=debit,
        net_credit=net_credit,
        max_risk=max_risk,
        max_profit=max_profit,
        credit_percent=credit_percent,
        risk_reward_ratio=risk_reward_ratio,
        breakeven=breakeven,
    )


def build_spread(
    chain: OptionChainSnapshot,
    side: str,
    target_delta: float,
    width: float,
) -> Spread:
    """
    Build a credit spread from an option chain snapshot.

    Args:
        chain: Option chain for one ticker and expiration
        side: 'call' or 'put'
        target_delta: Delta targeted for the short leg
        width: Exact strike width of the spread

    Returns:
        Spread with full risk/reward economics

    Raises:
        InsufficientOptionsError: Fewer than 2 quotes on the requested side
        NoMatchingLongLegError: No strike exactly width from the short strike
    """
    if side not in VALID_SIDES:
        raise ValueError(f"Invalid side: {side}")
    if width <= 0:
        raise ValueError("width must be positive")

    quotes = chain.quotes_for(side)
    if len(quotes) < 2:
        raise InsufficientOptionsError(chain.ticker, side, len(quotes))

    short_leg = select_short_leg(quotes, target_delta)
    logger.debug(
        f"{chain.ticker} {side}: short strike {short_leg.strike} "
        f"(delta {short_leg.delta:.3f}, target {target_delta})"
    )

    long_leg = find_long_leg(quotes, short_leg, width, side)
    if long_leg is None:
        raise NoMatchingLongLegError(chain.ticker, side, short_leg.strike, width)

    spread = price_spread(chain.ticker, side, short_leg, long_leg, width)

    logger.info(
        f"Built {chain.ticker} {side} spread {short_leg.strike}/{long_leg.strike} "
        f"for ${spread.net_credit:.2f} net credit"
    )
    return spread
