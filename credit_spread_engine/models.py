"""
Data models for the credit spread engine.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, Optional

Side = Literal["call", "put"]

VALID_SIDES = ("call", "put")


def _round_or_none(value: Optional[float], digits: int) -> Optional[float]:
    return round(value, digits) if value is not None else None


@dataclass(frozen=True)
class MarketDataSnapshot:
    """
    Point-in-time market data for an underlying.

    Optional fields are None when the provider could not supply them;
    zero is a real value, never a stand-in for "unknown".

    Attributes:
        ticker: Underlying symbol
        price: Last price (0 marks a failed fetch placeholder)
        implied_vol: Implied volatility (0-1 scale)
        iv_rank: Implied volatility rank (0-100)
        ema10: 10-period exponential moving average of closes
        rsi14: 14-period RSI (0-100)
        earnings_date: Next earnings date
        observed_at: When the snapshot was taken
    """
    ticker: str
    price: float
    implied_vol: Optional[float] = None
    iv_rank: Optional[float] = None
    ema10: Optional[float] = None
    rsi14: Optional[float] = None
    earnings_date: Optional[date] = None
    observed_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def placeholder(cls, ticker: str) -> "MarketDataSnapshot":
        """Zero-price snapshot standing in for a ticker whose fetch failed."""
        return cls(ticker=ticker, price=0.0)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "ticker": self.ticker,
            "price": round(self.price, 2),
            "implied_vol": _round_or_none(self.implied_vol, 4),
            "iv_rank": _round_or_none(self.iv_rank, 2),
            "ema10": _round_or_none(self.ema10, 2),
            "rsi14": _round_or_none(self.rsi14, 2),
            "earnings_date": self.earnings_date.isoformat() if self.earnings_date else None,
            "observed_at": self.observed_at.isoformat(),
        }


@dataclass(frozen=True)
class OptionQuote:
    """
    A single option contract quote with provider-supplied greeks.

    Attributes:
        strike: Strike price
        bid: Bid price
        ask: Ask price
        delta: Option delta (signed)
        gamma: Option gamma
        theta: Option theta (signed)
        vega: Option vega
        implied_vol: Implied volatility (0-1 scale)
        volume: Trading volume
        open_interest: Open interest
    """
    strike: float
    bid: float
    ask: float
    delta: float
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    implied_vol: float = 0.0
    volume: int = 0
    open_interest: int = 0

    @property
    def mid(self) -> float:
        """Mid price ((bid + ask) / 2)."""
        return (self.bid + self.ask) / 2

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "strike": self.strike,
            "bid": self.bid,
            "ask": self.ask,
            "mid": round(self.mid, 4),
            "delta": round(self.delta, 4),
            "gamma": round(self.gamma, 4),
            "theta": round(self.theta, 4),
            "vega": round(self.vega, 4),
            "implied_vol": round(self.implied_vol, 4),
            "volume": self.volume,
            "open_interest": self.open_interest,
        }


@dataclass(frozen=True)
class OptionChainSnapshot:
    """Calls and puts for one ticker and expiration, in provider order."""
    ticker: str
    expiry: date
    calls: tuple = ()
    puts: tuple = ()

    def __post_init__(self) -> None:
        # Freeze whatever sequence the provider handed over
        object.__setattr__(self, "calls", tuple(self.calls))
        object.__setattr__(self, "puts", tuple(self.puts))

    def quotes_for(self, side: str) -> tuple:
        """Quotes for 'call' or 'put'."""
        if side == "call":
            return self.calls
        if side == "put":
            return self.puts
        raise ValueError(f"Invalid side: {side}")


@dataclass(frozen=True)
class Spread:
    """
    A vertical credit spread built from one chain snapshot.

    credit is the short leg's mid, debit the long leg's mid; every other
    figure is per share and derived from those and the strike width.
    risk_reward_ratio is math.inf when max_risk is zero.
    """
    ticker: str
    side: str
    short_leg: OptionQuote
    long_leg: OptionQuote
    credit: float
    debit: float
    net_credit: float
    max_risk: float
    max_profit: float
    credit_percent: float
    risk_reward_ratio: float
    breakeven: float

    @property
    def width(self) -> float:
        """Distance between the two strikes."""
        return abs(self.long_leg.strike - self.short_leg.strike)

    @property
    def has_defined_reward_ratio(self) -> bool:
        """False when max_risk is zero and the ratio is unbounded."""
        return not math.isinf(self.risk_reward_ratio)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "ticker": self.ticker,
            "side": self.side,
            "short_strike": self.short_leg.strike,
            "long_strike": self.long_leg.strike,
            "width": self.width,
            "short_delta": round(self.short_leg.delta, 4),
            "long_delta": round(self.long_leg.delta, 4),
            "credit": round(self.credit, 4),
            "debit": round(self.debit, 4),
            "net_credit": round(self.net_credit, 4),
            "max_risk": round(self.max_risk, 4),
            "max_profit": round(self.max_profit, 4),
            "credit_percent": round(self.credit_percent, 2),
            "risk_reward_ratio": (
                round(self.risk_reward_ratio, 4) if self.has_defined_reward_ratio else None
            ),
            "breakeven": round(self.breakeven, 4),
        }


@dataclass(frozen=True)
class FeeBreakdown:
    """Fees for one side (entry or exit) of a trade, in dollars."""
    commission: float
    clearing_fee: float
    regulatory_fees: float
    total: float

    def __add__(self, other: "FeeBreakdown") -> "FeeBreakdown":
        return FeeBreakdown(
            commission=self.commission + other.commission,
            clearing_fee=self.clearing_fee + other.clearing_fee,
            regulatory_fees=self.regulatory_fees + other.regulatory_fees,
            total=self.total + other.total,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "commission": round(self.commission, 6),
            "clearing_fee": round(self.clearing_fee, 6),
            "regulatory_fees": round(self.regulatory_fees, 6),
            "total": round(self.total, 6),
        }


@dataclass(frozen=True)
class TradeFees:
    """Entry, exit and round-trip fees for an N-contract spread."""
    entry: FeeBreakdown
    exit: FeeBreakdown
    round_trip: FeeBreakdown

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "entry": self.entry.to_dict(),
            "exit": self.exit.to_dict(),
            "round_trip": self.round_trip.to_dict(),
        }


@dataclass(frozen=True)
class OCOLevels:
    """Bracket exit levels for a credit spread."""
    take_profit: float
    stop_loss: float
    time_stop: date

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "take_profit": round(self.take_profit, 4),
            "stop_loss": round(self.stop_loss, 4),
            "time_stop": self.time_stop.isoformat(),
        }


@dataclass(frozen=True)
class TradeData:
    """
    The trade-specific inputs to the single-trade rule check.

    Attributes:
        dte: Days to expiration
        delta: Short leg delta
        credit: Net credit per share
        width: Strike width
        side: 'call' or 'put'
    """
    dte: int
    delta: float
    credit: float
    width: float
    side: str

    def __post_init__(self) -> None:
        if self.width <= 0:
            raise ValueError("width must be positive")

    @classmethod
    def from_spread(cls, spread: Spread, dte: int) -> "TradeData":
        """Trade inputs for a constructed spread."""
        return cls(
            dte=dte,
            delta=spread.short_leg.delta,
            credit=spread.net_credit,
            width=spread.width,
            side=spread.side,
        )


@dataclass(frozen=True)
class TradeValidation:
    """Verdict of the single-trade rule check."""
    passes: bool
    reasons: tuple
    score: int

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "passes": self.passes,
            "score": self.score,
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class ScannerResult:
    """Verdict of the batch ticker scan for one ticker."""
    ticker: str
    market_data: MarketDataSnapshot
    passes: bool
    score: int
    reasons: tuple = ()
    recommendations: tuple = ()

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "ticker": self.ticker,
            "passes": self.passes,
            "score": self.score,
            "reasons": list(self.reasons),
            "recommendations": list(self.recommendations),
            "market_data": self.market_data.to_dict(),
        }
