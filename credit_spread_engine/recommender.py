"""
Trade recommendation pipeline.

Fetches market data and an option chain, builds the delta-targeted
spread, and enriches it with fees, exit levels and the trade rule check.
Also provides the watchlist scan entry point.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from credit_spread_engine.config import OCOConfig, ScannerFilters
from credit_spread_engine.data_fetcher import (
    MarketDataProvider,
    OptionChainProvider,
    fetch_market_data_batch,
    get_chain_provider,
    get_market_data_provider,
)
from credit_spread_engine.exceptions import InsufficientDataError
from credit_spread_engine.fees import (
    calculate_max_loss,
    calculate_max_profit,
    calculate_return_on_risk,
    compute_fees,
)
from credit_spread_engine.models import (
    MarketDataSnapshot,
    OCOLevels,
    OptionChainSnapshot,
    ScannerResult,
    Spread,
    TradeData,
    TradeFees,
    TradeValidation,
)
from credit_spread_engine.oco import compute_oco_levels
from credit_spread_engine.rules import validate_trade
from credit_spread_engine.scanner import ScannerEngine
from credit_spread_engine.spreads import build_spread

logger = logging.getLogger(__name__)

CONTRACT_MULTIPLIER = 100


@dataclass(frozen=True)
class TradeRecommendation:
    """A constructed spread with its fees, exit levels and rule verdict."""

    ticker: str
    expiry: date
    dte: int
    quantity: int
    market_data: MarketDataSnapshot
    spread: Spread
    fees: TradeFees
    oco: OCOLevels
    validation: TradeValidation

    @property
    def fees_per_spread(self) -> float:
        """Round-trip fees for one spread, in dollars."""
        return self.fees.round_trip.total / self.quantity

    @property
    def max_profit_dollars(self) -> float:
        """Max profit for the whole position, net of round-trip fees."""
        return calculate_max_profit(
            self.spread.net_credit * CONTRACT_MULTIPLIER,
            self.fees_per_spread,
            self.quantity,
        )

    @property
    def max_loss_dollars(self) -> float:
        """Max loss for the whole position, including round-trip fees."""
        return calculate_max_loss(
            self.spread.width * CONTRACT_MULTIPLIER,
            self.spread.net_credit * CONTRACT_MULTIPLIER,
            self.fees_per_spread,
            self.quantity,
        )

    @property
    def return_on_risk(self) -> float:
        """Fee-adjusted max profit over max loss."""
        return calculate_return_on_risk(
            self.spread.net_credit * CONTRACT_MULTIPLIER,
            self.spread.width * CONTRACT_MULTIPLIER,
            self.fees_per_spread,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "ticker": self.ticker,
            "expiry": self.expiry.isoformat(),
            "dte": self.dte,
            "quantity": self.quantity,
            "spread": self.spread.to_dict(),
            "fees": self.fees.to_dict(),
            "oco": self.oco.to_dict(),
            "validation": self.validation.to_dict(),
            "max_profit_dollars": round(self.max_profit_dollars, 2),
            "max_loss_dollars": round(self.max_loss_dollars, 2),
            "market_data": self.market_data.to_dict(),
        }


def chain_target_delta(chain: OptionChainSnapshot, side: str, target_delta: float) -> float:
    """
    Express a delta target in the chain's sign convention.

    Targets are configured as magnitudes; chains that quote put deltas as
    negative numbers need a negative target to select the same strike.
    """
    if side == "put" and any(q.delta < 0 for q in chain.puts):
        return -abs(target_delta)
    return abs(target_delta)


def evaluate_spread(
    chain: OptionChainSnapshot,
    market_data: MarketDataSnapshot,
    side: str,
    target_delta: float,
    width: float,
    quantity: int = 1,
    oco_config: Optional[OCOConfig] = None,
    is_index: bool = False,
    today: Optional[date] = None,
) -> TradeRecommendation:
    """
    Build and grade a spread from data already in hand.

    Raises:
        InsufficientOptionsError: Fewer than 2 quotes on the requested side
        NoMatchingLongLegError: No strike exactly width from the short strike
    """
    if today is None:
        today = date.today()

    spread = build_spread(chain, side, chain_target_delta(chain, side, target_delta), width)
    dte = (chain.expiry - today).days

    fees = compute_fees(side, quantity, is_index=is_index)
    oco = compute_oco_levels(spread.net_credit, oco_config, today)
    validation = validate_trade(
        chain.ticker, market_data, TradeData.from_spread(spread, dte), today
    )

    return TradeRecommendation(
        ticker=chain.ticker,
        expiry=chain.expiry,
        dte=dte,
        quantity=quantity,
        market_data=market_data,
        spread=spread,
        fees=fees,
        oco=oco,
        validation=validation,
    )


@dataclass
class TradeRecommender:
    """
    Recommends credit spreads from live data.

    Example usage:
        recommender = TradeRecommender()
        rec = recommender.recommend("SPY", date(2025, 1, 17), "put")
        print(rec.validation.passes)
    """

    filters: ScannerFilters = field(default_factory=ScannerFilters)
    oco_config: OCOConfig = field(default_factory=OCOConfig)
    market_data_provider: Optional[MarketDataProvider] = None
    chain_provider: Optional[OptionChainProvider] = None
    max_workers: int = 8

    def __post_init__(self) -> None:
        """Initialize providers if not provided."""
        if self.market_data_provider is None:
            self.market_data_provider = get_market_data_provider()
        if self.chain_provider is None:
            self.chain_provider = get_chain_provider()

    def nearest_expiry(self, ticker: str, side: str, today: Optional[date] = None) -> date:
        """
        First listed expiration inside the filters' DTE window.

        Raises:
            InsufficientDataError: If no expiration falls inside the window
        """
        expirations = self.chain_provider.get_expirations(
            ticker, self.filters.min_dte, self.filters.max_dte, today
        )
        if not expirations:
            raise InsufficientDataError(
                ticker,
                side,
                f"no expiration between {self.filters.min_dte} and "
                f"{self.filters.max_dte} DTE",
            )
        return min(expirations)

    def recommend(
        self,
        ticker: str,
        expiry: Optional[date],
        side: str,
        target_delta: Optional[float] = None,
        width: Optional[float] = None,
        quantity: int = 1,
        is_index: bool = False,
        today: Optional[date] = None,
    ) -> TradeRecommendation:
        """
        Build and grade a spread for one ticker and expiration.

        target_delta and width default to the configured filters. When expiry
        is None the nearest expiration inside the filters' DTE window is used.

        Raises:
            UpstreamFetchError: If market data or the chain cannot be fetched
            InsufficientDataError: If the chain cannot support the spread
        """
        if target_delta is None:
            target_delta = self.filters.target_delta
        if width is None:
            width = self.filters.spread_width
        if expiry is None:
            expiry = self.nearest_expiry(ticker, side, today)

        logger.info(f"Recommending {ticker} {side} spread for {expiry}")

        market_data = self.market_data_provider.get_market_data(ticker)
        chain = self.chain_provider.get_option_chain(ticker, expiry)

        return evaluate_spread(
            chain,
            market_data,
            side,
            target_delta,
            width,
            quantity=quantity,
            oco_config=self.oco_config,
            is_index=is_index,
            today=today,
        )

    def scan(
        self, tickers: Iterable[str], today: Optional[date] = None
    ) -> List[ScannerResult]:
        """Fetch snapshots for a watchlist and rank it."""
        return scan_watchlist(
            tickers,
            self.market_data_provider,
            self.filters,
            max_workers=self.max_workers,
            today=today,
        )


def recommend_trade(
    ticker: str,
    expiry: Optional[date],
    side: str,
    chain_provider: OptionChainProvider,
    market_data_provider: MarketDataProvider,
    target_delta: float = 0.16,
    width: float = 2.5,
    quantity: int = 1,
    oco_config: Optional[OCOConfig] = None,
    today: Optional[date] = None,
) -> TradeRecommendation:
    """
    Simple function interface for a single trade recommendation.

    Args:
        ticker: Underlying symbol
        expiry: Option expiration, or None for the nearest one within 7-10 DTE
        side: 'call' or 'put'
        chain_provider: Option-chain provider
        market_data_provider: Market-data provider
        target_delta: Short leg delta magnitude (default: 0.16)
        width: Strike width (default: 2.5)
        quantity: Number of spreads (default: 1)
        oco_config: Exit configuration (default: OCOConfig())
        today: Reference date

    Returns:
        TradeRecommendation
    """
    recommender = TradeRecommender(
        oco_config=oco_config or OCOConfig(),
        market_data_provider=market_data_provider,
        chain_provider=chain_provider,
    )
    return recommender.recommend(
        ticker,
        expiry,
        side,
        target_delta=target_delta,
        width=width,
        quantity=quantity,
        today=today,
    )


def scan_watchlist(
    tickers: Iterable[str],
    provider: MarketDataProvider,
    filters: Optional[ScannerFilters] = None,
    max_workers: int = 8,
    today: Optional[date] = None,
) -> List[ScannerResult]:
    """
    Fetch market data for a watchlist in parallel and rank it.

    Args:
        tickers: Watchlist, in display order
        provider: Market-data provider
        filters: Screening filters (default: ScannerFilters())
        max_workers: Max concurrent fetches
        today: Reference date for the earnings window

    Returns:
        ScannerResults sorted by score descending, stable on ties
    """
    tickers = list(tickers)
    snapshots = fetch_market_data_batch(tickers, provider, max_workers=max_workers)
    return ScannerEngine(filters or ScannerFilters()).scan_tickers(tickers, snapshots, today)
