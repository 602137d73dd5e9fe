"""
Credit Spread Engine

Screens option underlyings and builds defined-risk vertical credit spreads:
delta-targeted strike selection, risk/reward and fee arithmetic, OCO exit
levels, and two rule scorers (watchlist triage and single-trade gate).

Usage as library:
    from credit_spread_engine import build_spread, compute_fees, scan_tickers

    spread = build_spread(chain, "put", target_delta=-0.16, width=2.5)
    fees = compute_fees("put", quantity=2)

    for result in scan_tickers(["SPY", "QQQ"], snapshots, filters):
        print(result.ticker, result.score, result.passes)

Usage as CLI:
    python -m credit_spread_engine scan SPY QQQ IWM
    python -m credit_spread_engine recommend SPY --expiry 2025-01-17 --side put
"""

from credit_spread_engine.config import (
    OCOConfig,
    ScannerFilters,
    create_default_filters,
    load_config,
    validate_filters,
)
from credit_spread_engine.exceptions import (
    ConfigurationError,
    InsufficientDataError,
    InsufficientOptionsError,
    NoMatchingLongLegError,
    SpreadEngineError,
    UpstreamFetchError,
)
from credit_spread_engine.fees import compute_fees
from credit_spread_engine.models import (
    FeeBreakdown,
    MarketDataSnapshot,
    OCOLevels,
    OptionChainSnapshot,
    OptionQuote,
    ScannerResult,
    Spread,
    TradeData,
    TradeFees,
    TradeValidation,
)
from credit_spread_engine.oco import compute_oco_levels
from credit_spread_engine.recommender import (
    TradeRecommendation,
    TradeRecommender,
    recommend_trade,
    scan_watchlist,
)
from credit_spread_engine.rules import validate_trade
from credit_spread_engine.scanner import ScannerEngine, scan_tickers
from credit_spread_engine.spreads import build_spread

__version__ = "1.0.0"

__all__ = [
    "OCOConfig",
    "ScannerFilters",
    "create_default_filters",
    "load_config",
    "validate_filters",
    "ConfigurationError",
    "InsufficientDataError",
    "InsufficientOptionsError",
    "NoMatchingLongLegError",
    "SpreadEngineError",
    "UpstreamFetchError",
    "compute_fees",
    "FeeBreakdown",
    "MarketDataSnapshot",
    "OCOLevels",
    "OptionChainSnapshot",
    "OptionQuote",
    "ScannerResult",
    "Spread",
    "TradeData",
    "TradeFees",
    "TradeValidation",
    "compute_oco_levels",
    "TradeRecommendation",
    "TradeRecommender",
    "recommend_trade",
    "scan_watchlist",
    "validate_trade",
    "ScannerEngine",
    "scan_tickers",
    "build_spread",
]
