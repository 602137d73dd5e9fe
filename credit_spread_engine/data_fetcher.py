"""
Data fetching module for market data and option chains.

yfinance supplies price history, trend indicators and earnings dates;
OpenBB supplies option chains with provider-computed greeks. Providers
are passed explicitly to the code that needs them.
"""

import logging
import math
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

import pandas as pd

from credit_spread_engine.exceptions import UpstreamFetchError
from credit_spread_engine.indicators import latest_ema, latest_rsi, latest_value
from credit_spread_engine.models import MarketDataSnapshot, OptionChainSnapshot, OptionQuote

logger = logging.getLogger(__name__)

HISTORY_PERIOD = "3mo"
DEFAULT_MAX_WORKERS = 8


def _safe_int(value, default: int = 0) -> int:
    """Safely convert value to int, handling NaN and None."""
    if value is None:
        return default
    try:
        if isinstance(value, float) and math.isnan(value):
            return default
        return int(value)
    except (ValueError, TypeError):
        return default


def _safe_float(value, default: Optional[float] = 0.0) -> Optional[float]:
    """Safely convert value to float, handling NaN and None."""
    if value is None:
        return default
    try:
        result = float(value)
        if math.isnan(result):
            return default
        return result
    except (ValueError, TypeError):
        return default


def _to_date(value) -> Optional[date]:
    """Coerce provider date representations to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value[:10], "%Y-%m-%d").date()
        except ValueError:
            return None
    # numpy datetime64 from datetime-typed columns
    try:
        timestamp = pd.Timestamp(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(timestamp):
        return None
    return timestamp.date()


class MarketDataProvider(ABC):
    """Abstract base class for market-data snapshots."""

    @abstractmethod
    def get_market_data(self, ticker: str) -> MarketDataSnapshot:
        """
        Fetch a snapshot for one ticker.

        Raises:
            UpstreamFetchError: If the snapshot cannot be fetched
        """
        pass


class OptionChainProvider(ABC):
    """Abstract base class for option chain snapshots."""

    @abstractmethod
    def get_expirations(
        self, ticker: str, min_dte: int, max_dte: int, today: Optional[date] = None
    ) -> List[date]:
        """Get available expiration dates within DTE range."""
        pass

    @abstractmethod
    def get_option_chain(self, ticker: str, expiry: date) -> OptionChainSnapshot:
        """
        Get the chain for one expiration.

        Raises:
            UpstreamFetchError: If the chain cannot be fetched
        """
        pass


class YFinanceMarketDataProvider(MarketDataProvider):
    """
    Market data from yfinance.

    IV rank needs a year of implied-volatility history that yfinance does
    not publish, so snapshots from this provider leave iv_rank unset.
    """

    def __init__(self, history_period: str = HISTORY_PERIOD) -> None:
        try:
            import yfinance as yf
            self._yf = yf
        except ImportError:
            raise ImportError(
                "yfinance not installed. Install with: pip install yfinance"
            )
        self.history_period = history_period

    def get_market_data(self, ticker: str) -> MarketDataSnapshot:
        """Fetch price, EMA10, RSI14, ATM implied vol and next earnings date."""
        symbol = ticker.upper()

        try:
            yf_ticker = self._yf.Ticker(symbol)
            history = yf_ticker.history(period=self.history_period, auto_adjust=True)
        except Exception as e:
            raise UpstreamFetchError(ticker, str(e)) from e

        if history is None or history.empty or "Close" not in history.columns:
            raise UpstreamFetchError(ticker, "no price history returned")

        close = history["Close"]
        price = latest_value(close)
        if price is None:
            raise UpstreamFetchError(ticker, "no valid close price")

        snapshot = MarketDataSnapshot(
            ticker=ticker,
            price=price,
            implied_vol=self._atm_implied_vol(yf_ticker, price),
            ema10=latest_ema(close),
            rsi14=latest_rsi(close),
            earnings_date=self._next_earnings_date(yf_ticker),
        )
        logger.info(f"Got market data for {ticker}: ${price:.2f}")
        return snapshot

    def _atm_implied_vol(self, yf_ticker, price: float) -> Optional[float]:
        """Implied vol of the nearest-expiry call closest to the money."""
        try:
            expirations = yf_ticker.options
            if not expirations:
                return None
            calls = yf_ticker.option_chain(expirations[0]).calls
        except Exception as e:
            logger.debug(f"ATM implied vol lookup failed: {e}")
            return None

        if calls is None or calls.empty:
            return None

        atm_row = calls.iloc[(calls["strike"] - price).abs().argsort().iloc[0]]
        iv = _safe_float(atm_row.get("impliedVolatility"), default=None)
        if iv is None or iv <= 0:
            return None
        return iv

    def _next_earnings_date(self, yf_ticker) -> Optional[date]:
        """First upcoming earnings date from the yfinance calendar."""
        try:
            calendar = yf_ticker.calendar
        except Exception as e:
            logger.debug(f"Earnings calendar lookup failed: {e}")
            return None

        if not isinstance(calendar, dict):
            return None

        raw = calendar.get("Earnings Date")
        if raw is None:
            return None
        if not isinstance(raw, (list, tuple)):
            raw = [raw]

        today = date.today()
        upcoming = sorted(d for d in (_to_date(v) for v in raw) if d is not None and d >= today)
        return upcoming[0] if upcoming else None


def parse_chain_dataframe(
    df: pd.DataFrame, ticker: str, expiry: date
) -> OptionChainSnapshot:
    """
    Parse an OpenBB chains dataframe into a snapshot for one expiration.

    Rows without a provider delta are dropped; greeks are never computed here.
    """
    if "expiration" in df.columns:
        df = df[df["expiration"].astype(str).str[:10] == expiry.isoformat()]

    calls = []
    puts = []
    skipped = 0

    for _, row in df.iterrows():
        opt_type = str(row.get("option_type", "")).lower()
        if opt_type not in ("call", "put"):
            continue

        delta = _safe_float(row.get("delta"), default=None)
        if delta is None:
            skipped += 1
            continue

        quote = OptionQuote(
            strike=_safe_float(row.get("strike")),
            bid=_safe_float(row.get("bid")),
            ask=_safe_float(row.get("ask")),
            delta=delta,
            gamma=_safe_float(row.get("gamma")),
            theta=_safe_float(row.get("theta")),
            vega=_safe_float(row.get("vega")),
            implied_vol=_safe_float(row.get("implied_volatility")),
            volume=_safe_int(row.get("volume")),
            open_interest=_safe_int(row.get("open_interest")),
        )

        if opt_type == "call":
            calls.append(quote)
        else:
            puts.append(quote)

    if skipped:
        logger.debug(f"Dropped {skipped} {ticker} quotes without delta")

    return OptionChainSnapshot(ticker=ticker, expiry=expiry, calls=calls, puts=puts)


class OpenBBChainProvider(OptionChainProvider):
    """
    Option chains using OpenBB SDK.
    """

    def __init__(self, provider: str = "cboe") -> None:
        self.provider = provider
        self._obb = None
        self._initialized = False

    def _ensure_initialized(self) -> None:
        """Lazy initialization of OpenBB."""
        if self._initialized:
            return

        try:
            from openbb import obb
            self._obb = obb
            self._initialized = True
            logger.info("OpenBB SDK initialized successfully")
        except ImportError:
            raise ImportError(
                "OpenBB SDK not installed. Install with: pip install openbb"
            )

    def _fetch_chains(self, ticker: str) -> pd.DataFrame:
        self._ensure_initialized()
        try:
            result = self._obb.derivatives.options.chains(
                symbol=ticker.upper(),
                provider=self.provider,
            )
            df = result.to_df()
        except Exception as e:
            raise UpstreamFetchError(ticker, f"{self.provider} chain request failed: {e}") from e

        if df is None or df.empty:
            raise UpstreamFetchError(ticker, f"{self.provider} returned an empty chain")
        return df

    def get_expirations(
        self, ticker: str, min_dte: int, max_dte: int, today: Optional[date] = None
    ) -> List[date]:
        """Get available expiration dates within DTE range."""
        if today is None:
            today = date.today()
        min_date = today + timedelta(days=min_dte)
        max_date = today + timedelta(days=max_dte)

        df = self._fetch_chains(ticker)
        if "expiration" not in df.columns:
            raise UpstreamFetchError(ticker, "chain has no expiration column")

        valid_dates = set()
        for exp in df["expiration"].unique():
            exp_date = _to_date(exp)
            if exp_date is not None and min_date <= exp_date <= max_date:
                valid_dates.add(exp_date)

        logger.info(f"Got {len(valid_dates)} {ticker} expirations via {self.provider}")
        return sorted(valid_dates)

    def get_option_chain(self, ticker: str, expiry: date) -> OptionChainSnapshot:
        """Get the chain for one expiration."""
        df = self._fetch_chains(ticker)
        chain = parse_chain_dataframe(df, ticker, expiry)
        logger.info(
            f"Got {len(chain.calls)} calls and {len(chain.puts)} puts "
            f"for {ticker} {expiry} via {self.provider}"
        )
        return chain


def fetch_market_data_batch(
    tickers: Iterable[str],
    provider: MarketDataProvider,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Dict[str, MarketDataSnapshot]:
    """
    Fetch snapshots for many tickers concurrently.

    Each ticker is isolated: a failed fetch becomes a zero-price
    placeholder for that ticker only and the rest of the batch continues.

    Args:
        tickers: Tickers to fetch
        provider: Market-data provider
        max_workers: Max concurrent fetches

    Returns:
        Snapshots keyed by ticker, in input order
    """
    tickers = list(dict.fromkeys(tickers))
    if not tickers:
        return {}

    logger.info(f"Fetching market data for {len(tickers)} tickers with {max_workers} workers")

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {ticker: executor.submit(provider.get_market_data, ticker) for ticker in tickers}

        snapshots = {}
        for ticker, future in futures.items():
            try:
                snapshots[ticker] = future.result()
            except UpstreamFetchError as e:
                logger.warning(f"{e} - using placeholder")
                snapshots[ticker] = MarketDataSnapshot.placeholder(ticker)
            except Exception as e:
                logger.warning(f"Failed to fetch data for {ticker}: {e} - using placeholder")
                snapshots[ticker] = MarketDataSnapshot.placeholder(ticker)

    return snapshots


def get_market_data_provider() -> MarketDataProvider:
    """Build the default market-data provider."""
    return YFinanceMarketDataProvider()


def get_chain_provider(provider: str = "cboe") -> OptionChainProvider:
    """Build the default option-chain provider."""
    return OpenBBChainProvider(provider=provider)
