"""
Pytest configuration and fixtures for credit spread engine tests.

Provides a small option chain, market-data snapshots and in-memory
providers so no test touches the network.
"""

from datetime import date, timedelta

import pytest

from credit_spread_engine.config import ScannerFilters
from credit_spread_engine.data_fetcher import MarketDataProvider, OptionChainProvider
from credit_spread_engine.exceptions import UpstreamFetchError
from credit_spread_engine.models import MarketDataSnapshot, OptionChainSnapshot, OptionQuote

TODAY = date(2024, 3, 7)
EXPIRY = date(2024, 3, 15)  # 8 DTE from TODAY


def make_quote(strike, bid, ask, delta, **kwargs):
    """Helper to create a quote with neutral greeks."""
    return OptionQuote(strike=float(strike), bid=bid, ask=ask, delta=delta, **kwargs)


@pytest.fixture
def today():
    """Fixed reference date."""
    return TODAY


@pytest.fixture
def sample_calls():
    """Calls 100-110 in 2.5 steps; the 107.5 strike sits at 0.16 delta."""
    return [
        make_quote(100.0, 2.90, 3.10, 0.45, open_interest=500),
        make_quote(102.5, 1.70, 1.90, 0.30, open_interest=400),
        make_quote(105.0, 0.80, 0.90, 0.20, open_interest=300),
        make_quote(107.5, 0.40, 0.50, 0.16, open_interest=250),
        make_quote(110.0, 0.25, 0.35, 0.10, open_interest=200),
    ]


@pytest.fixture
def sample_puts():
    """Puts 90-100 in 2.5 steps with negative deltas; 95 sits at -0.16."""
    return [
        make_quote(90.0, 0.20, 0.30, -0.08),
        make_quote(92.5, 0.35, 0.45, -0.12),
        make_quote(95.0, 0.50, 0.60, -0.16),
        make_quote(97.5, 1.10, 1.30, -0.25),
        make_quote(100.0, 2.80, 3.00, -0.45),
    ]


@pytest.fixture
def sample_chain(sample_calls, sample_puts):
    """Chain snapshot for TEST at EXPIRY."""
    return OptionChainSnapshot(
        ticker="TEST",
        expiry=EXPIRY,
        calls=sample_calls,
        puts=sample_puts,
    )


@pytest.fixture
def filters():
    """Default screening filters."""
    return ScannerFilters()


@pytest.fixture
def bullish_snapshot():
    """Price below its 10-EMA with high IV rank and no earnings."""
    return MarketDataSnapshot(
        ticker="TEST",
        price=100.0,
        iv_rank=40.0,
        ema10=102.0,
        rsi14=45.0,
    )


@pytest.fixture
def earnings_soon_snapshot():
    """Same as bullish_snapshot but with earnings 10 days out."""
    return MarketDataSnapshot(
        ticker="TEST",
        price=100.0,
        iv_rank=40.0,
        ema10=102.0,
        rsi14=45.0,
        earnings_date=TODAY + timedelta(days=10),
    )


class StaticMarketDataProvider(MarketDataProvider):
    """Serves snapshots from a dict; listed tickers fail."""

    def __init__(self, snapshots, failing=()):
        self.snapshots = snapshots
        self.failing = set(failing)
        self.requested = []

    def get_market_data(self, ticker):
        self.requested.append(ticker)
        if ticker in self.failing:
            raise UpstreamFetchError(ticker, "simulated outage")
        return self.snapshots[ticker]


class StaticChainProvider(OptionChainProvider):
    """Serves a single chain snapshot."""

    def __init__(self, chain):
        self.chain = chain

    def get_expirations(self, ticker, min_dte, max_dte, today=None):
        dte = (self.chain.expiry - (today or date.today())).days
        return [self.chain.expiry] if min_dte <= dte <= max_dte else []

    def get_option_chain(self, ticker, expiry):
        if ticker != self.chain.ticker or expiry != self.chain.expiry:
            raise UpstreamFetchError(ticker, f"no chain for {expiry}")
        return self.chain
