"""
Exceptions for the credit spread engine.
"""

from typing import List, Optional


class SpreadEngineError(Exception):
    """Base exception for credit spread engine errors."""

    pass


class ConfigurationError(SpreadEngineError):
    """Invalid screening or exit configuration."""

    def __init__(self, errors: List[str], source: Optional[str] = None) -> None:
        self.errors = list(errors)
        self.source = source
        message = "Invalid configuration"
        if source:
            message += f" in {source}"
        if self.errors:
            message += ": " + "; ".join(self.errors)
        super().__init__(message)


class InsufficientDataError(SpreadEngineError):
    """Option chain cannot support the requested spread."""

    def __init__(self, ticker: str, side: str, details: str = "") -> None:
        self.ticker = ticker
        self.side = side
        message = f"Cannot build {side} spread for {ticker}"
        if details:
            message += f": {details}"
        super().__init__(message)


class InsufficientOptionsError(InsufficientDataError):
    """Fewer than two quotes on the requested side of the chain."""

    def __init__(self, ticker: str, side: str, available: int) -> None:
        self.available = available
        super().__init__(
            ticker,
            side,
            f"need at least 2 {side} quotes, got {available}",
        )


class NoMatchingLongLegError(InsufficientDataError):
    """No quote sits exactly one spread width away from the short strike."""

    def __init__(self, ticker: str, side: str, short_strike: float, width: float) -> None:
        self.short_strike = short_strike
        self.width = width
        super().__init__(
            ticker,
            side,
            f"no strike exactly {width:g} away from short strike {short_strike:g}",
        )


class UpstreamFetchError(SpreadEngineError):
    """A market-data or option-chain provider failed for a ticker."""

    def __init__(self, ticker: str, details: str = "") -> None:
        self.ticker = ticker
        message = f"Failed to fetch data for {ticker}"
        if details:
            message += f": {details}"
        super().__init__(message)
