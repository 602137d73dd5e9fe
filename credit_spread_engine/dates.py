"""
Calendar helpers shared by the rule checks.
"""

from datetime import date
from typing import Optional

EARNINGS_WINDOW_MIN_DAYS = 7
EARNINGS_WINDOW_MAX_DAYS = 14


def days_until(target: date, today: Optional[date] = None) -> int:
    """Calendar days from today to target (negative if target has passed)."""
    if today is None:
        today = date.today()
    return (target - today).days


def is_within_earnings_window(
    earnings_date: Optional[date], today: Optional[date] = None
) -> bool:
    """True when earnings fall 7 to 14 calendar days out, inclusive."""
    if earnings_date is None:
        return False
    days = days_until(earnings_date, today)
    return EARNINGS_WINDOW_MIN_DAYS <= days <= EARNINGS_WINDOW_MAX_DAYS
