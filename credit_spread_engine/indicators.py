"""
Trend indicators for market-data snapshots.

Pure pandas functions over a close-price series; inputs are never modified.
"""

from typing import Optional

import numpy as np
import pandas as pd

EMA_PERIOD = 10
RSI_PERIOD = 14


def calculate_ema(series: pd.Series, period: int = EMA_PERIOD) -> pd.Series:
    """EMA of a close series with alpha = 2 / (period + 1), seeded at the first close."""
    return series.ewm(span=period, adjust=False).mean()


def calculate_rsi(close: pd.Series, period: int = RSI_PERIOD) -> pd.Series:
    """
    Wilder RSI on a 0-100 scale.

    Average gains and losses use alpha = 1 / period. The series is NaN until
    `period` observations are available; a run with no losses reads 100 and
    a flat run reads 50.
    """
    delta = close.diff()

    gain = delta.where(delta > 0, 0.0)
    loss = (-delta).where(delta < 0, 0.0)

    avg_gain = gain.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()
    avg_loss = loss.ewm(alpha=1 / period, min_periods=period, adjust=False).mean()

    rsi = pd.Series(np.nan, index=close.index, dtype=float)

    normal_mask = avg_loss > 0
    rs = avg_gain[normal_mask] / avg_loss[normal_mask]
    rsi[normal_mask] = 100.0 - (100.0 / (1.0 + rs))

    # All gains -> 100, flat -> neutral 50
    all_gains_mask = (avg_loss == 0) & (avg_gain > 0)
    rsi[all_gains_mask] = 100.0
    flat_mask = (avg_loss == 0) & (avg_gain == 0)
    rsi[flat_mask] = 50.0

    return rsi


def latest_value(series: pd.Series) -> Optional[float]:
    """Last value of a series, or None when empty or not finite."""
    if series.empty:
        return None
    value = float(series.iloc[-1])
    if not np.isfinite(value):
        return None
    return value


def latest_ema(close: pd.Series, period: int = EMA_PERIOD) -> Optional[float]:
    """Most recent EMA, or None without at least `period` closes."""
    if len(close.dropna()) < period:
        return None
    return latest_value(calculate_ema(close.dropna(), period))


def latest_rsi(close: pd.Series, period: int = RSI_PERIOD) -> Optional[float]:
    """Most recent RSI, or None without enough history."""
    return latest_value(calculate_rsi(close.dropna(), period))
