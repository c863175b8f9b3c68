"""Timeframe conversion and the trading-hours filter."""

from __future__ import annotations
from datetime import datetime
from typing import Tuple

_UNIT_MINUTES = {"m": 1, "h": 60, "d": 60 * 24, "w": 60 * 24 * 7}


def timeframe_minutes(tf: str) -> int:
    """Convert an OKX bar string (e.g. '1m', '1H', '4H', '1D', '1W') to minutes."""
    tf = tf.strip()
    if len(tf) < 2:
        raise ValueError(f"Unsupported timeframe: {tf}")
    unit = tf[-1].lower()
    if unit not in _UNIT_MINUTES or not tf[:-1].isdigit():
        raise ValueError(f"Unsupported timeframe: {tf}")
    return int(tf[:-1]) * _UNIT_MINUTES[unit]


def analyze_trading_time(
    now: datetime,
    start_hour: int = 2,
    end_hour: int = 22,
    skip_weekends: bool = True,
) -> Tuple[bool, str]:
    """(is_good_time, reason) for a UTC timestamp: weekends and low-liquidity hours are bad."""
    if skip_weekends and now.weekday() >= 5:
        return False, "Weekend"
    if now.hour < start_hour or now.hour > end_hour:
        return False, "Low liquidity hours"
    return True, "Good trading time"
