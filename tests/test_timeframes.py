"""Unit tests for utils.timeframes."""

from datetime import datetime, timezone

import pytest
from autotrader.utils.timeframes import analyze_trading_time, timeframe_minutes


def test_timeframe_minutes():
    assert timeframe_minutes("1m") == 1
    assert timeframe_minutes("15m") == 15
    assert timeframe_minutes("1H") == 60
    assert timeframe_minutes("4h") == 240
    assert timeframe_minutes("1D") == 1440
    assert timeframe_minutes("1W") == 10080


def test_timeframe_invalid():
    with pytest.raises(ValueError):
        timeframe_minutes("1x")
    with pytest.raises(ValueError):
        timeframe_minutes("m")


def test_trading_time_windows():
    wednesday = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
    assert analyze_trading_time(wednesday) == (True, "Good trading time")
    assert analyze_trading_time(wednesday.replace(hour=1)) == (False, "Low liquidity hours")
    assert analyze_trading_time(wednesday.replace(hour=23)) == (False, "Low liquidity hours")
    assert analyze_trading_time(wednesday.replace(hour=22))[0] is True
    saturday = datetime(2024, 1, 13, 12, 0, tzinfo=timezone.utc)
    assert analyze_trading_time(saturday) == (False, "Weekend")
    assert analyze_trading_time(saturday, skip_weekends=False)[0] is True
