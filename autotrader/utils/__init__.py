"""Utils: status broadcast, Telegram, timeframes, exchange filters."""

from autotrader.utils.broadcast import StatusPublisher
from autotrader.utils.telegram import TelegramSink, send_telegram
from autotrader.utils.timeframes import analyze_trading_time, timeframe_minutes

__all__ = ["StatusPublisher", "TelegramSink", "send_telegram", "analyze_trading_time", "timeframe_minutes"]
