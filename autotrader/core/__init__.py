"""Core: config, types, logging."""

from autotrader.core.config import load_config, Config
from autotrader.core.types import (
    Candle,
    Direction,
    DynamicLevels,
    IndicatorSnapshot,
    Position,
    PositionStatus,
    Signal,
    SignalSide,
    StatusEvent,
    TradingState,
)
from autotrader.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "Candle",
    "Direction",
    "DynamicLevels",
    "IndicatorSnapshot",
    "Position",
    "PositionStatus",
    "Signal",
    "SignalSide",
    "StatusEvent",
    "TradingState",
    "setup_logging",
]
