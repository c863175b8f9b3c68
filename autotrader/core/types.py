"""
Core data types for candles, signals, positions, and status events.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class SignalSide(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Direction(str, Enum):
    BUY = "buy"
    SELL = "sell"

    @property
    def opposite(self) -> "Direction":
        return Direction.SELL if self is Direction.BUY else Direction.BUY


class PositionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Candle:
    """OHLCV candle. timestamp is the open time in ms since epoch."""
    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def time(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000.0, tz=timezone.utc)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Latest indicator values behind a signal."""
    rsi: float
    ema_fast: float
    ema_slow: float
    atr: float
    price: float


@dataclass(frozen=True)
class Signal:
    """Trading signal. confidence is a percentage in [0, 100]."""
    side: SignalSide
    confidence: float
    reason: str = ""
    indicators: Optional[IndicatorSnapshot] = None

    @property
    def is_neutral(self) -> bool:
        return self.side is SignalSide.NEUTRAL

    @property
    def direction(self) -> Optional[Direction]:
        """Order direction implied by the signal, None when neutral."""
        if self.side is SignalSide.BULLISH:
            return Direction.BUY
        if self.side is SignalSide.BEARISH:
            return Direction.SELL
        return None


@dataclass(frozen=True)
class DynamicLevels:
    stop_loss: float
    take_profit: float


@dataclass
class Position:
    """Position owned by a PositionLedger. Levels are fixed at open."""
    id: str
    entry_price: float
    size: float
    direction: Direction
    stop_loss: float
    take_profit: float
    entry_time: datetime
    status: PositionStatus = PositionStatus.OPEN
    exit_price: Optional[float] = None
    exit_time: Optional[datetime] = None
    pnl: Optional[float] = None
    reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status is PositionStatus.OPEN

    @property
    def cost(self) -> float:
        return self.entry_price * self.size

    def unrealized_pnl(self, price: float) -> float:
        if self.direction is Direction.BUY:
            return (price - self.entry_price) * self.size
        return (self.entry_price - price) * self.size

    @property
    def pnl_pct(self) -> float:
        if self.pnl is None or self.cost <= 0:
            return 0.0
        return self.pnl / self.cost * 100.0


@dataclass
class TradingState:
    """Overtrading guard state. Not trade history; the ledger is."""
    last_action: Optional[Direction] = None
    last_trade_price: Optional[float] = None
    consecutive_trades: int = 0

    def record_trade(self, direction: Direction, price: float) -> None:
        self.last_action = direction
        self.last_trade_price = price
        self.consecutive_trades += 1


@dataclass
class StatusEvent:
    """Structured status message for observers."""
    message: str
    category: str = "info"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "trading_log",
            "data": {
                "message": self.message,
                "type": self.category,
                "timestamp": self.timestamp.isoformat(),
                **self.fields,
            },
        }
