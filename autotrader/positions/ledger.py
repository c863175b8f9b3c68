"""
In-memory position ledger: opens, closes and reports positions.
"""

from __future__ import annotations
import itertools
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from autotrader.core.types import Direction, Position, PositionStatus

logger = logging.getLogger("autotrader.positions")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PositionLedger:
    """
    Owns every Position it creates. A position goes open -> closed exactly once.
    Ids are "<prefix>-<n>" from a per-ledger counter, so they never collide
    and replays with the same inputs produce the same ids.
    """

    def __init__(self, id_prefix: str = "pos", clock: Callable[[], datetime] = _utc_now):
        self._positions: List[Position] = []
        self._ids = itertools.count(1)
        self._id_prefix = id_prefix
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def positions(self) -> List[Position]:
        with self._lock:
            return list(self._positions)

    def open(
        self,
        entry_price: float,
        size: float,
        direction: Direction,
        stop_loss: float,
        take_profit: float,
        entry_time: Optional[datetime] = None,
    ) -> Position:
        with self._lock:
            position = Position(
                id=f"{self._id_prefix}-{next(self._ids)}",
                entry_price=entry_price,
                size=size,
                direction=Direction(direction),
                stop_loss=stop_loss,
                take_profit=take_profit,
                entry_time=entry_time or self._clock(),
            )
            self._positions.append(position)
        logger.debug("Opened %s %s %.6f @ %.4f", position.id, position.direction.value, size, entry_price)
        return position

    def close(
        self,
        position_id: str,
        exit_price: float,
        reason: str,
        exit_time: Optional[datetime] = None,
    ) -> Optional[Position]:
        """Close an open position. Returns None if no open position has that id."""
        with self._lock:
            position = next(
                (p for p in self._positions if p.id == position_id and p.is_open),
                None,
            )
            if position is None:
                return None
            position.exit_price = exit_price
            position.exit_time = exit_time or self._clock()
            position.status = PositionStatus.CLOSED
            position.pnl = position.unrealized_pnl(exit_price)
            position.reason = reason
        logger.debug("Closed %s @ %.4f (%s) pnl=%.4f", position.id, exit_price, reason, position.pnl)
        return position

    def open_positions(self) -> List[Position]:
        with self._lock:
            return [p for p in self._positions if p.is_open]

    def closed_positions(self) -> List[Position]:
        with self._lock:
            return [p for p in self._positions if not p.is_open]

    def total_invested(self) -> float:
        with self._lock:
            return sum(p.cost for p in self._positions if p.is_open)

    def realized_pnl(self) -> float:
        with self._lock:
            return sum(p.pnl or 0.0 for p in self._positions if not p.is_open)
