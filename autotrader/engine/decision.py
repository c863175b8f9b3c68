"""
Exit and entry rules shared by the live engine and the backtester.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from autotrader.core.types import Direction, Position, Signal, TradingState

STOP_LOSS = "Stop Loss"
TAKE_PROFIT = "Take Profit"


class EntryAction(str, Enum):
    NEW_POSITION = "new_position"
    SCALE_IN = "scale_in"
    SKIP = "skip"


@dataclass(frozen=True)
class EntryDecision:
    action: EntryAction
    reason: str = ""
    direction: Optional[Direction] = None


def exit_reason(
    position: Position,
    price: float,
    enable_stop_loss: bool = True,
    enable_take_profit: bool = True,
) -> Optional[str]:
    """Stop loss is checked before take profit."""
    if position.direction is Direction.BUY:
        if enable_stop_loss and price <= position.stop_loss:
            return STOP_LOSS
        if enable_take_profit and price >= position.take_profit:
            return TAKE_PROFIT
    else:
        if enable_stop_loss and price >= position.stop_loss:
            return STOP_LOSS
        if enable_take_profit and price <= position.take_profit:
            return TAKE_PROFIT
    return None


def should_scale_in(
    direction: Direction,
    price: float,
    open_positions: Sequence[Position],
    max_positions: int,
    trigger_pct: float,
) -> bool:
    """
    Compare against the most recent open position only: same direction and
    price at least trigger_pct better than its entry (lower for buy, higher for sell).
    """
    if not open_positions or len(open_positions) >= max_positions:
        return False
    last = open_positions[-1]
    if last.direction is not direction:
        return False
    if direction is Direction.BUY:
        return price < last.entry_price * (1 - trigger_pct / 100.0)
    return price > last.entry_price * (1 + trigger_pct / 100.0)


def decide_entry(
    signal: Signal,
    price: float,
    open_positions: Sequence[Position],
    state: TradingState,
    min_confidence: float,
    max_consecutive_trades: int,
    max_positions: int,
    scale_in_trigger_pct: float,
) -> EntryDecision:
    """Confidence gate, overtrading guard, then scale-in / new position / cap."""
    if signal.confidence < min_confidence:
        return EntryDecision(
            EntryAction.SKIP,
            f"signal confidence {signal.confidence:.1f}% below threshold {min_confidence:.0f}%",
        )
    if max_consecutive_trades and state.consecutive_trades >= max_consecutive_trades:
        return EntryDecision(EntryAction.SKIP, f"max consecutive trades reached ({max_consecutive_trades})")
    direction = signal.direction
    if direction is None:
        return EntryDecision(EntryAction.SKIP, "neutral signal")
    if should_scale_in(direction, price, open_positions, max_positions, scale_in_trigger_pct):
        return EntryDecision(EntryAction.SCALE_IN, "price moved past scale-in trigger", direction)
    if len(open_positions) < max_positions:
        return EntryDecision(EntryAction.NEW_POSITION, "", direction)
    return EntryDecision(EntryAction.SKIP, "maximum positions reached")
