"""Engine: entry/exit rules and the live trading cycle."""

from autotrader.engine.decision import EntryAction, EntryDecision, decide_entry, exit_reason, should_scale_in
from autotrader.engine.trading import CycleAction, TradingEngine

__all__ = [
    "CycleAction",
    "EntryAction",
    "EntryDecision",
    "TradingEngine",
    "decide_entry",
    "exit_reason",
    "should_scale_in",
]
