"""
Live trading engine: one evaluation cycle per call.

Cycle: switch gate -> time filter -> market snapshot -> signal ->
manage open positions -> confidence / overtrading gates -> scale-in,
new position or skip. Every step is published as a StatusEvent. A cycle
never raises: exchange failures and unexpected errors end it early.
"""

from __future__ import annotations
import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from autotrader.analytics.metrics import compute_metrics
from autotrader.core.config import Config
from autotrader.core.types import Direction, Position, Signal, StatusEvent, TradingState
from autotrader.engine.decision import EntryAction, EntryDecision, decide_entry, exit_reason
from autotrader.execution.base import ExchangeError, ExecutionClient
from autotrader.positions.ledger import PositionLedger
from autotrader.risk.manager import RiskManager
from autotrader.strategies.base import BaseStrategy
from autotrader.strategies.indicator_vote import IndicatorVoteStrategy
from autotrader.switches.store import SwitchState, SwitchStore
from autotrader.utils.broadcast import StatusPublisher
from autotrader.utils.timeframes import analyze_trading_time

logger = logging.getLogger("autotrader.engine")

_LEVELS = {"error": logging.ERROR, "warning": logging.WARNING}


class CycleAction(str, Enum):
    DISABLED = "disabled"
    TIME_FILTERED = "time_filtered"
    NO_DATA = "no_data"
    SKIPPED = "skipped"
    OPENED = "opened"
    SCALED_IN = "scaled_in"
    REJECTED = "rejected"
    ORDER_FAILED = "order_failed"
    ERROR = "error"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TradingEngine:
    """
    Owns the TradingState and PositionLedger for the process lifetime.
    Cycles are serialised by a lock.
    """

    def __init__(
        self,
        config: Config,
        client: ExecutionClient,
        switches: SwitchStore,
        publisher: Optional[StatusPublisher] = None,
        ledger: Optional[PositionLedger] = None,
        risk_manager: Optional[RiskManager] = None,
        strategy: Optional[BaseStrategy] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.config = config
        self.client = client
        self.switches = switches
        self.publisher = publisher or StatusPublisher()
        self.ledger = ledger or PositionLedger(clock=clock)
        self.risk_manager = risk_manager or RiskManager.from_config(config)
        self.strategy = strategy or IndicatorVoteStrategy.from_config(config)
        self.state = TradingState()
        self._clock = clock
        self._lock = threading.Lock()

    # -- observers ---------------------------------------------------------

    def _emit(self, message: str, category: str = "info", **fields: Any) -> None:
        logger.log(_LEVELS.get(category, logging.INFO), "%s %s", message, fields if fields else "")
        self.publisher.publish(StatusEvent(message=message, category=category, timestamp=self._clock(), fields=fields))

    def get_open_positions(self) -> List[Position]:
        return self.ledger.open_positions()

    def get_trading_statistics(self) -> Dict[str, Any]:
        metrics = compute_metrics([p.pnl or 0.0 for p in self.ledger.closed_positions()])
        return {
            "open_positions": len(self.ledger.open_positions()),
            "total_invested": self.ledger.total_invested(),
            "total_pnl": metrics.total_pnl,
            "win_rate": metrics.win_rate,
            "total_trades": metrics.total_trades,
            "consecutive_trades": self.state.consecutive_trades,
            "last_action": self.state.last_action.value if self.state.last_action else None,
        }

    def reset_state(self) -> None:
        with self._lock:
            self.state = TradingState()
        logger.info("Trading state reset")

    # -- cycle -------------------------------------------------------------

    def run_cycle(self) -> CycleAction:
        """Run one evaluation cycle. Never raises."""
        with self._lock:
            try:
                return self._run_cycle()
            except Exception as e:
                logger.exception("Auto-trade cycle error: %s", e)
                self.publisher.publish(StatusEvent(
                    message=f"Auto-trade error: {e}", category="error", timestamp=self._clock(),
                ))
                return CycleAction.ERROR

    def run_forever(self, interval_sec: Optional[float] = None, stop_event: Optional[threading.Event] = None) -> None:
        """Run cycles every interval_sec until stop_event is set or Ctrl+C."""
        interval = interval_sec if interval_sec is not None else self.config.cycle_interval_sec
        stop_event = stop_event or threading.Event()
        logger.info("Trading loop started: %s every %.0fs", self.config.symbol, interval)
        try:
            while not stop_event.is_set():
                self.run_cycle()
                stop_event.wait(interval)
        except KeyboardInterrupt:
            logger.info("Shutdown by user")

    def _trading_enabled(self) -> bool:
        state = self.switches.get_state(self.config.switch_name, now=self._clock())
        if state is SwitchState.UNKNOWN:
            logger.warning(
                "Switch %s state unknown, treating as %s",
                self.config.switch_name,
                "disabled" if self.config.unknown_as_disabled else "enabled",
            )
            return not self.config.unknown_as_disabled
        return state is SwitchState.ENABLED

    def _run_cycle(self) -> CycleAction:
        cfg = self.config
        if not self._trading_enabled():
            self.state.last_action = None
            logger.debug("Auto-trading disabled, skipping cycle")
            return CycleAction.DISABLED

        self._emit("=== AUTO-TRADE CYCLE START ===")

        if cfg.enable_time_filter:
            good, reason = analyze_trading_time(
                self._clock(), cfg.trading_start_hour, cfg.trading_end_hour, cfg.skip_weekends
            )
            if not good:
                self._emit(f"Trading paused: {reason}")
                return CycleAction.TIME_FILTERED

        try:
            price = self.client.get_price(cfg.symbol)
        except ExchangeError as e:
            self._emit(f"Could not fetch current price: {e}", "error", kind=e.kind.value)
            return CycleAction.NO_DATA

        try:
            balances = self.client.get_balances()
        except ExchangeError as e:
            self._emit(f"Could not fetch balances: {e}", "error", kind=e.kind.value)
            return CycleAction.NO_DATA
        available_quote = float(balances.get(cfg.quote_asset, {}).get("available", 0.0))
        available_base = float(balances.get(cfg.base_asset, {}).get("available", 0.0))
        self._emit(
            f"Balance - {cfg.quote_asset}: {available_quote:.2f} | {cfg.base_asset}: {available_base:.4f}",
            "balance",
            quote=available_quote,
            base=available_base,
        )

        try:
            candles = self.client.get_candles(cfg.symbol, cfg.candle_count, cfg.candle_interval)
        except ExchangeError as e:
            self._emit(f"Could not fetch candles: {e}", "error", kind=e.kind.value)
            return CycleAction.NO_DATA
        if len(candles) < cfg.min_history:
            self._emit("Insufficient candle data for analysis", "error", candles=len(candles))
            return CycleAction.NO_DATA

        signal = self.strategy.generate(candles)
        self._emit_signal(signal)

        self._manage_positions(price)

        if signal.is_neutral:
            self.state.consecutive_trades = 0

        decision = decide_entry(
            signal,
            price,
            self.ledger.open_positions(),
            self.state,
            min_confidence=cfg.min_signal_confidence,
            max_consecutive_trades=cfg.max_consecutive_trades,
            max_positions=cfg.max_positions,
            scale_in_trigger_pct=cfg.scale_in_trigger_pct,
        )
        if decision.action is EntryAction.SKIP:
            self._emit(f"No action: {decision.reason}")
            return CycleAction.SKIPPED

        action = self._execute_entry(decision, signal, price, available_quote, available_base)
        self._emit("=== AUTO-TRADE CYCLE END ===", action=action.value)
        return action

    def _emit_signal(self, signal: Signal) -> None:
        fields: Dict[str, Any] = {"reason": signal.reason}
        if signal.indicators is not None:
            ind = signal.indicators
            fields.update(
                rsi=round(ind.rsi, 1),
                ema_fast=round(ind.ema_fast, 4),
                ema_slow=round(ind.ema_slow, 4),
                atr=round(ind.atr, 4),
                price=ind.price,
            )
        self._emit(
            f"Signal Analysis: {signal.side.value.upper()} ({signal.confidence:.1f}% confidence)",
            "signal",
            **fields,
        )

    def _manage_positions(self, price: float) -> None:
        """Close positions whose stop or target is hit. Only a filled order closes the ledger entry."""
        for position in self.ledger.open_positions():
            reason = exit_reason(position, price)
            if reason is None:
                continue
            try:
                result = self.client.place_market_order(position.direction.opposite, position.size, self.config.symbol)
            except ExchangeError as e:
                self._emit(f"{reason} exit order for {position.id} failed: {e}", "error", kind=e.kind.value)
                continue
            if not result.success:
                self._emit(f"{reason} exit order for {position.id} rejected: {result.message}", "error")
                continue
            closed = self.ledger.close(position.id, result.avg_price or price, reason, exit_time=self._clock())
            if closed is None:
                continue
            minutes = (closed.exit_time - closed.entry_time).total_seconds() / 60.0
            self._emit(
                f"Position closed: {reason}",
                "profit" if (closed.pnl or 0.0) > 0 else "loss",
                position_id=closed.id,
                pnl=round(closed.pnl or 0.0, 4),
                pnl_pct=round(closed.pnl_pct, 2),
                duration_min=round(minutes),
            )

    def _execute_entry(
        self,
        decision: EntryDecision,
        signal: Signal,
        price: float,
        available_quote: float,
        available_base: float,
    ) -> CycleAction:
        direction: Direction = decision.direction
        scale_in = decision.action is EntryAction.SCALE_IN
        label = "Scale-in" if scale_in else "New position"

        size = self.risk_manager.size_for(available_quote, signal.confidence, price, scale_in=scale_in)
        check = self.risk_manager.validate_order(
            size, price, direction, available_quote=available_quote, available_base=available_base
        )
        if not check.allowed:
            self._emit(f"{label} {direction.value.upper()} rejected: {check.reason}", "warning")
            return CycleAction.REJECTED

        try:
            result = self.client.place_market_order(direction, check.quantity, self.config.symbol)
        except ExchangeError as e:
            self._emit(f"{label} {direction.value.upper()} order failed: {e}", "error", kind=e.kind.value)
            return CycleAction.ORDER_FAILED
        if not result.success:
            self._emit(f"{label} {direction.value.upper()} order failed: {result.message or 'Unknown error'}", "error")
            return CycleAction.ORDER_FAILED

        entry_price = result.avg_price or price
        quantity = result.quantity or check.quantity
        levels = self.risk_manager.levels(entry_price, signal.indicators.atr, direction)
        position = self.ledger.open(
            entry_price, quantity, direction, levels.stop_loss, levels.take_profit, entry_time=self._clock()
        )
        self.state.record_trade(direction, price)
        self._emit(
            f"{label} {direction.value.upper()} opened",
            "trade",
            position_id=position.id,
            order_id=result.order_id,
            size=round(quantity, 6),
            price=entry_price,
            stop_loss=round(levels.stop_loss, 4),
            take_profit=round(levels.take_profit, 4),
            confidence=round(signal.confidence, 1),
        )
        return CycleAction.SCALED_IN if scale_in else CycleAction.OPENED
