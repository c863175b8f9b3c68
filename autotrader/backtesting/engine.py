"""
Backtest engine: replays the live entry/exit rules candle by candle.

No lookahead: the signal at candle i uses candles[0..i] only. Exits and
entries fill at the candle close. Balance is debited by a position's cost
on entry and credited with cost + PnL on exit; the drawdown uses the
mark-to-market total (cash + cost + unrealized PnL of open positions).
"""

from __future__ import annotations
import itertools
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from autotrader.analytics.metrics import compute_metrics, max_drawdown_pct
from autotrader.core.types import Candle, Position, TradingState
from autotrader.engine.decision import EntryAction, decide_entry, exit_reason
from autotrader.positions.ledger import PositionLedger
from autotrader.risk.manager import RiskManager
from autotrader.strategies.base import BaseStrategy
from autotrader.strategies.indicator_vote import IndicatorVoteStrategy

logger = logging.getLogger("autotrader.backtest")

LOOKBACK = 50
END_OF_BACKTEST = "End of backtest"


@dataclass
class BacktestConfig:
    name: str = ""
    initial_balance: float = 1000.0
    max_positions: int = 3
    min_signal_confidence: float = 60.0
    position_size: float = 0.3
    enable_stop_loss: bool = True
    enable_take_profit: bool = True
    max_consecutive_trades: int = 3
    scale_in_trigger_pct: float = 2.0
    scale_in_factor: float = 0.5
    min_order_value: float = 0.14
    stop_atr_mult: float = 2.0
    tp_atr_mult: float = 3.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BacktestConfig":
        """Build from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class BacktestResult:
    """Backtest output. Percentages are 0-100."""
    initial_balance: float
    final_balance: float
    total_return_pct: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    max_drawdown_pct: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    trades: List[Position] = field(default_factory=list)
    equity_curve: List[float] = field(default_factory=list)
    config: Optional[BacktestConfig] = None

    def summary(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("trades")
        data.pop("equity_curve")
        return data


def candles_from_frame(df: pd.DataFrame) -> List[Candle]:
    """DataFrame with timestamp (ms or datetime), open, high, low, close, volume -> Candles."""
    ts = df["timestamp"]
    if pd.api.types.is_datetime64_any_dtype(ts):
        if ts.dt.tz is None:
            ts = ts.dt.tz_localize("UTC")
        ts = (ts - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)
    ordered = df.assign(timestamp=ts.astype("int64")).sort_values("timestamp")
    return [
        Candle(
            timestamp=int(row.timestamp),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in ordered.itertuples(index=False)
    ]


def load_candles_csv(path: Union[str, Path]) -> List[Candle]:
    """Read timestamp,open,high,low,close,volume CSV. Timestamps may be ms epoch or ISO strings."""
    df = pd.read_csv(path)
    df.columns = [c.strip().lower() for c in df.columns]
    if not pd.api.types.is_numeric_dtype(df["timestamp"]):
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return candles_from_frame(df)


def run_backtest(
    candles: Sequence[Candle],
    config: Optional[Union[BacktestConfig, Dict[str, Any]]] = None,
    strategy: Optional[BaseStrategy] = None,
) -> BacktestResult:
    """Simulate the strategy over candles with a local ledger and balance. Deterministic."""
    if config is None:
        config = BacktestConfig()
    elif isinstance(config, dict):
        config = BacktestConfig.from_dict(config)
    strategy = strategy or IndicatorVoteStrategy()
    risk = RiskManager(
        position_fraction=config.position_size,
        scale_in_factor=config.scale_in_factor,
        min_order_value=config.min_order_value,
        stop_atr_mult=config.stop_atr_mult,
        tp_atr_mult=config.tp_atr_mult,
    )
    ledger = PositionLedger(id_prefix="bt")
    state = TradingState()
    balance = config.initial_balance
    equity_curve: List[float] = [balance]

    for i in range(LOOKBACK, len(candles)):
        candle = candles[i]
        price = candle.close
        signal = strategy.generate(candles[: i + 1])

        for position in ledger.open_positions():
            reason = exit_reason(position, price, config.enable_stop_loss, config.enable_take_profit)
            if reason is None:
                continue
            closed = ledger.close(position.id, price, reason, exit_time=candle.time)
            balance += closed.cost + closed.pnl

        if signal.is_neutral:
            state.consecutive_trades = 0

        decision = decide_entry(
            signal,
            price,
            ledger.open_positions(),
            state,
            min_confidence=config.min_signal_confidence,
            max_consecutive_trades=config.max_consecutive_trades,
            max_positions=config.max_positions,
            scale_in_trigger_pct=config.scale_in_trigger_pct,
        )
        if decision.action is not EntryAction.SKIP:
            size = risk.size_for(balance, signal.confidence, price, scale_in=decision.action is EntryAction.SCALE_IN)
            check = risk.validate_order(size, price, decision.direction, available_quote=balance)
            if check.allowed and check.quantity * price <= balance:
                levels = risk.levels(price, signal.indicators.atr, decision.direction)
                ledger.open(
                    price, check.quantity, decision.direction,
                    levels.stop_loss, levels.take_profit, entry_time=candle.time,
                )
                balance -= check.quantity * price
                state.record_trade(decision.direction, price)

        equity_curve.append(balance + sum(p.cost + p.unrealized_pnl(price) for p in ledger.open_positions()))

    if candles:
        last = candles[-1]
        for position in ledger.open_positions():
            closed = ledger.close(position.id, last.close, END_OF_BACKTEST, exit_time=last.time)
            balance += closed.cost + closed.pnl

    trades = ledger.closed_positions()
    metrics = compute_metrics([t.pnl for t in trades])
    initial = config.initial_balance
    result = BacktestResult(
        initial_balance=initial,
        final_balance=balance,
        total_return_pct=(balance - initial) / initial * 100.0 if initial else 0.0,
        total_trades=metrics.total_trades,
        winning_trades=metrics.winning_trades,
        losing_trades=metrics.losing_trades,
        win_rate=metrics.win_rate,
        max_drawdown_pct=max_drawdown_pct(equity_curve),
        avg_win=metrics.avg_win,
        avg_loss=metrics.avg_loss,
        profit_factor=metrics.profit_factor,
        trades=trades,
        equity_curve=equity_curve,
        config=config,
    )
    logger.debug(
        "Backtest %s: %d trades, return %.2f%%, max DD %.2f%%",
        config.name or "-", result.total_trades, result.total_return_pct, result.max_drawdown_pct,
    )
    return result


def compare_strategies(
    candles: Sequence[Candle],
    strategies: Sequence[Union[BacktestConfig, Dict[str, Any]]],
) -> Dict[str, BacktestResult]:
    """Run one backtest per config, keyed by config name (or strategy_<n>)."""
    results: Dict[str, BacktestResult] = {}
    for index, cfg in enumerate(strategies, start=1):
        if isinstance(cfg, dict):
            cfg = BacktestConfig.from_dict(cfg)
        key = cfg.name or f"strategy_{index}"
        if key in results:
            key = f"{key}_{index}"
        results[key] = run_backtest(candles, cfg)
    return results


DEFAULT_PARAM_RANGES: Dict[str, List[Any]] = {
    "min_signal_confidence": [50, 60, 70, 80],
    "position_size": [0.2, 0.3, 0.4, 0.5],
    "max_positions": [1, 2, 3, 4],
}


def optimize_parameters(
    candles: Sequence[Candle],
    param_ranges: Optional[Dict[str, Sequence[Any]]] = None,
    base_config: Optional[BacktestConfig] = None,
) -> Dict[str, Any]:
    """
    Exhaustive grid search over the Cartesian product of param_ranges,
    maximising total return %. Ties keep the first combination.
    """
    ranges = dict(param_ranges) if param_ranges else dict(DEFAULT_PARAM_RANGES)
    base = asdict(base_config or BacktestConfig())
    names = list(ranges)

    best_params: Optional[Dict[str, Any]] = None
    best_result: Optional[BacktestResult] = None
    for values in itertools.product(*(ranges[n] for n in names)):
        params = dict(zip(names, values))
        result = run_backtest(candles, BacktestConfig.from_dict({**base, **params}))
        if best_result is None or result.total_return_pct > best_result.total_return_pct:
            best_params, best_result = params, result
    return {"best_params": best_params, "best_result": best_result, "param_ranges": ranges}
