#!/usr/bin/env python3
"""
Auto-trader CLI: backtest | optimize | compare | live | once | switch
Usage:
  python main.py backtest [--config config.yaml] [--csv candles.csv]
  python main.py optimize [--csv candles.csv]
  python main.py compare [--csv candles.csv]
  python main.py live [--config config.yaml]
  python main.py once
  python main.py switch {status,on,off}
"""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from autotrader.backtesting.engine import (
    BacktestConfig,
    BacktestResult,
    compare_strategies,
    load_candles_csv,
    optimize_parameters,
    run_backtest,
)
from autotrader.core.config import Config, load_config
from autotrader.core.logger import setup_logging
from autotrader.core.types import Candle
from autotrader.engine.trading import TradingEngine
from autotrader.execution.base import ExchangeError
from autotrader.execution.okx import OkxSpotClient
from autotrader.switches.store import SwitchStore
from autotrader.utils.broadcast import StatusPublisher
from autotrader.utils.telegram import TelegramSink

logger = logging.getLogger("autotrader")


def _client(config: Config) -> OkxSpotClient:
    return OkxSpotClient(
        config.okx_api_key,
        config.okx_api_secret,
        config.okx_api_passphrase,
        use_demo=config.use_demo,
        base_url=config.base_url,
        timeout=config.request_timeout,
    )


def _load_candles(config: Config, csv_path: Optional[Path], limit: int) -> Optional[List[Candle]]:
    """Candles from CSV if given, else the most recent `limit` from OKX."""
    path = csv_path or (Path(config.backtest_csv_path) if config.backtest_csv_path else None)
    if path is not None:
        return load_candles_csv(path)
    try:
        return _client(config).get_candles(config.symbol, limit, config.candle_interval)
    except ExchangeError as e:
        logger.error("Could not fetch candles for backtest: %s", e)
        return None


def _print_result(title: str, r: BacktestResult) -> None:
    print(f"\n--- {title} ---")
    print(f"Final balance: {r.final_balance:.2f} (initial {r.initial_balance:.2f})")
    print(f"Total return: {r.total_return_pct:.2f}%")
    print(f"Total trades: {r.total_trades} (wins: {r.winning_trades}, losses: {r.losing_trades})")
    print(f"Win rate: {r.win_rate:.2f}%")
    print(f"Max drawdown: {r.max_drawdown_pct:.2f}%")
    print(f"Avg win: {r.avg_win:.2f} | Avg loss: {r.avg_loss:.2f}")
    print(f"Profit factor: {r.profit_factor:.2f}")


def cmd_backtest(config: Config, csv_path: Optional[Path]) -> int:
    candles = _load_candles(config, csv_path, limit=300)
    if not candles:
        return 1
    cfg = BacktestConfig(
        name="configured",
        initial_balance=config.backtest_initial_balance,
        max_positions=config.max_positions,
        min_signal_confidence=config.min_signal_confidence,
        position_size=config.position_fraction,
        max_consecutive_trades=config.max_consecutive_trades,
        scale_in_trigger_pct=config.scale_in_trigger_pct,
        scale_in_factor=config.scale_in_factor,
        min_order_value=config.min_order_value,
        stop_atr_mult=config.stop_atr_mult,
        tp_atr_mult=config.tp_atr_mult,
    )
    _print_result(f"Backtest {config.symbol} ({len(candles)} candles)", run_backtest(candles, cfg))
    return 0


def cmd_optimize(config: Config, csv_path: Optional[Path]) -> int:
    candles = _load_candles(config, csv_path, limit=300)
    if not candles:
        return 1
    out = optimize_parameters(candles, base_config=BacktestConfig(initial_balance=config.backtest_initial_balance))
    print(f"\nBest parameters: {out['best_params']}")
    _print_result("Best result", out["best_result"])
    return 0


def cmd_compare(config: Config, csv_path: Optional[Path]) -> int:
    candles = _load_candles(config, csv_path, limit=300)
    if not candles:
        return 1
    initial = config.backtest_initial_balance
    strategies = [
        BacktestConfig(name="conservative", initial_balance=initial, min_signal_confidence=80, position_size=0.2, max_positions=1),
        BacktestConfig(name="default", initial_balance=initial),
        BacktestConfig(name="aggressive", initial_balance=initial, min_signal_confidence=50, position_size=0.5, max_positions=4),
    ]
    for name, result in compare_strategies(candles, strategies).items():
        _print_result(name, result)
    return 0


def _engine(config: Config) -> tuple[TradingEngine, TelegramSink]:
    publisher = StatusPublisher()
    sink = TelegramSink(config.telegram_bot_token, config.telegram_chat_id).start()
    publisher.subscribe(sink)
    switches = SwitchStore(config.switch_path)
    switches.initialize_defaults()
    return TradingEngine(config, _client(config), switches, publisher), sink


def cmd_live(config: Config) -> int:
    if not config.has_credentials:
        logger.error("Missing OKX_API_KEY, OKX_API_SECRET or OKX_API_PASSPHRASE in .env")
        return 1
    engine, sink = _engine(config)
    try:
        engine.run_forever()
    finally:
        sink.stop()
        logger.info("Final stats: %s", engine.get_trading_statistics())
    return 0


def cmd_once(config: Config) -> int:
    if not config.has_credentials:
        logger.error("Missing OKX_API_KEY, OKX_API_SECRET or OKX_API_PASSPHRASE in .env")
        return 1
    engine, sink = _engine(config)
    action = engine.run_cycle()
    sink.stop()
    print(f"Cycle result: {action.value}")
    print(f"Stats: {engine.get_trading_statistics()}")
    return 0


def cmd_switch(config: Config, action: str) -> int:
    store = SwitchStore(config.switch_path)
    store.initialize_defaults()
    if action == "on":
        store.set_enabled(config.switch_name, True)
    elif action == "off":
        store.set_enabled(config.switch_name, False)
    for s in store.list():
        print(f"{s.name:<16} enabled={s.is_enabled!s:<5} active={s.is_active()!s:<5} {s.description}")
    print(f"{config.switch_name} state: {store.get_state(config.switch_name).value}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Auto-trader CLI")
    parser.add_argument(
        "mode",
        choices=["backtest", "optimize", "compare", "live", "once", "switch"],
        help="What to run",
    )
    parser.add_argument("action", nargs="?", choices=["status", "on", "off"], default="status",
                        help="switch action (switch mode only)")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--csv", type=Path, default=None, help="Candle CSV for backtests")
    args = parser.parse_args()

    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    if args.mode == "backtest":
        return cmd_backtest(config, args.csv)
    if args.mode == "optimize":
        return cmd_optimize(config, args.csv)
    if args.mode == "compare":
        return cmd_compare(config, args.csv)
    if args.mode == "once":
        return cmd_once(config)
    if args.mode == "switch":
        return cmd_switch(config, args.action)
    return cmd_live(config)


if __name__ == "__main__":
    sys.exit(main())
