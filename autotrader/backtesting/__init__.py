"""Backtesting: candle-by-candle replay, strategy comparison, grid search."""

from autotrader.backtesting.engine import (
    BacktestConfig,
    BacktestResult,
    candles_from_frame,
    compare_strategies,
    load_candles_csv,
    optimize_parameters,
    run_backtest,
)

__all__ = [
    "BacktestConfig",
    "BacktestResult",
    "candles_from_frame",
    "compare_strategies",
    "load_candles_csv",
    "optimize_parameters",
    "run_backtest",
]
