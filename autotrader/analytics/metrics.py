"""
Performance metrics over closed-trade PnLs: win rate, average win/loss,
profit factor, expectancy, and peak-to-trough drawdown of an equity curve.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np


@dataclass
class PerformanceMetrics:
    """Aggregate trade statistics. Percentages are 0-100."""
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    expectancy: float
    total_pnl: float


def win_rate(pnls: Sequence[float]) -> float:
    """Percent of trades with positive PnL."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls) * 100.0


def average_win_loss(pnls: Sequence[float]) -> tuple[float, float]:
    """(average win, average loss magnitude). A flat trade counts as a loss."""
    wins = [p for p in pnls if p > 0]
    n_losing = len(pnls) - len(wins)
    avg_win = sum(wins) / max(len(wins), 1)
    avg_loss = sum(-p for p in pnls if p < 0) / max(n_losing, 1)
    return avg_win, avg_loss


def profit_factor(pnls: Sequence[float]) -> float:
    """Average win / average loss. Returns 0 if there are no losses."""
    avg_win, avg_loss = average_win_loss(pnls)
    if avg_loss <= 0:
        return 0.0
    return avg_win / avg_loss


def expectancy(pnls: Sequence[float]) -> float:
    """Average PnL per trade."""
    if not pnls:
        return 0.0
    return sum(pnls) / len(pnls)


def max_drawdown_pct(equity: Sequence[float]) -> float:
    """Largest (peak - value) / peak over the curve, as a positive percent."""
    if len(equity) == 0:
        return 0.0
    arr = np.asarray(equity, dtype=float)
    peak = np.maximum.accumulate(arr)
    with np.errstate(divide="ignore", invalid="ignore"):
        dd = np.where(peak > 0, (peak - arr) / peak, 0.0)
    return float(dd.max()) * 100.0


def compute_metrics(pnls: List[float]) -> PerformanceMetrics:
    """Compute trade statistics from a list of closed-trade PnLs."""
    total_trades = len(pnls)
    if total_trades == 0:
        return PerformanceMetrics(
            total_trades=0, winning_trades=0, losing_trades=0, win_rate=0.0,
            avg_win=0.0, avg_loss=0.0, profit_factor=0.0, expectancy=0.0, total_pnl=0.0,
        )
    winning = sum(1 for p in pnls if p > 0)
    avg_win, avg_loss = average_win_loss(pnls)
    return PerformanceMetrics(
        total_trades=total_trades,
        winning_trades=winning,
        losing_trades=total_trades - winning,
        win_rate=win_rate(pnls),
        avg_win=avg_win,
        avg_loss=avg_loss,
        profit_factor=avg_win / avg_loss if avg_loss > 0 else 0.0,
        expectancy=expectancy(pnls),
        total_pnl=float(sum(pnls)),
    )
