"""
Indicator math on plain price sequences: SMA, EMA, RSI (Wilder), ATR (Wilder).

Every function returns a list aligned to the end of the input; when the input
is shorter than the warm-up length the result is empty.
"""

from __future__ import annotations
from typing import List, Sequence

import numpy as np
import pandas as pd


def _wilder(seed: float, rest: Sequence[float], period: int) -> pd.Series:
    # avg = (avg * (period - 1) + new) / period  ==  ewm(alpha=1/period, adjust=False)
    values = pd.Series([seed, *rest], dtype=float)
    return values.ewm(alpha=1.0 / period, adjust=False).mean()


def sma(values: Sequence[float], period: int) -> List[float]:
    """Simple moving average. Length = len(values) - period + 1."""
    if period <= 0 or len(values) < period:
        return []
    s = pd.Series(values, dtype=float)
    return s.rolling(period).mean().iloc[period - 1:].tolist()


def ema(values: Sequence[float], period: int) -> List[float]:
    """Exponential moving average seeded with the SMA of the first `period` values."""
    if period <= 0 or len(values) < period:
        return []
    arr = np.asarray(values, dtype=float)
    seed = float(arr[:period].mean())
    k = 2.0 / (period + 1)
    out = pd.Series([seed, *arr[period:]], dtype=float).ewm(alpha=k, adjust=False).mean()
    return out.tolist()


def rsi(values: Sequence[float], period: int = 14) -> List[float]:
    """
    Relative Strength Index with Wilder smoothing.
    Saturates at 100 when the average loss is zero.
    """
    if period <= 0 or len(values) < period + 1:
        return []
    delta = np.diff(np.asarray(values, dtype=float))
    gains = np.clip(delta, 0.0, None)
    losses = np.clip(-delta, 0.0, None)
    avg_gain = _wilder(float(gains[:period].mean()), gains[period:], period).to_numpy()
    avg_loss = _wilder(float(losses[:period].mean()), losses[period:], period).to_numpy()
    with np.errstate(divide="ignore", invalid="ignore"):
        rs = avg_gain / avg_loss
        out = np.where(avg_loss == 0, 100.0, 100.0 - 100.0 / (1.0 + rs))
    return out.tolist()


def true_range(highs: Sequence[float], lows: Sequence[float], closes: Sequence[float]) -> np.ndarray:
    """True range for every bar after the first."""
    h = np.asarray(highs, dtype=float)[1:]
    lo = np.asarray(lows, dtype=float)[1:]
    prev_close = np.asarray(closes, dtype=float)[:-1]
    return np.maximum.reduce([h - lo, np.abs(h - prev_close), np.abs(lo - prev_close)])


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> List[float]:
    """Average True Range with Wilder smoothing."""
    if period <= 0 or len(highs) < period + 1:
        return []
    if not (len(highs) == len(lows) == len(closes)):
        raise ValueError("highs, lows and closes must have the same length")
    tr = true_range(highs, lows, closes)
    return _wilder(float(tr[:period].mean()), tr[period:], period).tolist()
