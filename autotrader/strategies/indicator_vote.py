"""
RSI + EMA crossover + price-vs-slow-EMA vote strategy.

Three independent votes on the latest values:
  RSI < oversold -> bullish, RSI > overbought -> bearish
  EMA fast > EMA slow -> bullish, < -> bearish
  close > EMA slow -> bullish, < -> bearish
confidence = winning votes / votes cast. The signal is directional only when
confidence >= min_agreement and one side strictly outnumbers the other.
"""

from __future__ import annotations
from typing import Optional, Sequence

from autotrader.core.types import Candle, IndicatorSnapshot, Signal, SignalSide
from autotrader.strategies.base import BaseStrategy
from autotrader.strategies.indicators import atr, ema, rsi


class IndicatorVoteStrategy(BaseStrategy):
    """Majority vote over RSI, EMA crossover and price position."""

    def __init__(
        self,
        rsi_len: int = 14,
        ema_fast: int = 5,
        ema_slow: int = 20,
        atr_len: int = 14,
        rsi_oversold: float = 30.0,
        rsi_overbought: float = 70.0,
        min_history: int = 50,
        min_agreement: float = 0.6,
    ):
        self.rsi_len = rsi_len
        self.ema_fast = ema_fast
        self.ema_slow = ema_slow
        self.atr_len = atr_len
        self.rsi_oversold = rsi_oversold
        self.rsi_overbought = rsi_overbought
        self.min_history = min_history
        self.min_agreement = min_agreement

    @classmethod
    def from_config(cls, config) -> "IndicatorVoteStrategy":
        return cls(
            rsi_len=config.rsi_len,
            ema_fast=config.ema_fast,
            ema_slow=config.ema_slow,
            atr_len=config.atr_len,
            rsi_oversold=config.rsi_oversold,
            rsi_overbought=config.rsi_overbought,
            min_history=config.min_history,
            min_agreement=config.min_agreement,
        )

    def generate(self, candles: Sequence[Candle]) -> Signal:
        if not candles or len(candles) < self.min_history:
            return Signal(side=SignalSide.NEUTRAL, confidence=0.0, reason="insufficient data")

        closes = [c.close for c in candles]
        highs = [c.high for c in candles]
        lows = [c.low for c in candles]

        rsi_values = rsi(closes, self.rsi_len)
        fast = ema(closes, self.ema_fast)
        slow = ema(closes, self.ema_slow)
        atr_values = atr(highs, lows, closes, self.atr_len)
        if not rsi_values or not fast or not slow or not atr_values:
            return Signal(side=SignalSide.NEUTRAL, confidence=0.0, reason="indicators not ready")

        snapshot = IndicatorSnapshot(
            rsi=rsi_values[-1],
            ema_fast=fast[-1],
            ema_slow=slow[-1],
            atr=atr_values[-1],
            price=closes[-1],
        )

        bullish = bearish = 0
        if snapshot.rsi < self.rsi_oversold:
            bullish += 1
        elif snapshot.rsi > self.rsi_overbought:
            bearish += 1
        if snapshot.ema_fast > snapshot.ema_slow:
            bullish += 1
        elif snapshot.ema_fast < snapshot.ema_slow:
            bearish += 1
        if snapshot.price > snapshot.ema_slow:
            bullish += 1
        elif snapshot.price < snapshot.ema_slow:
            bearish += 1

        cast = bullish + bearish
        agreement = max(bullish, bearish) / cast if cast else 0.0

        side = SignalSide.NEUTRAL
        reason = f"no consensus ({bullish} bullish / {bearish} bearish)"
        if agreement >= self.min_agreement:
            if bullish > bearish:
                side = SignalSide.BULLISH
                reason = (
                    f"RSI: {snapshot.rsi:.1f}, EMA{self.ema_fast} > EMA{self.ema_slow}: "
                    f"{snapshot.ema_fast > snapshot.ema_slow}, Price > EMA{self.ema_slow}: "
                    f"{snapshot.price > snapshot.ema_slow}"
                )
            elif bearish > bullish:
                side = SignalSide.BEARISH
                reason = (
                    f"RSI: {snapshot.rsi:.1f}, EMA{self.ema_fast} < EMA{self.ema_slow}: "
                    f"{snapshot.ema_fast < snapshot.ema_slow}, Price < EMA{self.ema_slow}: "
                    f"{snapshot.price < snapshot.ema_slow}"
                )

        return Signal(side=side, confidence=agreement * 100.0, reason=reason, indicators=snapshot)


_DEFAULT = IndicatorVoteStrategy()


def generate_signal(candles: Sequence[Candle], strategy: Optional[IndicatorVoteStrategy] = None) -> Signal:
    """Signal for the last candle using the default RSI(14)/EMA(5,20)/ATR(14) vote."""
    return (strategy or _DEFAULT).generate(candles)
