"""Strategies: indicator math, base interface and the vote strategy."""

from autotrader.strategies.base import BaseStrategy
from autotrader.strategies.indicator_vote import IndicatorVoteStrategy, generate_signal
from autotrader.strategies.indicators import atr, ema, rsi, sma

__all__ = ["BaseStrategy", "IndicatorVoteStrategy", "generate_signal", "atr", "ema", "rsi", "sma"]
