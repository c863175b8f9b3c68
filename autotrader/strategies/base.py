"""Abstract strategy: candles in, signal out."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Sequence

from autotrader.core.types import Candle, Signal


class BaseStrategy(ABC):
    """Strategy turns a chronological candle history into a Signal for the last candle."""

    @abstractmethod
    def generate(self, candles: Sequence[Candle]) -> Signal:
        """Return a Signal. Must not look past the last candle given."""
        pass
