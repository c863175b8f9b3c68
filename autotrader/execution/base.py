"""Abstract execution interface: market data, balances and market orders."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from autotrader.core.types import Candle, Direction


class ExchangeErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    AUTH = "auth"
    BAD_RESPONSE = "bad_response"


class ExchangeError(Exception):
    """Exchange call failed. kind says why; callers skip the cycle."""

    def __init__(self, kind: ExchangeErrorKind, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or kind.value)
        self.kind = kind
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in (ExchangeErrorKind.NETWORK, ExchangeErrorKind.TIMEOUT, ExchangeErrorKind.RATE_LIMITED)


@dataclass
class OrderResult:
    """Result of placing an order. success=False means the exchange rejected it."""
    success: bool
    order_id: Optional[str] = None
    avg_price: Optional[float] = None
    quantity: Optional[float] = None
    message: str = ""


class ExecutionClient(ABC):
    """Abstract client. Reads raise ExchangeError; rejections come back as OrderResult."""

    @abstractmethod
    def get_price(self, symbol: str) -> float:
        """Last traded price."""
        pass

    @abstractmethod
    def get_candles(self, symbol: str, count: int, interval: str) -> List[Candle]:
        """Up to `count` most recent candles, oldest first."""
        pass

    @abstractmethod
    def get_balances(self) -> Dict[str, Dict[str, float]]:
        """{asset: {"available": float, ...}}."""
        pass

    @abstractmethod
    def place_market_order(self, side: Direction, size: float, symbol: str) -> OrderResult:
        """Market order for `size` base-asset units."""
        pass
