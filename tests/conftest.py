"""Shared fixtures: synthetic candles and fake collaborators."""

from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from autotrader.core.types import Candle, Direction
from autotrader.execution.base import ExecutionClient, OrderResult
from autotrader.switches.store import SwitchState


def build_candles(closes, spread: float = 1.0, start_ms: int = 1_700_000_000_000) -> List[Candle]:
    return [
        Candle(
            timestamp=start_ms + i * 60_000,
            open=c,
            high=c + spread,
            low=c - spread,
            close=c,
            volume=10.0,
        )
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def make_candles():
    return build_candles


@pytest.fixture
def uptrend():
    """60 candles, close rising by 1 each step from 100 to 159."""
    return build_candles([100.0 + i for i in range(60)])


class FakeClient(ExecutionClient):
    """In-memory exchange. Records every order; pops scripted order results."""

    def __init__(self, price: float = 100.0, candles: Optional[List[Candle]] = None,
                 balances: Optional[Dict[str, Dict[str, float]]] = None):
        self.price = price
        self.candles = candles if candles is not None else build_candles([100.0] * 60)
        self.balances = balances if balances is not None else {
            "USDT": {"available": 1000.0}, "SOL": {"available": 100.0},
        }
        self.orders: List[tuple] = []
        self.order_results: List[OrderResult] = []
        self.price_error: Optional[Exception] = None
        self.candle_error: Optional[Exception] = None
        self.balance_error: Optional[Exception] = None

    def get_price(self, symbol: str) -> float:
        if self.price_error:
            raise self.price_error
        return self.price

    def get_candles(self, symbol: str, count: int, interval: str) -> List[Candle]:
        if self.candle_error:
            raise self.candle_error
        return self.candles[-count:]

    def get_balances(self) -> Dict[str, Dict[str, float]]:
        if self.balance_error:
            raise self.balance_error
        return self.balances

    def place_market_order(self, side: Direction, size: float, symbol: str) -> OrderResult:
        self.orders.append((Direction(side), size, symbol))
        if self.order_results:
            return self.order_results.pop(0)
        return OrderResult(success=True, order_id=f"ord-{len(self.orders)}")


class FakeSwitches:
    def __init__(self, state: SwitchState = SwitchState.ENABLED):
        self.state = state

    def get_state(self, name: str, now: Optional[datetime] = None) -> SwitchState:
        return self.state


@pytest.fixture
def weekday_noon():
    # Wednesday
    return datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
