"""Unit tests for positions.ledger."""

import threading
from datetime import datetime, timezone

import pytest
from autotrader.core.types import Direction, PositionStatus
from autotrader.positions.ledger import PositionLedger

T0 = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def test_open_close_round_trip():
    ledger = PositionLedger(clock=lambda: T0)
    pos = ledger.open(100.0, 2.0, Direction.BUY, 96.0, 106.0)
    assert pos.status is PositionStatus.OPEN
    assert pos.entry_time == T0

    closed = ledger.close(pos.id, 106.0, "Take Profit")
    assert closed is pos
    assert closed.status is PositionStatus.CLOSED
    assert closed.pnl == pytest.approx(12.0)
    assert closed.exit_price == 106.0
    assert closed.reason == "Take Profit"
    assert len(ledger.positions) == 1

    assert ledger.close(pos.id, 90.0, "again") is None
    assert closed.pnl == pytest.approx(12.0)


def test_sell_pnl_is_negated():
    ledger = PositionLedger()
    pos = ledger.open(100.0, 3.0, Direction.SELL, 104.0, 94.0)
    assert ledger.close(pos.id, 104.0, "Stop Loss").pnl == pytest.approx(-12.0)


def test_close_unknown_id():
    assert PositionLedger().close("pos-404", 1.0, "x") is None


def test_ids_unique():
    ledger = PositionLedger()
    ids = {ledger.open(1.0, 1.0, Direction.BUY, 0.5, 2.0).id for _ in range(1000)}
    assert len(ids) == 1000


def test_open_positions_and_invested():
    ledger = PositionLedger()
    a = ledger.open(100.0, 1.0, Direction.BUY, 96.0, 106.0)
    b = ledger.open(50.0, 2.0, Direction.BUY, 46.0, 56.0)
    c = ledger.open(10.0, 5.0, Direction.SELL, 12.0, 7.0)
    ledger.close(b.id, 55.0, "manual")
    assert [p.id for p in ledger.open_positions()] == [a.id, c.id]
    assert ledger.total_invested() == pytest.approx(150.0)
    assert ledger.realized_pnl() == pytest.approx(10.0)


def test_concurrent_open_close_and_reads():
    ledger = PositionLedger()
    errors = []

    def worker():
        try:
            for _ in range(200):
                pos = ledger.open(10.0, 1.0, Direction.BUY, 9.0, 11.0)
                ledger.total_invested()
                ledger.open_positions()
                ledger.close(pos.id, 10.5, "manual")
                ledger.realized_pnl()
        except Exception as e:  # surfaced below
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len({p.id for p in ledger.positions}) == 1600
    assert ledger.open_positions() == []
    assert len(ledger.closed_positions()) == 1600
    assert ledger.realized_pnl() == pytest.approx(800.0)
