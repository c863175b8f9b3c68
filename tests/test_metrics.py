"""Unit tests for analytics.metrics."""

import pytest
from autotrader.analytics.metrics import (
    compute_metrics,
    expectancy,
    max_drawdown_pct,
    profit_factor,
    win_rate,
)


def test_win_rate():
    assert win_rate([1, -1, 1, 1]) == 75.0
    assert win_rate([]) == 0.0


def test_profit_factor():
    assert profit_factor([10, -5, 10, -5]) == 2.0
    assert profit_factor([10, 10]) == 0.0
    assert profit_factor([-5, -5]) == 0.0


def test_expectancy():
    assert expectancy([10, -5, 5]) == pytest.approx(10 / 3)
    assert expectancy([]) == 0.0


def test_max_drawdown():
    # peak 1.2, trough 1.0  =>  16.67%
    assert max_drawdown_pct([1.0, 1.2, 1.0, 1.1]) == pytest.approx(16.666, rel=0.01)
    assert max_drawdown_pct([1.0, 2.0, 3.0]) == 0.0
    assert max_drawdown_pct([]) == 0.0


def test_compute_metrics():
    m = compute_metrics([10.0, -5.0, 15.0, -3.0, 0.0])
    assert m.total_trades == 5
    assert m.winning_trades == 2
    assert m.losing_trades == 3
    assert m.win_rate == pytest.approx(40.0)
    assert m.avg_win == pytest.approx(12.5)
    assert m.avg_loss == pytest.approx(8 / 3)
    assert m.profit_factor == pytest.approx(12.5 / (8 / 3))
    assert m.total_pnl == pytest.approx(17.0)


def test_compute_metrics_empty():
    m = compute_metrics([])
    assert m.total_trades == 0
    assert m.profit_factor == 0.0
