"""Analytics: trade statistics and drawdown."""

from autotrader.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    expectancy,
    max_drawdown_pct,
    profit_factor,
    win_rate,
)

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "expectancy",
    "max_drawdown_pct",
    "profit_factor",
    "win_rate",
]
