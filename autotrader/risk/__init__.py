"""Risk management: stop/target levels, position sizing, order checks."""

from autotrader.risk.manager import RiskManager, RiskResult, dynamic_levels, position_size

__all__ = ["RiskManager", "RiskResult", "dynamic_levels", "position_size"]
