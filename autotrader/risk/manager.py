"""
Risk manager: ATR stop/target levels, confidence-scaled position sizing,
minimum order value and balance checks.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from autotrader.core.types import Direction, DynamicLevels

logger = logging.getLogger("autotrader.risk")

# Relative slack so a size floored at min_order_value / price is not rejected by rounding.
_NOTIONAL_EPS = 1e-9


def dynamic_levels(
    entry_price: float,
    atr: float,
    direction: Direction,
    stop_mult: float = 2.0,
    tp_mult: float = 3.0,
) -> DynamicLevels:
    """Stop at entry -/+ atr*stop_mult, target at entry +/- atr*tp_mult (buy/sell)."""
    if direction is Direction.BUY:
        return DynamicLevels(
            stop_loss=entry_price - atr * stop_mult,
            take_profit=entry_price + atr * tp_mult,
        )
    return DynamicLevels(
        stop_loss=entry_price + atr * stop_mult,
        take_profit=entry_price - atr * tp_mult,
    )


def position_size(
    available_balance: float,
    confidence_pct: float,
    current_price: float,
    min_order_value: float,
    base_fraction: float = 0.3,
) -> float:
    """
    Size in base-asset units: balance * base_fraction * confidence/100 / price,
    floored at the exchange minimum order value.
    """
    if current_price <= 0:
        return 0.0
    quote = max(0.0, available_balance) * base_fraction * (max(0.0, confidence_pct) / 100.0)
    return max(quote / current_price, max(0.0, min_order_value) / current_price)


@dataclass
class RiskResult:
    """Result of an order check: allowed or rejected + reason."""
    allowed: bool
    quantity: float = 0.0
    reason: str = ""


class RiskManager:
    """Sizing and order checks for new positions and scale-ins."""

    def __init__(
        self,
        position_fraction: float = 0.3,
        scale_in_factor: float = 0.5,
        min_order_value: float = 0.14,
        stop_atr_mult: float = 2.0,
        tp_atr_mult: float = 3.0,
    ):
        self.position_fraction = position_fraction
        self.scale_in_factor = scale_in_factor
        self.min_order_value = min_order_value
        self.stop_atr_mult = stop_atr_mult
        self.tp_atr_mult = tp_atr_mult

    @classmethod
    def from_config(cls, config) -> "RiskManager":
        return cls(
            position_fraction=config.position_fraction,
            scale_in_factor=config.scale_in_factor,
            min_order_value=config.min_order_value,
            stop_atr_mult=config.stop_atr_mult,
            tp_atr_mult=config.tp_atr_mult,
        )

    def levels(self, entry_price: float, atr: float, direction: Direction) -> DynamicLevels:
        return dynamic_levels(entry_price, atr, direction, self.stop_atr_mult, self.tp_atr_mult)

    def size_for(self, available_balance: float, confidence_pct: float, price: float, scale_in: bool = False) -> float:
        size = position_size(
            available_balance, confidence_pct, price, self.min_order_value, self.position_fraction
        )
        return size * self.scale_in_factor if scale_in else size

    def validate_order(
        self,
        quantity: float,
        price: float,
        direction: Direction,
        available_quote: Optional[float] = None,
        available_base: Optional[float] = None,
    ) -> RiskResult:
        """Reject orders below the minimum value or beyond what the spot account holds."""
        if quantity <= 0 or price <= 0:
            return RiskResult(allowed=False, reason="zero quantity")
        notional = quantity * price
        if notional < self.min_order_value * (1 - _NOTIONAL_EPS):
            return RiskResult(
                allowed=False,
                reason=f"order value {notional:.4f} below minimum {self.min_order_value}",
            )
        if direction is Direction.BUY and available_quote is not None and notional > available_quote:
            return RiskResult(
                allowed=False,
                reason=f"insufficient quote balance ({notional:.4f} > {available_quote:.4f})",
            )
        if direction is Direction.SELL and available_base is not None and quantity > available_base:
            return RiskResult(
                allowed=False,
                reason=f"insufficient base balance ({quantity:.6f} > {available_base:.6f})",
            )
        return RiskResult(allowed=True, quantity=quantity)
