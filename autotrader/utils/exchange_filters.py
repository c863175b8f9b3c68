"""Lot size helpers from OKX instrument info."""

from __future__ import annotations
import math
from typing import Optional

DEFAULT_MIN_SIZE = 0.0
DEFAULT_LOT_STEP = 0.000001
DEFAULT_PRICE_TICK = 0.01


def parse_instrument_filters(inst_info: Optional[dict]) -> tuple[float, float, float]:
    """
    Extract (min_size, lot_step, price_tick) from an OKX instrument record
    (minSz, lotSz, tickSz). Uses defaults if inst_info is None or a field is blank.
    """
    if not inst_info:
        return DEFAULT_MIN_SIZE, DEFAULT_LOT_STEP, DEFAULT_PRICE_TICK

    def _num(key: str, default: float) -> float:
        try:
            return float(inst_info.get(key) or default)
        except (TypeError, ValueError):
            return default

    return _num("minSz", DEFAULT_MIN_SIZE), _num("lotSz", DEFAULT_LOT_STEP), _num("tickSz", DEFAULT_PRICE_TICK)


def round_quantity(qty: float, min_qty: float, step_size: float) -> float:
    """Round down to step size; return 0 if below min_qty."""
    if qty <= 0 or step_size <= 0:
        return 0.0
    # Nudge before flooring so 0.3/0.1 style float error does not lose a step.
    rounded = math.floor(qty / step_size + 1e-9) * step_size
    if rounded < min_qty:
        return 0.0
    return round(rounded, 10)


def format_size(qty: float, step_size: float) -> str:
    """Size string with as many decimals as the lot step."""
    decimals = max(0, math.ceil(-math.log10(step_size) - 1e-9)) if step_size < 1 else 0
    return f"{qty:.{decimals}f}"
