"""Positions: in-memory ledger of open and closed positions."""

from autotrader.positions.ledger import PositionLedger

__all__ = ["PositionLedger"]
