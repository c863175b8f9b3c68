"""Execution: exchange abstraction and OKX spot implementation."""

from autotrader.execution.base import ExchangeError, ExchangeErrorKind, ExecutionClient, OrderResult
from autotrader.execution.okx import OkxSpotClient

__all__ = ["ExchangeError", "ExchangeErrorKind", "ExecutionClient", "OrderResult", "OkxSpotClient"]
