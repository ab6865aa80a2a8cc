"""Order execution: result-typed exchange access and pre-trade validation."""

from .exchange_adapter import ExchangeAdapter, Failure, FailureKind, Success
from .order_submitter import OrderSubmitter

__all__ = ["ExchangeAdapter", "Failure", "FailureKind", "OrderSubmitter", "Success"]
