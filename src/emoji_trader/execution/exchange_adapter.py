from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar, Union

from emoji_trader.api.exchange_client import (
    ExchangeClient,
    ExchangeClientError,
    ExchangeConnectionError,
    ExchangeHTTPError,
    ExchangeResponseError,
    ExchangeServerError,
    ExchangeTimeoutError,
    NotAuthenticatedError,
)
from emoji_trader.models.schemas import (
    OrderAck,
    OrderBookSnapshot,
    PlaceOrderRequest,
    PortfolioSnapshot,
    TradeIntent,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    REJECTED = "rejected"
    NOT_AUTHENTICATED = "not_authenticated"
    INVALID_RESPONSE = "invalid_response"
    PRECONDITION = "precondition"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_POSITION = "insufficient_position"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    status_code: Optional[int] = None

    def describe(self) -> str:
        if self.status_code is not None:
            return f"{self.kind.value} ({self.status_code}): {self.message}"
        return f"{self.kind.value}: {self.message}"


Result = Union[Success[T], Failure]
OrderBookResult = Union[Success[OrderBookSnapshot], Failure]
PortfolioResult = Union[Success[PortfolioSnapshot], Failure]
OrderResult = Union[Success[OrderAck], Failure]


def failure_from_error(exc: ExchangeHTTPError, rejected: bool = False) -> Failure:
    """Map a transport exception onto its failure category."""
    if isinstance(exc, NotAuthenticatedError):
        kind = FailureKind.NOT_AUTHENTICATED
    elif isinstance(exc, ExchangeTimeoutError):
        kind = FailureKind.TIMEOUT
    elif isinstance(exc, ExchangeConnectionError):
        kind = FailureKind.CONNECTION
    elif isinstance(exc, ExchangeClientError):
        kind = FailureKind.REJECTED if rejected else FailureKind.CLIENT_ERROR
    elif isinstance(exc, ExchangeServerError):
        kind = FailureKind.SERVER_ERROR
    elif isinstance(exc, ExchangeResponseError):
        kind = FailureKind.INVALID_RESPONSE
    else:
        kind = FailureKind.CONNECTION
    return Failure(kind=kind, message=str(exc), status_code=exc.status_code)


class ExchangeAdapter:
    """Result-returning facade over `ExchangeClient` for the trading loop."""

    def __init__(self, client: ExchangeClient) -> None:
        self.client = client

    def _call(self, fn: Callable[[], T], rejected: bool = False) -> Result:
        try:
            return Success(fn())
        except ExchangeHTTPError as exc:
            return failure_from_error(exc, rejected=rejected)

    def fetch_order_book(self, symbol: str) -> OrderBookResult:
        return self._call(lambda: self.client.get_order_book(symbol))

    def fetch_portfolio(self) -> PortfolioResult:
        return self._call(self.client.get_portfolio)

    def submit_order(self, intent: TradeIntent) -> OrderResult:
        order = PlaceOrderRequest.from_intent(intent)
        logger.info(
            "Placing %s order for %d %s at %s",
            order.side.value,
            order.quantity,
            order.symbol,
            order.limit_price,
        )
        result = self._call(lambda: self.client.place_order(order), rejected=True)
        if isinstance(result, Failure) and result.kind is FailureKind.REJECTED:
            logger.warning("Order rejected by exchange: %s", result.describe())
        return result
