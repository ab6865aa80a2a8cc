"""Public API surface for the emoji exchange REST client."""

from .exchange_client import (
    ExchangeClient,
    ExchangeClientError,
    ExchangeConnectionError,
    ExchangeHTTPError,
    ExchangeResponseError,
    ExchangeServerError,
    ExchangeTimeoutError,
    NotAuthenticatedError,
)

__all__ = [
    "ExchangeClient",
    "ExchangeClientError",
    "ExchangeConnectionError",
    "ExchangeHTTPError",
    "ExchangeResponseError",
    "ExchangeServerError",
    "ExchangeTimeoutError",
    "NotAuthenticatedError",
]
