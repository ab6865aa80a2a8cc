from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from emoji_trader.config import Credentials
from emoji_trader.models.schemas import (
    OrderAck,
    OrderBookSnapshot,
    PlaceOrderRequest,
    PortfolioSnapshot,
    RegisterResponse,
    SymbolInfo,
)

logger = logging.getLogger(__name__)


class ExchangeHTTPError(Exception):
    """Raised when an exchange HTTP request cannot be satisfied."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ExchangeTimeoutError(ExchangeHTTPError):
    pass


class ExchangeConnectionError(ExchangeHTTPError):
    pass


class ExchangeClientError(ExchangeHTTPError):
    """4xx from the exchange."""


class ExchangeServerError(ExchangeHTTPError):
    """5xx from the exchange."""


class ExchangeResponseError(ExchangeHTTPError):
    """Body was not valid JSON or did not match the expected shape."""


class NotAuthenticatedError(ExchangeHTTPError):
    pass


class ExchangeClient:
    """Emoji stock exchange REST client.

    One session is shared by every call. Requests are made once with a fixed
    timeout; retrying is left to the caller's next poll.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        timeout: float = 10.0,
        credentials: Optional[Credentials] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.credentials = credentials
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    @property
    def is_authenticated(self) -> bool:
        return self.credentials is not None

    def set_credentials(self, credentials: Credentials) -> None:
        self.credentials = credentials
        logger.info("Exchange client configured for team %s", credentials.team_id)

    def _auth_headers(self) -> Dict[str, str]:
        if self.credentials is None:
            raise NotAuthenticatedError("Team not registered; no credentials available")
        return {
            "X-Team-Id": self.credentials.team_id,
            "X-Api-Key": self.credentials.api_key,
        }

    def _request(self, method: str, path: str, auth: bool = False, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        if auth:
            kwargs["headers"] = {**kwargs.get("headers", {}), **self._auth_headers()}

        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise ExchangeTimeoutError(
                f"{method} {path} timed out after {self.timeout:g}s"
            ) from exc
        except requests.RequestException as exc:
            raise ExchangeConnectionError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 500:
            raise ExchangeServerError(
                f"{method} {path} failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        if response.status_code >= 400:
            raise ExchangeClientError(
                f"{method} {path} failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ExchangeResponseError(f"{method} {path} returned invalid JSON") from exc

    @staticmethod
    def _parse(model, payload: Any, path: str):
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ExchangeResponseError(f"Unexpected payload from {path}: {exc}") from exc

    def register_team(self, team_name: str) -> RegisterResponse:
        """Register a team and adopt the returned credentials."""
        payload = self._request("POST", "/v1/register", json={"teamId": team_name})
        registered = self._parse(RegisterResponse, payload, "/v1/register")
        self.set_credentials(Credentials(team_id=registered.team_id, api_key=registered.api_key))
        return registered

    def get_symbols(self) -> List[SymbolInfo]:
        payload = self._request("GET", "/v1/symbols")
        if not isinstance(payload, list):
            raise ExchangeResponseError("Unexpected payload from /v1/symbols: expected a list")
        return [self._parse(SymbolInfo, entry, "/v1/symbols") for entry in payload]

    def get_order_book(self, symbol: str) -> OrderBookSnapshot:
        payload = self._request("GET", "/v1/orderbook", auth=True, params={"symbol": symbol})
        book = self._parse(OrderBookSnapshot, payload, "/v1/orderbook")
        logger.debug("Order book for %s - bids: %d, asks: %d", symbol, len(book.bids), len(book.asks))
        return book

    def place_order(self, order: PlaceOrderRequest) -> OrderAck:
        payload = self._request(
            "POST",
            "/v1/orders",
            auth=True,
            json=order.model_dump(mode="json", by_alias=True),
        )
        return self._parse(OrderAck, payload, "/v1/orders")

    def get_portfolio(self) -> PortfolioSnapshot:
        headers = self._auth_headers()
        path = f"/v1/portfolio/{self.credentials.team_id}"
        payload = self._request("GET", path, headers=headers)
        return self._parse(PortfolioSnapshot, payload, "/v1/portfolio")

    def close(self) -> None:
        self.session.close()
