from decimal import Decimal

import pytest
import requests

from emoji_trader.api.exchange_client import (
    ExchangeClient,
    ExchangeClientError,
    ExchangeResponseError,
    ExchangeServerError,
    ExchangeTimeoutError,
    NotAuthenticatedError,
)
from emoji_trader.config import Credentials
from emoji_trader.models.schemas import PlaceOrderRequest, Side


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def make_client(responses, credentials=Credentials(team_id="team-1", api_key="key-1")):
    calls = []

    def fake_request(method, url, timeout=None, **kwargs):
        calls.append({"method": method, "url": url, "timeout": timeout, **kwargs})
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    client = ExchangeClient(base_url="https://example.com/", credentials=credentials)
    client.session = type("S", (), {})()
    client.session.request = fake_request
    return client, calls


def test_get_order_book_parses_levels_and_sends_auth():
    client, calls = make_client([
        FakeResponse(200, {
            "symbol": "🦄",
            "bids": [{"price": 10.0, "quantity": 25, "orderCount": 2}],
            "asks": [{"price": 10.5, "quantity": 12, "orderCount": 1}],
            "timestamp": "2024-01-01T00:00:00Z",
        })
    ])

    book = client.get_order_book("🦄")

    assert book.best_bid.price == Decimal("10.0")
    assert book.best_bid.order_count == 2
    assert book.best_ask.quantity == 12
    assert calls[0]["url"] == "https://example.com/v1/orderbook"
    assert calls[0]["params"] == {"symbol": "🦄"}
    assert calls[0]["headers"]["X-Team-Id"] == "team-1"
    assert calls[0]["headers"]["X-Api-Key"] == "key-1"


def test_place_order_sends_camel_case_body():
    client, calls = make_client([
        FakeResponse(200, {
            "orderId": "o-1",
            "status": "NEW",
            "symbol": "💎",
            "side": "BUY",
            "quantity": 10,
            "limitPrice": 10.15,
            "filledQuantity": 0,
            "avgFillPrice": None,
            "remainingQuantity": 10,
            "createdAt": "2024-01-01T00:00:00Z",
            "updatedAt": "2024-01-01T00:00:00Z",
        })
    ])
    order = PlaceOrderRequest(symbol="💎", side=Side.BUY, quantity=10, limit_price=Decimal("10.15"))

    ack = client.place_order(order)

    assert ack.order_id == "o-1"
    assert ack.remaining_quantity == 10
    assert calls[0]["method"] == "POST"
    assert calls[0]["json"] == {
        "symbol": "💎",
        "side": "BUY",
        "quantity": 10,
        "limitPrice": 10.15,
        "timeInForce": "GTC",
    }


def test_portfolio_path_uses_team_id():
    client, calls = make_client([
        FakeResponse(200, {
            "teamId": "team-1",
            "cash": 950.5,
            "positions": {"🦄": 10},
            "equity": 1001.0,
            "timestamp": "2024-01-01T00:00:00Z",
        })
    ])

    portfolio = client.get_portfolio()

    assert calls[0]["url"] == "https://example.com/v1/portfolio/team-1"
    assert portfolio.cash == Decimal("950.5")
    assert portfolio.position("🦄") == 10
    assert portfolio.position("🍌") == 0


def test_register_adopts_credentials():
    client, calls = make_client(
        [FakeResponse(200, {"teamId": "t-9", "apiKey": "k-9", "initialCash": 10000})],
        credentials=None,
    )
    assert client.is_authenticated is False

    registered = client.register_team("awesome-team")

    assert registered.team_id == "t-9"
    assert client.credentials == Credentials(team_id="t-9", api_key="k-9")
    assert calls[0]["json"] == {"teamId": "awesome-team"}


def test_authenticated_call_without_credentials_makes_no_request():
    client, calls = make_client([], credentials=None)
    with pytest.raises(NotAuthenticatedError):
        client.get_order_book("🦄")
    with pytest.raises(NotAuthenticatedError):
        client.get_portfolio()
    assert calls == []


@pytest.mark.parametrize(
    "response, error",
    [
        (FakeResponse(400, {"error": "bad tick"}), ExchangeClientError),
        (FakeResponse(503, {"error": "down"}), ExchangeServerError),
        (requests.Timeout("slow"), ExchangeTimeoutError),
        (FakeResponse(200, ValueError("not json")), ExchangeResponseError),
        (FakeResponse(200, {"symbol": "🦄", "bids": [{"price": "x", "quantity": 1}]}), ExchangeResponseError),
    ],
)
def test_errors_are_categorised_without_retry(response, error):
    client, calls = make_client([response])
    with pytest.raises(error):
        client.get_order_book("🦄")
    assert len(calls) == 1


def test_client_error_keeps_status_and_body():
    client, _ = make_client([FakeResponse(422, {"error": "insufficient funds"})])
    with pytest.raises(ExchangeClientError) as info:
        client.get_portfolio()
    assert info.value.status_code == 422
    assert "insufficient funds" in info.value.body
