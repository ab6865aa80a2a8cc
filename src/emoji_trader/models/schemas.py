from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel


class ExchangeModel(BaseModel):
    """Base for payloads exchanged with the REST API (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderBookLevel(ExchangeModel):
    model_config = ConfigDict(frozen=True)

    price: Decimal
    quantity: int = Field(ge=0)
    order_count: int = Field(default=0, ge=0)


class OrderBookSnapshot(ExchangeModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    bids: Tuple[OrderBookLevel, ...] = ()
    asks: Tuple[OrderBookLevel, ...] = ()
    timestamp: Optional[str] = None

    @property
    def best_bid(self) -> Optional[OrderBookLevel]:
        return max(self.bids, key=lambda level: level.price, default=None)

    @property
    def best_ask(self) -> Optional[OrderBookLevel]:
        return min(self.asks, key=lambda level: level.price, default=None)


class PortfolioSnapshot(ExchangeModel):
    team_id: str = ""
    cash: Decimal
    positions: Dict[str, int] = Field(default_factory=dict)
    equity: Decimal = Decimal(0)
    timestamp: Optional[str] = None

    def position(self, symbol: str) -> int:
        return self.positions.get(symbol, 0)


class TradeIntent(BaseModel):
    side: Side
    symbol: str
    price: Decimal
    quantity: int = Field(ge=1)
    reason: str = ""

    @field_validator("side", mode="before")
    @classmethod
    def side_upper(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class IndustrialOpportunity(TradeIntent):
    """Trade against a single oversized (or multi-order) book level."""

    # an empty multi-order level yields quantity 0
    quantity: int = Field(ge=0)


class PlaceOrderRequest(ExchangeModel):
    symbol: str
    side: Side
    quantity: int = Field(ge=1)
    limit_price: Decimal
    time_in_force: str = "GTC"

    @field_serializer("limit_price")
    def _price_as_number(self, v: Decimal) -> float:
        return float(v)

    @classmethod
    def from_intent(cls, intent: TradeIntent) -> "PlaceOrderRequest":
        return cls(
            symbol=intent.symbol,
            side=intent.side,
            quantity=intent.quantity,
            limit_price=intent.price,
        )


class OrderAck(ExchangeModel):
    order_id: str
    status: str
    symbol: str = ""
    side: str = ""
    quantity: int = 0
    limit_price: Optional[Decimal] = None
    filled_quantity: int = 0
    avg_fill_price: Optional[Decimal] = None
    remaining_quantity: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RegisterResponse(ExchangeModel):
    team_id: str
    api_key: str
    initial_cash: Decimal


class SymbolInfo(ExchangeModel):
    symbol: str
    price_tick: Decimal = Decimal("0.01")
    lot: int = 1
    min_quantity: int = 1
    max_quantity: int = 0
    enabled: bool = True
