from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from math import floor
from typing import Optional

from emoji_trader.models.schemas import (
    IndustrialOpportunity,
    OrderBookLevel,
    OrderBookSnapshot,
    Side,
    TradeIntent,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StrategyParams:
    min_spread: Decimal = Decimal("0.10")
    min_liquidity: int = 10
    spread_capture: Decimal = Decimal("0.30")
    industrial_quantity: int = 100
    industrial_cap: int = 50
    order_budget: Decimal = Decimal("100")
    tick: Decimal = Decimal("0.01")


DEFAULT_PARAMS = StrategyParams()


def round_to_tick(price: Decimal, tick: Decimal = DEFAULT_PARAMS.tick) -> Decimal:
    """Round half-up to the exchange tick (cents by default)."""
    return Decimal(price).quantize(tick, rounding=ROUND_HALF_UP)


def midpoint(snap: OrderBookSnapshot) -> Decimal:
    """Reference price; falls back to the only populated side, 0 when the book is empty."""
    bid, ask = snap.best_bid, snap.best_ask
    if bid is not None and ask is not None:
        return (bid.price + ask.price) / 2
    if bid is not None:
        return bid.price
    if ask is not None:
        return ask.price
    return Decimal(0)


def spread(snap: OrderBookSnapshot) -> Optional[Decimal]:
    bid, ask = snap.best_bid, snap.best_ask
    if bid is None or ask is None:
        return None
    return ask.price - bid.price


def _spread_is_tradable(snap: OrderBookSnapshot, params: StrategyParams) -> bool:
    width = spread(snap)
    return width is not None and width > params.min_spread


def should_buy(snap: OrderBookSnapshot, params: StrategyParams = DEFAULT_PARAMS) -> bool:
    """Wide enough spread and at least `min_liquidity` resting at the best ask."""
    if not _spread_is_tradable(snap, params):
        return False
    return snap.best_ask.quantity >= params.min_liquidity


def should_sell(snap: OrderBookSnapshot, params: StrategyParams = DEFAULT_PARAMS) -> bool:
    """Wide enough spread and at least `min_liquidity` resting at the best bid."""
    if not _spread_is_tradable(snap, params):
        return False
    return snap.best_bid.quantity >= params.min_liquidity


def limit_price(
    snap: OrderBookSnapshot, side: Side, params: StrategyParams = DEFAULT_PARAMS
) -> Optional[Decimal]:
    """Price inside the spread, `spread_capture` of the way from our own side."""
    if not _spread_is_tradable(snap, params):
        return None

    width = spread(snap)
    side = Side(side)
    if side is Side.BUY:
        target = snap.best_bid.price + width * params.spread_capture
    else:
        target = snap.best_ask.price - width * params.spread_capture

    price = round_to_tick(target, params.tick)
    logger.debug(
        "%s limit for %s: %s (bid %s / ask %s)",
        side.value,
        snap.symbol,
        price,
        snap.best_bid.price,
        snap.best_ask.price,
    )
    return price


def _is_industrial(level: OrderBookLevel, params: StrategyParams) -> bool:
    return level.quantity > params.industrial_quantity or level.order_count > 1


def detect_industrial_order(
    snap: OrderBookSnapshot, params: StrategyParams = DEFAULT_PARAMS
) -> Optional[IndustrialOpportunity]:
    """First oversized ask (buy into it), else first oversized bid (sell into it).

    Levels are scanned in the order the exchange returned them. Our size is
    capped at `industrial_cap` whatever the level holds. A matching level with
    nothing resting still wins; its zero-share opportunity is never placeable.
    """
    for levels, side, label in ((snap.asks, Side.BUY, "ask"), (snap.bids, Side.SELL, "bid")):
        level = next((lvl for lvl in levels if _is_industrial(lvl, params)), None)
        if level is None:
            continue
        quantity = min(level.quantity, params.industrial_cap)
        price = round_to_tick(level.price, params.tick)
        logger.info(
            "Industrial %s opportunity on %s: %d shares at %s",
            side.value,
            snap.symbol,
            level.quantity,
            price,
        )
        return IndustrialOpportunity(
            side=side,
            symbol=snap.symbol,
            price=price,
            quantity=quantity,
            reason=f"Large {label} order ({level.quantity} shares, {level.order_count} orders)",
        )
    return None


def size_order(
    available_cash: Decimal, price: Decimal, params: StrategyParams = DEFAULT_PARAMS
) -> int:
    """Shares affordable within the per-order budget."""
    price = Decimal(price)
    if price <= 0:
        return 0
    spendable = min(Decimal(available_cash), params.order_budget)
    return max(0, floor(spendable / price))


def spread_intent(
    snap: OrderBookSnapshot, quantity: int, params: StrategyParams = DEFAULT_PARAMS
) -> Optional[TradeIntent]:
    """Normal spread-capture decision: buy takes precedence over sell."""
    if quantity < 1:
        return None

    if should_buy(snap, params):
        side = Side.BUY
    elif should_sell(snap, params):
        side = Side.SELL
    else:
        return None

    price = limit_price(snap, side, params)
    if price is None:
        return None

    return TradeIntent(
        side=side,
        symbol=snap.symbol,
        price=price,
        quantity=quantity,
        reason=f"spread={spread(snap)} > {params.min_spread}; mid={midpoint(snap)}",
    )
