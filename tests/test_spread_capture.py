from decimal import Decimal

import pytest

from emoji_trader.models.schemas import OrderBookLevel, OrderBookSnapshot, Side
from emoji_trader.strategy.spread_capture import (
    StrategyParams,
    detect_industrial_order,
    limit_price,
    midpoint,
    should_buy,
    should_sell,
    size_order,
    spread,
    spread_intent,
)


def level(price, quantity=20, order_count=1) -> OrderBookLevel:
    return OrderBookLevel(price=Decimal(str(price)), quantity=quantity, order_count=order_count)


def make_book(bids=(), asks=(), symbol="🦄") -> OrderBookSnapshot:
    return OrderBookSnapshot(symbol=symbol, bids=tuple(bids), asks=tuple(asks))


def test_empty_book_means_no_action():
    book = make_book()
    assert midpoint(book) == 0
    assert spread(book) is None
    assert should_buy(book) is False
    assert should_sell(book) is False
    assert limit_price(book, Side.BUY) is None
    assert limit_price(book, Side.SELL) is None
    assert detect_industrial_order(book) is None


def test_midpoint_uses_best_levels_and_one_sided_fallback():
    book = make_book(bids=[level(9.5), level(10.0)], asks=[level(11.0), level(10.5)])
    assert midpoint(book) == Decimal("10.25")
    assert midpoint(make_book(bids=[level(9.5), level(10.0)])) == Decimal("10.0")
    assert midpoint(make_book(asks=[level(11.0), level(10.5)])) == Decimal("10.5")


def test_wide_spread_with_liquidity_trades_both_ways():
    book = make_book(bids=[level(10.00)], asks=[level(10.50)])
    assert spread(book) == Decimal("0.50")
    assert should_buy(book) is True
    assert should_sell(book) is True
    assert limit_price(book, Side.BUY) == Decimal("10.15")
    assert limit_price(book, "SELL") == Decimal("10.35")


def test_spread_threshold_is_exclusive():
    book = make_book(bids=[level(10.00)], asks=[level(10.10)])
    assert should_buy(book) is False
    assert should_sell(book) is False
    assert limit_price(book, Side.BUY) is None

    just_wider = make_book(bids=[level(10.00)], asks=[level(10.11)])
    assert should_buy(just_wider) is True


def test_liquidity_checked_on_the_side_taken():
    thin_ask = make_book(bids=[level(10.00, quantity=50)], asks=[level(10.50, quantity=9)])
    assert should_buy(thin_ask) is False
    assert should_sell(thin_ask) is True

    thin_bid = make_book(bids=[level(10.00, quantity=9)], asks=[level(10.50, quantity=10)])
    assert should_buy(thin_bid) is True
    assert should_sell(thin_bid) is False


def test_limit_price_rounds_half_up_to_cents():
    # spread 0.15 -> bid + 0.045 = 10.045 -> 10.05
    book = make_book(bids=[level(10.00)], asks=[level(10.15)])
    assert limit_price(book, Side.BUY) == Decimal("10.05")


def test_industrial_ask_is_capped_buy():
    book = make_book(asks=[level(10.50, quantity=250)])
    opp = detect_industrial_order(book)
    assert opp is not None
    assert opp.side is Side.BUY
    assert opp.price == Decimal("10.50")
    assert opp.quantity == 50
    assert "250" in opp.reason


def test_industrial_prefers_ask_side():
    book = make_book(
        bids=[level(10.00, quantity=500)],
        asks=[level(10.50, quantity=5, order_count=3)],
    )
    opp = detect_industrial_order(book)
    assert opp.side is Side.BUY
    assert opp.quantity == 5


def test_industrial_bid_when_no_ask_qualifies():
    book = make_book(bids=[level(9.999, quantity=120)], asks=[level(10.50, quantity=20)])
    opp = detect_industrial_order(book)
    assert opp.side is Side.SELL
    assert opp.price == Decimal("10.00")
    assert opp.quantity == 50


def test_industrial_takes_first_matching_level():
    book = make_book(asks=[level(10.70, quantity=101), level(10.50, quantity=300)])
    assert detect_industrial_order(book).price == Decimal("10.70")


def test_size_order():
    assert size_order(1000, 0) == 0
    assert size_order(50, 10) == 5
    assert size_order(1000, 10) == 10
    assert size_order(1000, 10, StrategyParams(order_budget=Decimal("35"))) == 3


def test_spread_intent_prefers_buy_and_uses_fixed_quantity():
    book = make_book(bids=[level(10.00)], asks=[level(10.50)])
    intent = spread_intent(book, quantity=10)
    assert intent.side is Side.BUY
    assert intent.price == Decimal("10.15")
    assert intent.quantity == 10

    sell_only = make_book(bids=[level(10.00)], asks=[level(10.50, quantity=2)])
    assert spread_intent(sell_only, quantity=10).side is Side.SELL


@pytest.mark.parametrize("asks", [[], [level(10.05)]])
def test_spread_intent_none_without_edge(asks):
    book = make_book(bids=[level(10.00)], asks=asks)
    assert spread_intent(book, quantity=10) is None


def test_empty_multi_order_ask_still_wins_over_bid():
    book = make_book(
        bids=[level(10.00, quantity=200)],
        asks=[level(10.50, quantity=0, order_count=2)],
    )
    opp = detect_industrial_order(book)
    assert opp.side is Side.BUY
    assert opp.price == Decimal("10.50")
    assert opp.quantity == 0
