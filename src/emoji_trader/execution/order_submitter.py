from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Protocol, Tuple

from emoji_trader.execution.exchange_adapter import (
    Failure,
    FailureKind,
    OrderBookResult,
    OrderResult,
    PortfolioResult,
    Success,
)
from emoji_trader.models.schemas import PortfolioSnapshot, Side, TradeIntent

logger = logging.getLogger(__name__)


class ExecutionAdapter(Protocol):
    def fetch_order_book(self, symbol: str) -> OrderBookResult: ...

    def fetch_portfolio(self) -> PortfolioResult: ...

    def submit_order(self, intent: TradeIntent) -> OrderResult: ...


DecisionLog = Tuple[TradeIntent, str]


class OrderSubmitter:
    """Validate trade intents against a fresh portfolio before sending them."""

    def __init__(self, adapter: ExecutionAdapter) -> None:
        self.adapter = adapter
        self.decision_log: List[DecisionLog] = []

    def check_portfolio(self) -> PortfolioResult:
        result = self.adapter.fetch_portfolio()
        if isinstance(result, Success):
            portfolio = result.value
            logger.debug(
                "Portfolio check - cash: %s, equity: %s, positions: %s",
                portfolio.cash,
                portfolio.equity,
                portfolio.positions,
            )
        else:
            logger.error("Portfolio check failed: %s", result.describe())
        return result

    @staticmethod
    def _validate_order(symbol: str, price: Decimal, quantity: int) -> Optional[Failure]:
        if quantity <= 0:
            return Failure(FailureKind.PRECONDITION, f"invalid quantity {quantity} for {symbol}")
        if price <= 0:
            return Failure(FailureKind.PRECONDITION, f"invalid price {price} for {symbol}")
        return None

    @staticmethod
    def can_buy(portfolio: PortfolioSnapshot, price: Decimal, quantity: int) -> Optional[Failure]:
        total_cost = price * quantity
        if portfolio.cash < total_cost:
            return Failure(
                FailureKind.INSUFFICIENT_FUNDS,
                f"need {total_cost}, have {portfolio.cash}",
            )
        return None

    @staticmethod
    def can_sell(
        portfolio: PortfolioSnapshot, symbol: str, quantity: int
    ) -> Optional[Failure]:
        held = portfolio.position(symbol)
        if held < quantity:
            return Failure(
                FailureKind.INSUFFICIENT_POSITION,
                f"need {quantity} shares, have {held}",
            )
        return None

    @staticmethod
    def _reject(side: Side, symbol: str, price: Decimal, quantity: int, failure: Failure) -> Failure:
        logger.warning(
            "%s order rejected for %s %s at %s: %s",
            side.value.capitalize(),
            quantity,
            symbol,
            price,
            failure.describe(),
        )
        return failure

    def _submit(self, side: Side, symbol: str, price, quantity: int, reason: str) -> OrderResult:
        price = Decimal(str(price))

        invalid = self._validate_order(symbol, price, quantity)
        if invalid is not None:
            return self._reject(side, symbol, price, quantity, invalid)

        portfolio_result = self.check_portfolio()
        if isinstance(portfolio_result, Failure):
            return self._reject(side, symbol, price, quantity, portfolio_result)
        portfolio = portfolio_result.value

        if side is Side.BUY:
            blocked = self.can_buy(portfolio, price, quantity)
        else:
            blocked = self.can_sell(portfolio, symbol, quantity)

        intent = TradeIntent(side=side, symbol=symbol, price=price, quantity=quantity, reason=reason)
        if blocked is not None:
            self.decision_log.append((intent, f"rejected:{blocked.kind.value}"))
            return self._reject(side, symbol, price, quantity, blocked)

        result = self.adapter.submit_order(intent)
        if isinstance(result, Success):
            ack = result.value
            self.decision_log.append((intent, ack.status))
            logger.info(
                "%s order accepted: %s for %d %s at %s (%s)",
                side.value.capitalize(),
                ack.order_id,
                quantity,
                symbol,
                price,
                ack.status,
            )
        else:
            self.decision_log.append((intent, f"failed:{result.kind.value}"))
            logger.error(
                "%s order failed for %d %s at %s: %s",
                side.value.capitalize(),
                quantity,
                symbol,
                price,
                result.describe(),
            )
        return result

    def submit_buy(self, symbol: str, price, quantity: int, reason: str = "") -> OrderResult:
        return self._submit(Side.BUY, symbol, price, quantity, reason)

    def submit_sell(self, symbol: str, price, quantity: int, reason: str = "") -> OrderResult:
        return self._submit(Side.SELL, symbol, price, quantity, reason)

    def submit(self, intent: TradeIntent) -> OrderResult:
        if intent.side is Side.BUY:
            return self.submit_buy(intent.symbol, intent.price, intent.quantity, intent.reason)
        return self.submit_sell(intent.symbol, intent.price, intent.quantity, intent.reason)
