from __future__ import annotations

import logging
import signal
import time
from enum import Enum
from typing import Iterable, Optional

import schedule

from emoji_trader.api.exchange_client import ExchangeClient, ExchangeHTTPError
from emoji_trader.config import Settings
from emoji_trader.execution.exchange_adapter import ExchangeAdapter, Failure, Success
from emoji_trader.execution.order_submitter import ExecutionAdapter, OrderSubmitter
from emoji_trader.models.schemas import OrderBookSnapshot
from emoji_trader.strategy.spread_capture import (
    StrategyParams,
    detect_industrial_order,
    spread_intent,
)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    RUNNING = "running"
    STOPPING = "stopping"


class TradingLoop:
    """Poll each symbol's book in turn and act on at most one intent per symbol."""

    def __init__(
        self,
        settings: Settings,
        adapter: ExecutionAdapter,
        submitter: Optional[OrderSubmitter] = None,
        params: Optional[StrategyParams] = None,
    ) -> None:
        self.settings = settings
        self.adapter = adapter
        self.submitter = submitter or OrderSubmitter(adapter)
        self.params = params or StrategyParams(order_budget=settings.order_size_usd)
        self.state = LoopState.RUNNING
        self.iteration = 0

    @property
    def stopping(self) -> bool:
        return self.state is LoopState.STOPPING

    def request_stop(self) -> None:
        if not self.stopping:
            logger.info("Stop requested; finishing current iteration")
        self.state = LoopState.STOPPING

    def trade_symbol(self, symbol: str) -> None:
        try:
            book = self.adapter.fetch_order_book(symbol)
            if isinstance(book, Failure):
                logger.error("API ERROR: GET /v1/orderbook?symbol=%s - %s", symbol, book.describe())
                return
            self.act_on_book(book.value)
        except Exception as exc:
            logger.exception(
                "API ERROR: Trading error for %s: %s (%s)", symbol, exc, type(exc).__name__
            )

    def act_on_book(self, book: OrderBookSnapshot) -> None:
        opportunity = detect_industrial_order(book, self.params)
        if opportunity is not None:
            logger.info("INDUSTRIAL OPPORTUNITY: %s on %s", opportunity.reason, book.symbol)
            result = self.submitter.submit(opportunity)
            if isinstance(result, Success):
                logger.info(
                    "INDUSTRIAL TRADE: %s %d %s at %s - order %s",
                    opportunity.side.value,
                    opportunity.quantity,
                    book.symbol,
                    opportunity.price,
                    result.value.order_id,
                )
            return

        intent = spread_intent(book, self.settings.trade_quantity, self.params)
        if intent is None:
            logger.debug("No trade decision for %s", book.symbol)
            return

        result = self.submitter.submit(intent)
        if isinstance(result, Success):
            logger.info(
                "TRADE: %s %d %s at %s - order %s",
                intent.side.value,
                intent.quantity,
                book.symbol,
                intent.price,
                result.value.order_id,
            )

    def report_portfolio(self) -> None:
        result = self.adapter.fetch_portfolio()
        if isinstance(result, Failure):
            logger.error("PORTFOLIO: unavailable - %s", result.describe())
            return
        portfolio = result.value
        positions = ", ".join(f"{sym}:{qty}" for sym, qty in portfolio.positions.items())
        logger.info(
            "PORTFOLIO: Cash: $%.2f | Equity: $%.2f | Positions: %s",
            portfolio.cash,
            portfolio.equity,
            positions or "none",
        )

    def run_iteration(self) -> None:
        for symbol in self.settings.symbols:
            if self.stopping:
                break
            self.trade_symbol(symbol)

        self.iteration += 1
        if self.iteration % self.settings.portfolio_report_every == 0:
            self.report_portfolio()

    def run(self, tick: float = 1.0) -> None:
        logger.info(
            "Starting trading loop over %d symbols (every %.1fs)",
            len(self.settings.symbols),
            self.settings.poll_interval,
        )
        self.run_iteration()
        jobs = schedule.Scheduler()
        jobs.every(self.settings.poll_interval).seconds.do(self.run_iteration)
        while not self.stopping:
            jobs.run_pending()
            time.sleep(min(tick, self.settings.poll_interval))
        jobs.clear()
        logger.info("Trading loop stopped after %d iterations", self.iteration)


def establish_identity(client: ExchangeClient, settings: Settings) -> None:
    """Use configured credentials, else register the team. Exits on failure."""
    credentials = settings.credentials
    if credentials is not None:
        client.set_credentials(credentials)
        return

    logger.info("No credentials configured; registering team %s", settings.team_name)
    try:
        registered = client.register_team(settings.team_name)
    except ExchangeHTTPError as exc:
        raise SystemExit(
            f"Team registration failed: {exc}. "
            f"Make sure the exchange is running on {settings.api_base_url}"
        )
    logger.info(
        "Team registered - id: %s, initial cash: %s (set TEAM_ID and API_KEY to reuse it)",
        registered.team_id,
        registered.initial_cash,
    )


def check_symbols(client: ExchangeClient, symbols: Iterable[str]) -> None:
    try:
        listed = {info.symbol: info for info in client.get_symbols()}
    except ExchangeHTTPError as exc:
        logger.warning("Could not fetch symbol list: %s", exc)
        return

    for symbol in symbols:
        info = listed.get(symbol)
        if info is None:
            logger.warning("Configured symbol %s is not listed by the exchange", symbol)
        elif not info.enabled:
            logger.warning("Configured symbol %s is disabled on the exchange", symbol)


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=LOG_FORMAT)
    for line in settings.describe():
        logger.info(line)

    client = ExchangeClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
        credentials=settings.credentials,
    )
    try:
        establish_identity(client, settings)
        check_symbols(client, settings.symbols)

        loop = TradingLoop(settings, ExchangeAdapter(client))
        for signum in (signal.SIGINT, signal.SIGTERM):
            signal.signal(signum, lambda *_args: loop.request_stop())
        loop.run()
    finally:
        client.close()


if __name__ == "__main__":
    main()
