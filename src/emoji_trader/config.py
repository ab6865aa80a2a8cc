from __future__ import annotations

import logging
import os
from decimal import Decimal, InvalidOperation
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ["🦄", "💎", "❤️", "🍌", "🍾", "💻"]


class Credentials(BaseModel):
    team_id: str
    api_key: str


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


def _env_decimal(env: Mapping[str, str], name: str, default: Decimal) -> Decimal:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return Decimal(raw)
    except InvalidOperation:
        logger.warning("Ignoring invalid %s=%r; using %s", name, raw, default)
        return default


class Settings(BaseModel):
    api_base_url: str = "http://localhost:8080"
    team_name: str = "awesome-team"
    team_id: Optional[str] = None
    api_key: Optional[str] = None
    symbols: List[str] = Field(default_factory=lambda: list(DEFAULT_SYMBOLS))
    poll_interval_ms: int = Field(default=5000, gt=0)
    order_size_usd: Decimal = Field(default=Decimal("100"), gt=0)
    trade_quantity: int = Field(default=10, ge=1)
    portfolio_report_every: int = Field(default=10, ge=1)
    request_timeout_ms: int = Field(default=10000, gt=0)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        symbols_raw = env.get("TRADING_SYMBOLS", "")
        symbols = [s.strip() for s in symbols_raw.split(",") if s.strip()] or list(DEFAULT_SYMBOLS)
        return cls(
            api_base_url=env.get("API_BASE_URL") or "http://localhost:8080",
            team_name=env.get("TEAM_NAME") or "awesome-team",
            team_id=env.get("TEAM_ID") or None,
            api_key=env.get("API_KEY") or None,
            symbols=symbols,
            poll_interval_ms=_env_int(env, "TRADING_INTERVAL_MS", 5000),
            order_size_usd=_env_decimal(env, "ORDER_SIZE_USD", Decimal("100")),
            trade_quantity=_env_int(env, "TRADE_QUANTITY", 10),
            portfolio_report_every=_env_int(env, "PORTFOLIO_REPORT_EVERY", 10),
            request_timeout_ms=_env_int(env, "REQUEST_TIMEOUT_MS", 10000),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000

    @property
    def request_timeout(self) -> float:
        return self.request_timeout_ms / 1000

    @property
    def credentials(self) -> Optional[Credentials]:
        if self.team_id and self.api_key:
            return Credentials(team_id=self.team_id, api_key=self.api_key)
        return None

    def describe(self) -> List[str]:
        return [
            f"API base URL: {self.api_base_url}",
            f"Team name: {self.team_name}",
            f"Order size: {self.order_size_usd} USD",
            f"Trade quantity: {self.trade_quantity}",
            f"Trading interval: {self.poll_interval_ms}ms",
            f"Trading symbols: {', '.join(self.symbols)}",
            f"Request timeout: {self.request_timeout_ms}ms",
        ]
