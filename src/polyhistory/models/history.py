"""PricePoint, OrderBookSnapshot, PriceRecord - CLOB data and export rows."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def parse_decimal(raw: str | None) -> Decimal | None:
    """Parse a decimal string. Malformed or non-finite input yields None."""
    if raw is None:
        return None
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


class PricePoint(BaseModel):
    """Single history sample: Unix seconds and price string."""

    model_config = ConfigDict(frozen=True)

    t: int
    p: str = ""

    @field_validator("p", mode="before")
    @classmethod
    def _numeric_price(cls, value: Any) -> Any:
        # Some deployments send p as a JSON number, or null
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def timestamp_utc(self) -> datetime:
        return datetime.fromtimestamp(self.t, tz=timezone.utc)

    def price_decimal(self) -> Decimal | None:
        return parse_decimal(self.p)

    def probability_percent(self) -> Decimal | None:
        price = self.price_decimal()
        return price * 100 if price is not None else None


class PriceHistory(BaseModel):
    """Response body of /prices-history."""

    history: list[PricePoint] = Field(default_factory=list)


class BookLevel(BaseModel):
    """Single order book level as returned by /book (strings)."""

    model_config = ConfigDict(frozen=True)

    price: str = ""
    size: str = ""

    @property
    def price_decimal(self) -> Decimal | None:
        return parse_decimal(self.price)

    @property
    def size_decimal(self) -> Decimal | None:
        return parse_decimal(self.size)


class OrderBookSnapshot(BaseModel):
    """Bids and asks for one token, best-first as sent by the server."""

    model_config = ConfigDict(frozen=True)

    bids: list[BookLevel] = Field(default_factory=list)
    asks: list[BookLevel] = Field(default_factory=list)

    @property
    def best_bid(self) -> Decimal | None:
        return self.bids[0].price_decimal if self.bids else None

    @property
    def best_ask(self) -> Decimal | None:
        return self.asks[0].price_decimal if self.asks else None

    @property
    def spread(self) -> Decimal | None:
        bid, ask = self.best_bid, self.best_ask
        if bid is None or ask is None:
            return None
        return ask - bid

    @property
    def mid_price(self) -> Decimal | None:
        bid, ask = self.best_bid, self.best_ask
        if bid is None or ask is None:
            return None
        return (bid + ask) / 2


class PriceRecord(BaseModel):
    """One exported row: timestamp, market name, price in [0, 1]."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    market_name: str
    price: Decimal

    @property
    def probability(self) -> Decimal:
        return self.price * 100
