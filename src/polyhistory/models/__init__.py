"""Data model (Pydantic) - markets, price history, order books, export rows."""

from polyhistory.models.history import (
    BookLevel,
    OrderBookSnapshot,
    PriceHistory,
    PricePoint,
    PriceRecord,
    parse_decimal,
)
from polyhistory.models.market import MarketDescriptor, MarketEvent, MarketPage

__all__ = [
    "MarketDescriptor",
    "MarketEvent",
    "MarketPage",
    "PricePoint",
    "PriceHistory",
    "BookLevel",
    "OrderBookSnapshot",
    "PriceRecord",
    "parse_decimal",
]
