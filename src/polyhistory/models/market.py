"""MarketDescriptor, MarketEvent, MarketPage - Gamma API entities."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _decode_string_list(value: Any) -> Any:
    """Gamma encodes outcome arrays either as JSON lists or as JSON strings."""
    if value is None:
        return []
    if isinstance(value, str):
        if not value.strip():
            return []
        return json.loads(value)
    return value


class MarketDescriptor(BaseModel):
    """Single Gamma market: question plus parallel outcome/token lists."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = ""
    question: str = ""
    slug: str = ""
    condition_id: str = Field("", alias="conditionId")
    outcomes: list[str] = Field(default_factory=list)
    clob_token_ids: list[str] = Field(default_factory=list, alias="clobTokenIds")
    closed: bool = False
    active: bool = False
    archived: bool = False
    start_date: str | None = Field(None, alias="startDate")
    end_date: str | None = Field(None, alias="endDate")

    @field_validator("outcomes", "clob_token_ids", mode="before")
    @classmethod
    def _parse_lists(cls, value: Any) -> Any:
        return _decode_string_list(value)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @property
    def has_consistent_outcomes(self) -> bool:
        return len(self.outcomes) == len(self.clob_token_ids)

    def token_for_outcome(self, label: str) -> str | None:
        """Token id whose outcome label equals label (case-insensitive), else None."""
        wanted = label.casefold()
        for name, token_id in zip(self.outcomes, self.clob_token_ids):
            if name.casefold() == wanted:
                return token_id
        return None


class MarketEvent(BaseModel):
    """Gamma event grouping one or more markets."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str = ""
    slug: str = ""
    description: str = ""
    closed: bool = False
    archived: bool = False
    markets: list[MarketDescriptor] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @field_validator("markets", mode="before")
    @classmethod
    def _none_markets(cls, value: Any) -> Any:
        return value or []


class MarketPage(BaseModel):
    """One page of the /markets listing."""

    data: list[MarketDescriptor] = Field(default_factory=list)
    count: int = 0
    next_offset: int | None = None
