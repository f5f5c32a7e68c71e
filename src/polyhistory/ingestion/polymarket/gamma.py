"""Polymarket Gamma API client - paginated market discovery and event lookup."""

from __future__ import annotations

import time
from typing import Any, Callable

import httpx
import structlog
from pydantic import ValidationError

from polyhistory.ingestion.errors import ApiError, ErrorKind
from polyhistory.ingestion.http import build_client, get_json
from polyhistory.models import MarketDescriptor, MarketEvent, MarketPage

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"


def normalize_slug(text: str) -> str:
    """Gamma slug convention: lower case, spaces become hyphens."""
    return text.strip().lower().replace(" ", "-")


def parse_page(raw: Any, offset: int) -> MarketPage:
    """Decode a /markets body. A bare array is treated as a page with no count."""
    try:
        if isinstance(raw, list):
            data = [MarketDescriptor.model_validate(row) for row in raw]
            return MarketPage(data=data, count=len(data), next_offset=offset + len(data))
        if isinstance(raw, dict):
            return MarketPage.model_validate(raw)
    except ValidationError as e:
        raise ApiError(f"Unexpected /markets payload: {e}", ErrorKind.DECODE) from e
    raise ApiError(f"Unexpected /markets payload type: {type(raw).__name__}", ErrorKind.DECODE)


class GammaClient:
    """Market discovery against Gamma /markets and /events."""

    def __init__(
        self,
        base_url: str = GAMMA_API_BASE,
        timeout: float = 30.0,
        *,
        search_pattern: str = "",
        tag: str = "",
        only_closed: bool = False,
        only_archived: bool = False,
        page_size: int = 100,
        page_delay_sec: float = 0.1,
        retry_delay_sec: float = 5.0,
        max_page_retries: int = 0,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.search_pattern = search_pattern
        self.tag = tag
        self.only_closed = only_closed
        self.only_archived = only_archived
        self.page_size = page_size
        self.page_delay_sec = page_delay_sec
        self.retry_delay_sec = retry_delay_sec
        self.max_page_retries = max_page_retries
        self._client = client or build_client(self.base_url, timeout)
        self._sleep = sleep

    def __enter__(self) -> GammaClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _page_params(self, offset: int, limit: int) -> dict[str, Any]:
        params: dict[str, Any] = {"offset": offset, "limit": limit}
        if self.tag:
            params["tag"] = self.tag
        if self.only_closed:
            params["closed"] = "true"
        if self.only_archived:
            params["archived"] = "true"
        if self.search_pattern:
            params["_searchType"] = "slug"
            params["slug_starts_with"] = normalize_slug(self.search_pattern)
        return params

    def get_page(self, offset: int, limit: int) -> MarketPage:
        """Fetch one page of markets. Raises ApiError."""
        raw = get_json(self._client, "/markets", params=self._page_params(offset, limit))
        return parse_page(raw, offset)

    def get_all_markets(self) -> list[MarketDescriptor]:
        """Walk every page from offset 0. Transient page errors retry the same page."""
        markets: list[MarketDescriptor] = []
        offset = 0
        retries = 0
        while True:
            try:
                page = self.get_page(offset, self.page_size)
            except ApiError as e:
                if not e.retryable:
                    log.error("gamma_page_failed", offset=offset, kind=e.kind.value, error=str(e))
                    raise
                if self.max_page_retries and retries >= self.max_page_retries:
                    log.error("gamma_page_retries_exhausted", offset=offset, retries=retries)
                    raise
                retries += 1
                log.warning(
                    "gamma_page_retry",
                    offset=offset,
                    attempt=retries,
                    error=str(e),
                    delay=self.retry_delay_sec,
                )
                self._sleep(self.retry_delay_sec)
                continue

            retries = 0
            if not page.data:
                break
            markets.extend(page.data)
            log.info("markets_loaded", total=len(markets), offset=offset)
            if page.next_offset is None or len(page.data) < self.page_size:
                break
            offset = page.next_offset
            if self.page_delay_sec > 0:
                self._sleep(self.page_delay_sec)

        log.info("discovery_complete", total=len(markets))
        return markets

    def get_event(self, slug: str) -> MarketEvent | None:
        """Look up one event by slug. None when not found."""
        if not slug or not slug.strip():
            raise ValueError("Slug cannot be empty.")
        key = normalize_slug(slug)
        params = {"slug": key}
        try:
            raw = get_json(self._client, "/events", params=params)
        except ApiError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                return None
            log.error("gamma_event_failed", key=key, error=str(e))
            raise
        if isinstance(raw, dict):
            raw = [raw]
        if not isinstance(raw, list):
            raise ApiError(f"Unexpected /events payload type: {type(raw).__name__}", ErrorKind.DECODE)
        if not raw:
            return None
        try:
            return MarketEvent.model_validate(raw[0])
        except ValidationError as e:
            raise ApiError(f"Unexpected /events payload: {e}", ErrorKind.DECODE) from e
