"""Polymarket CLOB API client - price history and order book snapshots."""

from __future__ import annotations

import time
from typing import Any, Callable

import httpx
import structlog
from pydantic import ValidationError

from polyhistory.ingestion.errors import ApiError, ErrorKind
from polyhistory.ingestion.http import build_client, get_json
from polyhistory.ingestion.rate_limit import backoff_on_429
from polyhistory.models import OrderBookSnapshot, PriceHistory, PricePoint

log = structlog.get_logger(__name__)

CLOB_API_BASE = "https://clob.polymarket.com"


class ClobClient:
    """Per-token reads from the CLOB API. 404 means no data; 429 is retried."""

    def __init__(
        self,
        base_url: str = CLOB_API_BASE,
        timeout: float = 30.0,
        *,
        fidelity: int = 60,
        max_retries: int = 3,
        initial_backoff_sec: float = 1.0,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.fidelity = fidelity
        self.max_retries = max_retries
        self.initial_backoff_sec = initial_backoff_sec
        self._client = client or build_client(self.base_url, timeout)
        self._sleep = sleep

    def __enter__(self) -> ClobClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _get_with_backoff(self, path: str, params: dict[str, Any]) -> Any | None:
        """GET with 429 backoff. Returns None on 404; raises ApiError otherwise."""
        attempt = 0
        while True:
            try:
                return get_json(self._client, path, params=params)
            except ApiError as e:
                if e.kind is ErrorKind.NOT_FOUND:
                    return None
                if e.kind is not ErrorKind.RATE_LIMITED:
                    raise
                if attempt >= self.max_retries:
                    log.error("clob_rate_limit_exhausted", path=path, attempts=attempt + 1)
                    raise
                delay = backoff_on_429(attempt, self.initial_backoff_sec)
                attempt += 1
                log.warning(
                    "clob_rate_limited",
                    path=path,
                    retry=attempt,
                    max_retries=self.max_retries,
                    delay=delay,
                )
                self._sleep(delay)

    def get_price_history(self, token_id: str) -> list[PricePoint]:
        """Full price history for one outcome token. Empty list when none exists."""
        if not token_id:
            return []
        raw = self._get_with_backoff(
            "/prices-history",
            {"market": token_id, "interval": "max", "fidelity": self.fidelity},
        )
        if raw is None:
            return []
        try:
            return PriceHistory.model_validate(raw).history
        except ValidationError as e:
            raise ApiError(
                f"Unexpected /prices-history payload: {e}", ErrorKind.DECODE
            ) from e

    def get_orderbook(self, token_id: str) -> OrderBookSnapshot | None:
        """Current book for one outcome token, or None when the token has no book."""
        if not token_id:
            return None
        raw = self._get_with_backoff("/book", {"token_id": token_id})
        if raw is None:
            return None
        try:
            return OrderBookSnapshot.model_validate(raw)
        except ValidationError as e:
            raise ApiError(f"Unexpected /book payload: {e}", ErrorKind.DECODE) from e
