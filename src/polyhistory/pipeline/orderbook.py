"""Best bid/ask for every outcome of one event, looked up by slug or URL."""

from __future__ import annotations

import re

import structlog

from polyhistory.ingestion.errors import ApiError
from polyhistory.ingestion.polymarket.clob import ClobClient
from polyhistory.ingestion.polymarket.gamma import GammaClient, normalize_slug
from polyhistory.ingestion.rate_limit import RateLimiter
from polyhistory.models import OrderBookSnapshot

log = structlog.get_logger(__name__)

EVENT_URL_RE = re.compile(r"polymarket\.com/event/([a-zA-Z0-9\-]+)", re.IGNORECASE)


class OrderbookLookupError(Exception):
    """Event missing or has nothing to look up."""


def extract_slug(url_or_slug: str) -> str:
    """Return the event slug from a polymarket.com/event/<slug> URL or a raw slug."""
    match = EVENT_URL_RE.search(url_or_slug)
    if match:
        return match.group(1).lower()
    return normalize_slug(url_or_slug)


def get_event_orderbooks(
    url_or_slug: str,
    gamma_client: GammaClient,
    clob_client: ClobClient,
    rate_limiter: RateLimiter,
) -> dict[str, OrderBookSnapshot | None]:
    """
    Fetch an order book for every outcome of every market in the event.

    Keys are "<market question>: <outcome>". A value is None when the token has
    no book or its lookup failed; single failures do not abort the batch.
    """
    if not url_or_slug or not url_or_slug.strip():
        raise ValueError("Event URL or slug cannot be empty.")
    slug = extract_slug(url_or_slug)
    if not slug:
        raise ValueError(f"Could not extract an event slug from {url_or_slug!r}.")

    event = gamma_client.get_event(slug)
    if event is None:
        raise OrderbookLookupError(f"Event not found: {slug}")
    log.info("event_found", title=event.title, closed=event.closed, markets=len(event.markets))
    if not event.markets:
        raise OrderbookLookupError(f"Event has no markets: {slug}")
    if event.closed:
        log.warning("event_closed", slug=slug, msg="Order book data may be limited or unavailable.")

    results: dict[str, OrderBookSnapshot | None] = {}
    ok = failed = 0
    for market in event.markets:
        if not market.has_consistent_outcomes:
            log.warning(
                "outcome_token_mismatch",
                question=market.question,
                outcomes=len(market.outcomes),
                token_ids=len(market.clob_token_ids),
            )
            continue
        if market.closed and not market.active:
            log.info("market_skipped_closed", question=market.question)
            continue
        for outcome, token_id in zip(market.outcomes, market.clob_token_ids):
            key = f"{market.question}: {outcome}"
            rate_limiter.wait()
            try:
                book = clob_client.get_orderbook(token_id)
            except ApiError as e:
                failed += 1
                results[key] = None
                log.warning("orderbook_fetch_failed", outcome=key, kind=e.kind.value, error=str(e))
                continue
            results[key] = book
            if book is not None:
                ok += 1
            log.debug(
                "orderbook_fetched",
                outcome=key,
                best_bid=str(book.best_bid) if book else None,
                best_ask=str(book.best_ask) if book else None,
            )

    log.info("orderbooks_complete", outcomes=len(results), successful=ok, failed=failed)
    return results
