"""Build API clients and helpers from Settings for CLI commands."""

from __future__ import annotations

import traceback

import typer

from polyhistory.config import Settings
from polyhistory.ingestion.polymarket.clob import ClobClient
from polyhistory.ingestion.polymarket.gamma import GammaClient
from polyhistory.ingestion.rate_limit import RateLimiter


def make_gamma_client(settings: Settings, *, discovery: bool = True) -> GammaClient:
    """Gamma client; discovery=False drops the search filters (event lookups)."""
    if not discovery:
        return GammaClient(settings.gamma_api_base, settings.http_timeout_sec)
    return GammaClient(
        settings.gamma_api_base,
        settings.http_timeout_sec,
        search_pattern=settings.search_pattern,
        tag=settings.tag,
        only_closed=settings.only_closed,
        only_archived=settings.only_archived,
        page_size=settings.page_size,
        page_delay_sec=settings.page_delay_sec,
        retry_delay_sec=settings.page_retry_delay_sec,
        max_page_retries=settings.max_page_retries,
    )


def make_clob_client(settings: Settings) -> ClobClient:
    return ClobClient(
        settings.clob_api_base,
        settings.http_timeout_sec,
        fidelity=settings.history_fidelity,
        max_retries=settings.max_retries,
        initial_backoff_sec=settings.initial_backoff_sec,
    )


def make_rate_limiter(settings: Settings) -> RateLimiter:
    return RateLimiter(delay_ms=settings.rate_limit_delay_ms)


def echo_fatal(e: BaseException) -> None:
    """Print a fatal error with its traceback to stderr."""
    typer.echo("=" * 50, err=True)
    typer.echo(f"Fatal error: {e}", err=True)
    typer.echo("".join(traceback.format_exception(e)), err=True)
    typer.echo("=" * 50, err=True)
