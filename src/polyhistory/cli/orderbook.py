"""Orderbook subcommand: best bid/ask per outcome for one event."""

from __future__ import annotations

from decimal import Decimal

import typer

from polyhistory.cli.common import echo_fatal, make_clob_client, make_gamma_client, make_rate_limiter
from polyhistory.models import OrderBookSnapshot
from polyhistory.pipeline.orderbook import OrderbookLookupError, get_event_orderbooks

NAME_WIDTH = 48


def format_pct(value: Decimal | None) -> str:
    """0.4512 -> '45.12%'; None -> 'N/A'."""
    if value is None:
        return "N/A"
    return f"{value * 100:.2f}%"


def truncate(name: str, width: int = NAME_WIDTH) -> str:
    return name if len(name) <= width else name[: width - 3] + "..."


def render_table(books: dict[str, OrderBookSnapshot | None]) -> list[str]:
    lines = [
        "=" * 80,
        f"{'Outcome':<50} {'Best Bid':>12} {'Best Ask':>12}",
        "-" * 80,
    ]
    for name, book in books.items():
        bid = format_pct(book.best_bid) if book else "N/A"
        ask = format_pct(book.best_ask) if book else "N/A"
        lines.append(f"{truncate(name):<50} {bid:>12} {ask:>12}")
    lines.append("=" * 80)
    return lines


def orderbook(
    ctx: typer.Context,
    event: str = typer.Argument(
        ..., help="Event slug or URL, e.g. https://polymarket.com/event/bitcoin-price-on-january-21"
    ),
) -> None:
    """Print best bid and best ask for every outcome of an event."""
    settings = ctx.obj["settings"]
    try:
        with make_gamma_client(settings, discovery=False) as gamma, make_clob_client(settings) as clob:
            books = get_event_orderbooks(event, gamma, clob, make_rate_limiter(settings))
    except (ValueError, OrderbookLookupError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except Exception as e:
        echo_fatal(e)
        raise typer.Exit(1)
    for line in render_table(books):
        typer.echo(line)
