"""Cache subcommand: inspect or reset the processed-markets file."""

from __future__ import annotations

import typer

from polyhistory.storage.tracker import ProcessedMarketTracker

app = typer.Typer(help="Processed-markets cache")


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show how many tokens are marked processed."""
    tracker = ProcessedMarketTracker(ctx.obj["settings"].processed_markets_file)
    typer.echo(f"Cache file: {tracker.cache_file_path}")
    typer.echo(f"Processed tokens: {tracker.count}")


@app.command("clear")
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Forget all processed tokens so the next export refetches everything."""
    tracker = ProcessedMarketTracker(ctx.obj["settings"].processed_markets_file)
    if not yes:
        typer.confirm(f"Clear {tracker.count} processed tokens?", abort=True)
    tracker.clear()
    typer.echo("Cache cleared.")
