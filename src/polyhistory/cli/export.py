"""Export subcommand: run the full discovery/history/CSV pipeline."""

from __future__ import annotations

import typer

from polyhistory.cli.common import echo_fatal, make_clob_client, make_gamma_client, make_rate_limiter
from polyhistory.config import Settings
from polyhistory.pipeline.processor import MarketProcessor, RunStats
from polyhistory.storage.tracker import ProcessedMarketTracker


def print_summary(stats: RunStats) -> None:
    typer.echo(f"Markets discovered:   {stats.discovered}")
    typer.echo(f"Matching pattern:     {stats.filtered}")
    typer.echo(f"With target outcome:  {stats.selected}")
    typer.echo(f"Fetched:              {stats.processed}")
    typer.echo(f"Skipped (cached):     {stats.skipped}")
    typer.echo(f"Errors:               {stats.errors}")
    typer.echo(f"Records written:      {stats.records}")
    if stats.output_path:
        typer.echo(f"Output file:          {stats.output_path}")
    else:
        typer.echo("No new records; no export file written.")
    typer.echo(f"Elapsed:              {stats.elapsed_sec:.1f}s")


def run_export(settings: Settings) -> int:
    """Run the pipeline once. Returns the process exit code."""
    typer.echo(f"Search pattern: {settings.search_pattern!r}  tag: {settings.tag!r}")
    typer.echo(f"Output directory: {settings.output_directory}")
    tracker = ProcessedMarketTracker(settings.processed_markets_file)
    try:
        with make_gamma_client(settings) as gamma, make_clob_client(settings) as clob:
            processor = MarketProcessor(
                gamma,
                clob,
                tracker,
                make_rate_limiter(settings),
                output_directory=settings.output_directory,
                export_file_pattern=settings.export_file_pattern,
                search_pattern=settings.search_pattern,
                target_outcome=settings.target_outcome,
            )
            stats = processor.run()
    except Exception as e:
        echo_fatal(e)
        return 1
    print_summary(stats)
    typer.echo("Export completed successfully!")
    return 0


def export(ctx: typer.Context) -> None:
    """Discover markets, fetch new price history, and write one CSV file."""
    code = run_export(ctx.obj["settings"])
    if code:
        raise typer.Exit(code)
