"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from polyhistory.config import ConfigError, get_settings
from polyhistory.config.settings import configure_logging

app = typer.Typer(
    name="polyhist",
    help="polyhistory - Polymarket price history exporter and order book viewer.",
)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Load config, configure logging, and run export when no command is given."""
    try:
        settings = get_settings(profile, config_dir)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}
    if ctx.invoked_subcommand is None:
        code = export.run_export(settings)
        if code:
            raise typer.Exit(code)


# Subcommands registered from other modules
from polyhistory.cli import cache, export, orderbook  # noqa: E402

app.command("export")(export.export)
app.command("orderbook")(orderbook.orderbook)
app.add_typer(cache.app, name="cache")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
