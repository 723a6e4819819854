"""Audioscrobbler CLI - Main application entry point and app structure."""

from pathlib import Path
from typing import Annotated

import typer

from audioscrobbler import __version__
from audioscrobbler.config import get_logger, log_startup_info, setup_loguru_logger
from audioscrobbler.infrastructure.cli.commands import register_scrobbler_commands
from audioscrobbler.infrastructure.cli.ui import console

logger = get_logger(__name__).bind(service="cli")

app = typer.Typer(
    help="Audioscrobbler - protocol 1.1 submission client",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,  # Locals may hold the password
)

register_scrobbler_commands(app)


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize the audioscrobbler CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_loguru_logger(verbose)
    Path("data").mkdir(exist_ok=True)

    try:
        log_startup_info()
    except Exception as err:
        logger.exception("Error during startup")
        raise typer.Exit(1) from err


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"audioscrobbler [bold]{__version__}[/bold]")


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
