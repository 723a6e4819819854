"""UI helpers for CLI interaction.

Reusable Rich renderers and the command error handler, keeping presentation
separate from the engine.
"""

from collections.abc import Callable
import functools
from typing import ParamSpec, TypeVar

from rich.console import Console
from rich.table import Table
import typer

from audioscrobbler.application import AudioscrobblerEngine, SubmitOutcome
from audioscrobbler.config import get_logger

# Initialize console and logger
console = Console()
logger = get_logger(__name__).bind(service="cli")


P = ParamSpec("P")
R = TypeVar("R")


def command_error_handler(func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Logs unexpected exceptions with their traceback, prints a short message
    and exits with code 1. ``typer.Exit`` and ``typer.Abort`` pass through.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except typer.Exit:
                raise

            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def display_status(engine: AudioscrobblerEngine) -> None:
    """Render the engine's observable state as a table."""
    table = Table(title="Audioscrobbler Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="bold")

    table.add_row("User", engine.username or "[red]not configured[/red]")
    table.add_row(
        "Connected",
        "[green]✓ Yes[/green]" if engine.connected else "[red]✗ No[/red]",
    )
    table.add_row("Queued scrobbles", str(engine.queue_length))
    table.add_row("Submit interval", f"{engine.submit_interval} sec")
    safe_mode = (
        f"[yellow]on ({engine.failure_count} failures)[/yellow]"
        if engine.failure_count
        else "off"
    )
    table.add_row("Safe mode", safe_mode)

    console.print()
    console.print(table)
    console.print()


def display_queue(engine: AudioscrobblerEngine) -> None:
    """Render pending scrobbles, oldest first."""
    pending = engine.queue.pending()
    if not pending:
        console.print("[dim]No pending scrobbles[/dim]")
        return

    table = Table(title=f"Pending Scrobbles ({len(pending)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Played at (UTC)", style="cyan")
    table.add_column("Artist")
    table.add_column("Track")
    table.add_column("Album", style="dim")

    for index, scrobble in enumerate(pending):
        table.add_row(
            str(index),
            scrobble.played_at.strftime("%Y-%m-%d %H:%M:%S"),
            scrobble.artist_name,
            scrobble.track_name,
            scrobble.album_name or "",
        )

    console.print(table)


def display_outcome(outcome: SubmitOutcome | None, remaining: int) -> None:
    match outcome:
        case SubmitOutcome.SUBMITTED:
            console.print(f"[green]✓ Submitted[/green] ({remaining} still queued)")
        case SubmitOutcome.EMPTY_QUEUE:
            console.print("[dim]Nothing to submit[/dim]")
        case None:
            console.print(f"[yellow]No submission attempted[/yellow] ({remaining} queued)")
        case _:
            console.print(f"[yellow]Submission not completed: {outcome}[/yellow] ({remaining} queued)")
