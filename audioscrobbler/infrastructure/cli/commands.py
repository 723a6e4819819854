"""Scrobbler commands for the audioscrobbler CLI."""

import asyncio
from datetime import UTC, datetime
from typing import Annotated

import typer

from audioscrobbler.application import AudioscrobblerEngine, SubmitOutcome
from audioscrobbler.config import get_logger, resilient_operation
from audioscrobbler.domain.entities import Scrobble
from audioscrobbler.infrastructure.cli.ui import (
    command_error_handler,
    console,
    display_outcome,
    display_queue,
    display_status,
)
from audioscrobbler.infrastructure.persistence.database import init_db
from audioscrobbler.infrastructure.persistence.repositories import SqlScrobbleQueue

logger = get_logger(__name__).bind(service="cli")


def register_scrobbler_commands(app: typer.Typer) -> None:
    """Register scrobbler commands with the Typer app."""
    app.command()(status)
    app.command()(handshake)
    app.command()(radio)
    app.command()(scrobble)
    app.command()(flush)
    app.command()(queue)


def build_engine() -> AudioscrobblerEngine:
    """Engine for the configured account, backed by the SQL queue."""
    return AudioscrobblerEngine.from_settings(queue_factory=SqlScrobbleQueue)


async def _open_engine() -> AudioscrobblerEngine:
    await init_db()
    engine = build_engine()
    await engine.queue.load()
    return engine


@resilient_operation("status")
async def _status() -> AudioscrobblerEngine:
    engine = await _open_engine()
    await engine.transport.aclose()
    return engine


@resilient_operation("handshake")
async def _handshake(force: bool) -> tuple[bool, AudioscrobblerEngine]:
    engine = await _open_engine()
    try:
        return await engine.handshake(force=force), engine
    finally:
        await engine.close()


@resilient_operation("radio_handshake")
async def _radio(force: bool) -> tuple[bool, str, bool]:
    engine = await _open_engine()
    try:
        ok = await engine.radio_handshake(force=force)
        return ok, engine.session.radio.stream_url, engine.subscriber
    finally:
        await engine.close()


@resilient_operation("scrobble")
async def _scrobble(track: Scrobble) -> tuple[SubmitOutcome | None, int]:
    await init_db()
    async with build_engine() as engine:
        await engine.push_track(track)
        await engine.scheduler.wait_idle()
        return engine.scheduler.last_outcome, engine.queue_length


@resilient_operation("flush")
async def _flush() -> tuple[SubmitOutcome, int]:
    engine = await _open_engine()
    try:
        return await engine.flush(), engine.queue_length
    finally:
        await engine.close()


@command_error_handler
def status() -> None:
    """Show account, queue and safe mode state."""
    display_status(asyncio.run(_status()))


@command_error_handler
def handshake(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Ignore the cached handshake")
    ] = False,
) -> None:
    """Sign in to the submission server."""
    ok, engine = asyncio.run(_handshake(force))
    if not ok:
        console.print("[red]✗ Handshake failed[/red]")
        display_status(engine)
        raise typer.Exit(1)
    console.print(f"[green]✓ Signed in as {engine.username}[/green]")
    logger.success("Handshake completed", username=engine.username)


@command_error_handler
def radio(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Ignore the cached radio session")
    ] = False,
) -> None:
    """Open a radio session."""
    ok, stream_url, subscriber = asyncio.run(_radio(force))
    if not ok:
        console.print("[red]✗ Radio handshake failed[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Radio session open[/green] stream: {stream_url}")
    if subscriber:
        console.print("[cyan]Subscriber account[/cyan]")


@command_error_handler
def scrobble(
    artist: Annotated[str, typer.Argument(help="Artist name")],
    title: Annotated[str, typer.Argument(help="Track title")],
    album: Annotated[str | None, typer.Option("--album", "-a", help="Album name")] = None,
    duration: Annotated[
        int | None, typer.Option("--duration", "-d", min=0, help="Track length in seconds")
    ] = None,
    mbid: Annotated[str | None, typer.Option("--mbid", help="MusicBrainz track id")] = None,
) -> None:
    """Queue a play that just finished and submit it."""
    track = Scrobble(
        artist_name=artist,
        track_name=title,
        played_at=datetime.now(UTC),
        album_name=album,
        duration_seconds=duration,
        mbid=mbid,
    )
    outcome, remaining = asyncio.run(_scrobble(track))
    display_outcome(outcome, remaining)


@command_error_handler
def flush() -> None:
    """Submit every pending scrobble now."""
    outcome, remaining = asyncio.run(_flush())
    display_outcome(outcome, remaining)
    if remaining:
        raise typer.Exit(1)


@command_error_handler
def queue() -> None:
    """List pending scrobbles."""
    engine = asyncio.run(_status())
    display_queue(engine)
