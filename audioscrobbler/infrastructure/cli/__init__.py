"""Command-line interface built on Typer and Rich."""

from audioscrobbler.infrastructure.cli.app import app, main

__all__ = ["app", "main"]
