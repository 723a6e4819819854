"""Scrobble queue implementations."""

from .scrobble_queue import (
    InMemoryScrobbleQueue,
    SqlScrobbleQueue,
    serialize_scrobble,
    serialize_scrobbles,
)

__all__ = [
    "InMemoryScrobbleQueue",
    "SqlScrobbleQueue",
    "serialize_scrobble",
    "serialize_scrobbles",
]
