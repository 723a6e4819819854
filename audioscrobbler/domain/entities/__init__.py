"""Core domain entities for the submission engine."""

from .backoff import BackoffState
from .scrobble import Scrobble
from .session import RadioSession, SessionState

__all__ = [
    "BackoffState",
    "RadioSession",
    "Scrobble",
    "SessionState",
]
