"""Application services coordinating handshakes, safe mode and submissions."""

from audioscrobbler.application.services.backoff_controller import BackoffController
from audioscrobbler.application.services.scheduler import SubmissionScheduler
from audioscrobbler.application.services.session_service import SessionService
from audioscrobbler.application.services.submission_service import (
    SubmissionService,
    SubmitOutcome,
)

__all__ = [
    "BackoffController",
    "SessionService",
    "SubmissionScheduler",
    "SubmissionService",
    "SubmitOutcome",
]
