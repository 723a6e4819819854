"""Application layer: use-case services and the engine facade."""

from audioscrobbler.application.engine import AudioscrobblerEngine
from audioscrobbler.application.services import SubmitOutcome

__all__ = ["AudioscrobblerEngine", "SubmitOutcome"]
