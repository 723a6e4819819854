"""Client engine for the Audioscrobbler submission protocol."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("audioscrobbler")
except PackageNotFoundError:
    # Development environment fallback
    __version__ = "0.1.0-dev"

__license__ = "MIT"

from audioscrobbler.config import get_logger, resilient_operation  # noqa: E402

__all__ = [
    "__version__",
    "get_logger",
    "resilient_operation",
]
