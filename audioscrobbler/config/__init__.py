"""Configuration module for the scrobbler engine.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application

resilient_operation(operation_name: str)
    Decorator for handling errors in network boundary operations

Usage:
------
```python
from audioscrobbler.config import settings
interval = settings.scrobbler.submit_interval

from audioscrobbler.config import get_logger
logger = get_logger(__name__)
logger.info("Starting submission")
```
"""

from .logging import (
    get_logger,
    log_startup_info,
    resilient_operation,
    setup_loguru_logger,
)
from .settings import (
    CredentialsConfig,
    DatabaseConfig,
    LoggingConfig,
    ScrobblerConfig,
    Settings,
    settings,
)

__all__ = [
    "CredentialsConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "ScrobblerConfig",
    "Settings",
    "get_logger",
    "log_startup_info",
    "resilient_operation",
    "settings",
    "setup_loguru_logger",
]
