"""Configuration management using Pydantic Settings.

This module provides type-safe configuration management with automatic
environment variable loading and validation using Pydantic Settings v2.

The configuration is organized into logical groups:
- DatabaseConfig: Storage for the pending scrobble queue
- LoggingConfig: Logging levels, files, and debugging options
- CredentialsConfig: Last.fm account used for submissions
- ScrobblerConfig: Protocol constants, intervals and submission policy
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database connection for the durable scrobble queue."""

    url: str = "sqlite+aiosqlite:///data/db/scrobbles.db"
    echo: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("audioscrobbler.log")
    real_time_debug: bool = True


class CredentialsConfig(BaseModel):
    """Account used for the submission protocol."""

    lastfm_username: str = ""
    # Stored as produced by the credential store; decrypted once at load
    lastfm_password: str = ""


class ScrobblerConfig(BaseModel):
    """Protocol 1.1 constants and submission policy.

    Instances are immutable snapshots. The engine swaps a whole snapshot
    on reconfiguration instead of mutating fields in place.
    """

    model_config = ConfigDict(frozen=True)

    # Endpoints and client identification
    scrobbler_url: str = "http://post.audioscrobbler.com/"
    radio_url: str = "http://ws.audioscrobbler.com/radio/"
    protocol_version: str = "1.1"
    client_id: str = "mpm"
    client_version: str = "0.1"

    # Radio handshake metadata
    radio_version: str = "1.0.6"
    radio_platform: str = "win32"
    radio_language: str = "en"

    # Cadence
    handshake_interval_minutes: int = Field(default=30, gt=0)
    radio_handshake_multiplier: int = 5  # radio sessions outlive the main one
    submit_interval: int = Field(default=30, gt=0)  # seconds
    min_connect_wait: float = 5.0  # seconds between any two exchanges
    min_advertised_interval: int = 30  # INTERVAL values at or below are ignored

    # Safe mode
    max_failure_count: int = 5
    safe_mode_fallback_interval: int = 120

    # Submission policy
    # Protocol 1.1 accepts at most 10 entries per submission
    max_batch_size: int = Field(default=10, gt=0)
    disable_timer_submit: bool = True

    # Transport
    request_timeout: float = 30.0
    transport_retry_count: int = 2

    debug_log: bool = False


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: DATABASE_URL, CONSOLE_LOG_LEVEL, LASTFM_USERNAME
    - Nested: DATABASE__URL, LOGGING__CONSOLE_LEVEL, SCROBBLER__SUBMIT_INTERVAL

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Nested configuration groups
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    scrobbler: ScrobblerConfig = ScrobblerConfig()

    # Top-level settings
    data_dir: Path = Path("data")

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Transform flat environment variables to nested structure.

        Handles flat env vars (DATABASE_URL) and maps them to the
        nested structure expected by the models (database.url).
        """
        if not isinstance(data, dict):
            return data

        transformed: dict[str, dict[str, Any]] = {}

        mappings = {
            "database": {
                "database_url": "url",
                "database_echo": "echo",
            },
            "logging": {
                "console_log_level": "console_level",
                "file_log_level": "file_level",
                "log_file": "log_file",
                "log_real_time_debug": "real_time_debug",
            },
            "credentials": {
                "lastfm_username": "lastfm_username",
                "lastfm_password": "lastfm_password",
            },
            "scrobbler": {
                "scrobbler_submit_interval": "submit_interval",
                "scrobbler_debug_log": "debug_log",
                "scrobbler_disable_timer_submit": "disable_timer_submit",
            },
        }
        for section, mapping in mappings.items():
            for env_key, field_key in mapping.items():
                if env_key in data:
                    transformed.setdefault(section, {})[field_key] = data.pop(env_key)

        # Merge transformed nested structure back into data
        for section, values in transformed.items():
            existing = data.get(section)
            if isinstance(existing, dict):
                values = {**existing, **values}
            data[section] = values

        return data


# Singleton instance for application use
settings = Settings()
