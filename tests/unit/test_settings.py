"""Tests for configuration snapshots and the config package surface."""

from pydantic import ValidationError
import pytest

from audioscrobbler import config
from audioscrobbler.config import ScrobblerConfig


class TestScrobblerConfig:
    """Test validation of the scrobbler snapshot."""

    def test_defaults(self):
        scrobbler = ScrobblerConfig()
        assert scrobbler.submit_interval == 30
        assert scrobbler.max_batch_size == 10
        assert scrobbler.disable_timer_submit

    @pytest.mark.parametrize(
        "field", ["submit_interval", "handshake_interval_minutes", "max_batch_size"]
    )
    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_values_rejected(self, field, value):
        with pytest.raises(ValidationError):
            ScrobblerConfig(**{field: value})

    def test_snapshot_is_frozen(self):
        scrobbler = ScrobblerConfig()
        with pytest.raises(ValidationError):
            scrobbler.submit_interval = 60


class TestConfigPackage:
    """Test the names the config package exports."""

    def test_public_api(self):
        assert set(config.__all__) == {
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
        }
        for name in config.__all__:
            assert hasattr(config, name)
