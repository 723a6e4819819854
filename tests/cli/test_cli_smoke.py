"""Smoke tests for the CLI, with the engine wired to a fake server."""

from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from conftest import UPTODATE, FakeScrobblerServer

from audioscrobbler.application import AudioscrobblerEngine
from audioscrobbler.config import ScrobblerConfig
from audioscrobbler.infrastructure.cli.app import app
from audioscrobbler.infrastructure.persistence.repositories import InMemoryScrobbleQueue

COMMANDS_MODULE = "audioscrobbler.infrastructure.cli.commands"


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_engine():
    """Patch engine construction so every command talks to one fake server."""
    config = ScrobblerConfig(min_connect_wait=0, transport_retry_count=1)
    queue = InMemoryScrobbleQueue()

    def _install(server: FakeScrobblerServer):
        def build():
            return AudioscrobblerEngine(
                username="alice",
                password="secret",
                config=config,
                queue=queue,
                transport=server.transport(config),
            )

        return build

    with patch(f"{COMMANDS_MODULE}.init_db", new=AsyncMock()):
        yield _install


class TestCommandStructure:
    """Test that the command structure exists and is accessible."""

    def test_main_help_shows_commands(self, runner):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("version", "status", "handshake", "radio", "scrobble", "flush", "queue"):
            assert command in result.stdout

    def test_version_command_works(self, runner):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "audioscrobbler" in result.stdout

    def test_scrobble_help(self, runner):
        result = runner.invoke(app, ["scrobble", "--help"])
        assert result.exit_code == 0
        assert "--album" in result.stdout


class TestCommands:
    """Run commands end to end against a fake server."""

    def test_scrobble_submits(self, runner, fake_engine):
        server = FakeScrobblerServer(UPTODATE, "OK\n")
        with patch(f"{COMMANDS_MODULE}.build_engine", side_effect=fake_engine(server)):
            result = runner.invoke(
                app, ["scrobble", "Aphex Twin", "Xtal", "--album", "SAW 85-92", "--duration", "294"]
            )

        assert result.exit_code == 0, result.stdout
        assert "Submitted" in result.stdout
        body = server.submissions[0].content.decode()
        assert "&a[0]=Aphex+Twin" in body
        assert "&l[0]=294" in body

    def test_handshake_success(self, runner, fake_engine):
        server = FakeScrobblerServer(UPTODATE)
        with patch(f"{COMMANDS_MODULE}.build_engine", side_effect=fake_engine(server)):
            result = runner.invoke(app, ["handshake"])

        assert result.exit_code == 0
        assert "Signed in as alice" in result.stdout

    def test_handshake_failure_exits_nonzero(self, runner, fake_engine):
        server = FakeScrobblerServer(default="BADAUTH")
        with patch(f"{COMMANDS_MODULE}.build_engine", side_effect=fake_engine(server)):
            result = runner.invoke(app, ["handshake", "--force"])

        assert result.exit_code == 1
        assert "Handshake failed" in result.stdout

    def test_radio(self, runner, fake_engine):
        server = FakeScrobblerServer(
            UPTODATE, "session=abc\nstream_url=http://stream.example.com/r\nsubscriber=0\n"
        )
        with patch(f"{COMMANDS_MODULE}.build_engine", side_effect=fake_engine(server)):
            result = runner.invoke(app, ["radio"])

        assert result.exit_code == 0
        assert "http://stream.example.com/r" in result.stdout

    def test_empty_queue_listing(self, runner, fake_engine):
        server = FakeScrobblerServer()
        with patch(f"{COMMANDS_MODULE}.build_engine", side_effect=fake_engine(server)):
            result = runner.invoke(app, ["queue"])

        assert result.exit_code == 0
        assert "No pending scrobbles" in result.stdout
        assert server.requests == []

    def test_status(self, runner, fake_engine):
        server = FakeScrobblerServer()
        with patch(f"{COMMANDS_MODULE}.build_engine", side_effect=fake_engine(server)):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "alice" in result.stdout
        assert "Queued scrobbles" in result.stdout

    def test_flush_failure_exits_nonzero(self, runner, fake_engine):
        server = FakeScrobblerServer(UPTODATE, "FAILED Bad time\n", UPTODATE)
        with patch(f"{COMMANDS_MODULE}.build_engine", side_effect=fake_engine(server)):
            runner.invoke(app, ["scrobble", "A", "T"])  # rejected, stays queued
            result = runner.invoke(app, ["flush"])

        assert result.exit_code == 1

    def test_unexpected_error_is_reported(self, runner, fake_engine):
        with patch(f"{COMMANDS_MODULE}.build_engine", side_effect=RuntimeError("no database")):
            result = runner.invoke(app, ["status"])

        assert result.exit_code == 1
        assert "no database" in result.stdout
