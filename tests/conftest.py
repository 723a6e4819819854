"""Shared fixtures: a scripted fake server and engines wired to it."""

import os
from pathlib import Path
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault(
    "LOG_FILE", str(Path(tempfile.gettempdir()) / "audioscrobbler-tests.log")
)

from datetime import UTC, datetime  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from audioscrobbler.application import AudioscrobblerEngine  # noqa: E402
from audioscrobbler.config import ScrobblerConfig  # noqa: E402
from audioscrobbler.domain.entities import Scrobble  # noqa: E402
from audioscrobbler.infrastructure.connectors import ScrobblerTransport  # noqa: E402
from audioscrobbler.infrastructure.persistence.repositories import (  # noqa: E402
    InMemoryScrobbleQueue,
)

SUBMIT_URL = "http://post.example.com/protocol_1.1"
UPTODATE = f"UPTODATE\nabc123\n{SUBMIT_URL}\n"


class FakeScrobblerServer:
    """Answers requests from a script and records every request it sees.

    Each scripted entry is a body string (served with status 200), an
    ``httpx.Response`` or a callable (plain or async) taking the request.
    Once the script is exhausted ``default`` is served.
    """

    def __init__(self, *responses, default=None):
        self.responses = list(responses)
        self.default = default
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        entry = self.responses.pop(0) if self.responses else self.default
        if entry is None:
            return httpx.Response(500, text="no scripted response")
        if callable(entry):
            return entry(request)
        if isinstance(entry, httpx.Response):
            return entry
        return httpx.Response(200, text=entry)

    def transport(self, config: ScrobblerConfig) -> ScrobblerTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return ScrobblerTransport(config=config, client=client)

    @property
    def submissions(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def handshakes(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.params.get("hs") == "true"]


@pytest.fixture
def test_config():
    """Scrobbler configuration without connect gating or transport retries."""
    return ScrobblerConfig(min_connect_wait=0, transport_retry_count=1)


@pytest.fixture
def scrobble():
    """A single played track."""
    return Scrobble(
        artist_name="Boards of Canada",
        track_name="Roygbiv",
        played_at=datetime(2024, 5, 1, 12, 30, 5, tzinfo=UTC),
        album_name="Music Has the Right to Children",
        duration_seconds=151,
    )


@pytest.fixture
def make_scrobbles():
    """Factory for numbered scrobbles one minute apart."""

    def _make(count: int) -> list[Scrobble]:
        return [
            Scrobble(
                artist_name=f"Artist {i}",
                track_name=f"Track {i}",
                played_at=datetime(2024, 5, 1, 12, i, 0, tzinfo=UTC),
            )
            for i in range(count)
        ]

    return _make


@pytest.fixture
def make_engine(test_config):
    """Factory for engines talking to a fake server with an in-memory queue."""
    def _make(
        server: FakeScrobblerServer,
        username: str = "alice",
        password: str = "secret",
        config: ScrobblerConfig | None = None,
        queue=None,
        **kwargs,
    ) -> AudioscrobblerEngine:
        config = config or test_config
        engine = AudioscrobblerEngine(
            username=username,
            password=password,
            config=config,
            queue=queue if queue is not None else InMemoryScrobbleQueue(),
            transport=server.transport(config),
            **kwargs,
        )
        return engine

    return _make
