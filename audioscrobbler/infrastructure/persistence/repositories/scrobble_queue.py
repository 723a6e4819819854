"""Pending scrobble queues.

Both queues keep their contents in memory in playback order and serialize
a prefix of it into the protocol 1.1 submission payload. The SQL queue also
persists its contents per account so plays survive restarts and failed
submissions.
"""

from urllib.parse import quote_plus

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from audioscrobbler.config import get_logger
from audioscrobbler.domain.entities import Scrobble
from audioscrobbler.infrastructure.persistence.database.db_connection import (
    create_session_factory,
    get_session,
)
from audioscrobbler.infrastructure.persistence.database.db_models import (
    DBPendingScrobble,
)

logger = get_logger(__name__).bind(service="queue")

PLAYED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


def serialize_scrobble(index: int, scrobble: Scrobble) -> str:
    """Wire fields of one entry: artist, title, album, mbid, length, time."""
    fields = (
        ("a", scrobble.artist_name),
        ("t", scrobble.track_name),
        ("b", scrobble.album_name or ""),
        ("m", scrobble.mbid or ""),
        ("l", "" if scrobble.duration_seconds is None else str(scrobble.duration_seconds)),
        ("i", scrobble.played_at.strftime(PLAYED_AT_FORMAT)),
    )
    return "".join(f"&{key}[{index}]={quote_plus(value)}" for key, value in fields)


def serialize_scrobbles(scrobbles: list[Scrobble]) -> str:
    return "".join(serialize_scrobble(i, s) for i, s in enumerate(scrobbles))


class InMemoryScrobbleQueue:
    """List-backed queue; ``save`` and ``load`` are no-ops."""

    def __init__(self, scrobbles: list[Scrobble] | None = None) -> None:
        self._items: list[Scrobble] = list(scrobbles or [])

    @property
    def count(self) -> int:
        return len(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def add(self, scrobble: Scrobble) -> None:
        self._items.append(scrobble)

    def remove_range(self, start: int, count: int) -> None:
        if start < 0 or count < 0 or start + count > len(self._items):
            raise IndexError(
                f"Cannot remove {count} entries at {start} from a queue of {len(self._items)}"
            )
        del self._items[start : start + count]

    def serialize_batch(self, limit: int | None = None) -> tuple[str, int]:
        batch = self._items if limit is None else self._items[:limit]
        return serialize_scrobbles(batch), len(batch)

    def pending(self) -> list[Scrobble]:
        return list(self._items)

    async def save(self) -> None:
        return None

    async def load(self) -> None:
        return None


class SqlScrobbleQueue(InMemoryScrobbleQueue):
    """Queue persisted to the ``pending_scrobbles`` table for one account."""

    def __init__(
        self,
        username: str,
        session_factory: async_sessionmaker | None = None,
    ) -> None:
        super().__init__()
        self.username = username
        self._session_factory = session_factory
        self._synced = False

    def _factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = create_session_factory()
        return self._session_factory

    async def load(self) -> None:
        """Read the rows stored for this account ahead of plays queued since.

        Only the first call reads the table: once loaded or saved, the
        in-memory list is the authoritative copy and later calls do nothing.
        """
        if self._synced:
            return
        async with get_session(self._factory()) as session:
            result = await session.execute(
                select(DBPendingScrobble)
                .where(DBPendingScrobble.username == self.username)
                .order_by(DBPendingScrobble.position)
            )
            stored = [row.to_domain() for row in result.scalars()]
        unsaved = len(self._items)
        self._items = stored + self._items
        self._synced = True
        logger.debug(
            f"Loaded {len(stored)} queued scrobbles",
            username=self.username,
            unsaved=unsaved,
        )

    async def save(self) -> None:
        """Rewrite this account's rows to match the in-memory order."""
        snapshot = list(self._items)
        async with get_session(self._factory()) as session:
            await session.execute(
                delete(DBPendingScrobble).where(DBPendingScrobble.username == self.username)
            )
            session.add_all(
                DBPendingScrobble.from_domain(self.username, position, scrobble)
                for position, scrobble in enumerate(snapshot)
            )
        self._synced = True
        logger.debug(f"Saved {len(snapshot)} queued scrobbles", username=self.username)
