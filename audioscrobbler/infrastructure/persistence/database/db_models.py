"""SQLAlchemy database models for the durable scrobble queue.

SQLAlchemy 2.0 declarative models with typed ``Mapped`` columns.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, Integer, MetaData, String
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from audioscrobbler.domain.entities import Scrobble

# Define naming convention for constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class ScrobblerDBBase(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""

    metadata = metadata

    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )


class DBPendingScrobble(ScrobblerDBBase):
    """One queued scrobble of one account, ordered by ``position``."""

    __tablename__ = "pending_scrobbles"

    username: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    artist_name: Mapped[str] = mapped_column(String(255), nullable=False)
    track_name: Mapped[str] = mapped_column(String(255), nullable=False)
    album_name: Mapped[str | None] = mapped_column(String(255))
    played_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration_seconds: Mapped[int | None] = mapped_column(Integer)
    mbid: Mapped[str | None] = mapped_column(String(64))

    __table_args__ = (Index("ix_pending_scrobbles_user_position", "username", "position"),)

    @classmethod
    def from_domain(cls, username: str, position: int, scrobble: Scrobble) -> "DBPendingScrobble":
        return cls(
            username=username,
            position=position,
            artist_name=scrobble.artist_name,
            track_name=scrobble.track_name,
            album_name=scrobble.album_name,
            played_at=scrobble.played_at,
            duration_seconds=scrobble.duration_seconds,
            mbid=scrobble.mbid,
        )

    def to_domain(self) -> Scrobble:
        return Scrobble(
            artist_name=self.artist_name,
            track_name=self.track_name,
            played_at=self.played_at,
            album_name=self.album_name,
            duration_seconds=self.duration_seconds,
            mbid=self.mbid,
        )
