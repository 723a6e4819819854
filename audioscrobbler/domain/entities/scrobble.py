"""Played-track record waiting in the submission queue."""

from datetime import UTC, datetime

from attrs import define, field, validators


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@define(frozen=True, slots=True)
class Scrobble:
    """Immutable play event.

    The submission core never looks inside a scrobble; only the queue's
    serializer reads these fields when building the wire payload.
    """

    artist_name: str = field(validator=validators.min_len(1))
    track_name: str = field(validator=validators.min_len(1))
    played_at: datetime = field(converter=_to_utc)
    album_name: str | None = field(default=None)
    duration_seconds: int | None = field(
        default=None,
        validator=validators.optional(validators.ge(0)),
    )
    mbid: str | None = field(default=None)

    def short_description(self) -> str:
        return f"{self.artist_name} - {self.track_name}"
