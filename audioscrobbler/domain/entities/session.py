"""Authentication state shared by the handshake and submission paths."""

from datetime import datetime, timedelta
from http.cookiejar import CookieJar

from attrs import define, field


@define(frozen=True, slots=True)
class RadioSession:
    """Result of a successful radio handshake. Empty until then."""

    session_id: str = ""
    stream_url: str = ""
    subscriber: bool = False

    @property
    def is_active(self) -> bool:
        return bool(self.session_id)


@define(slots=True)
class SessionState:
    """Mutable per-account session.

    ``challenge`` and ``submit_url`` are only meaningful after a successful
    main handshake, and ``radio`` only after a successful radio handshake.
    A new instance replaces the old one whenever the account changes.
    """

    username: str = ""
    password: str = field(default="", repr=False)
    signed_in: bool = False
    challenge: str = field(default="", repr=False)
    submit_url: str = ""
    cookies: CookieJar = field(factory=CookieJar, repr=False)
    last_handshake: datetime | None = None
    last_radio_handshake: datetime | None = None
    radio: RadioSession = field(factory=RadioSession)

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)

    def handshake_due(self, now: datetime, interval: timedelta) -> bool:
        """Whether the cached main handshake has expired."""
        if self.last_handshake is None:
            return True
        return now >= self.last_handshake + interval

    def radio_handshake_due(self, now: datetime, interval: timedelta) -> bool:
        """Whether the cached radio handshake has expired."""
        if self.last_radio_handshake is None:
            return True
        return now >= self.last_radio_handshake + interval

    def invalidate_handshake(self) -> None:
        """Allow a new handshake to happen on the next attempt."""
        self.last_handshake = None

    def mark_signed_in(self, challenge: str, submit_url: str, now: datetime) -> None:
        self.challenge = challenge
        self.submit_url = submit_url
        self.signed_in = True
        self.last_handshake = now

    def mark_radio_session(self, radio: RadioSession, now: datetime) -> None:
        self.radio = radio
        self.last_radio_handshake = now

    def reset(self) -> None:
        """Drop everything learned from the server, keeping the account."""
        self.signed_in = False
        self.challenge = ""
        self.submit_url = ""
        self.cookies.clear()
        self.last_handshake = None
        self.last_radio_handshake = None
        self.radio = RadioSession()
