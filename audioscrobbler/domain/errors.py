"""Error taxonomy for the submission engine.

Every failure is local to one handshake or submission attempt. Services
catch these at their boundary and turn them into boolean or outcome values,
so the engine always stays retryable on the next tick or push.
"""


class ScrobblerError(Exception):
    """Base class for all engine errors."""


class NotConfiguredError(ScrobblerError):
    """Username or password is missing; no network I/O was attempted."""


class TransportError(ScrobblerError):
    """DNS, connect, stream or HTTP status failure of a single exchange."""

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class ProtocolError(ScrobblerError):
    """The server answered, but not with a successful response."""


class ProtocolRejectError(ProtocolError):
    """FAILED, BADUSER or BADAUTH. Escalates the backoff controller."""

    def __init__(self, kind: str, reason: str = "") -> None:
        super().__init__(f"{kind}: {reason}" if reason else kind)
        self.kind = kind
        self.reason = reason


class ClientObsoleteError(ProtocolError):
    """UPDATE response: the server considers this client too old."""


class ProtocolUnrecognizedError(ProtocolError):
    """The first response line matched no known response type."""

    def __init__(self, first_line: str, remaining: list[str] | None = None) -> None:
        super().__init__(f"Unknown response: {first_line!r}")
        self.first_line = first_line
        self.remaining = remaining or []


class ParseFailureError(ProtocolError):
    """A known response type carried a malformed body."""
