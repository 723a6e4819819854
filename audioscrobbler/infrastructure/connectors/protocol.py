"""Audioscrobbler protocol 1.1 codec.

Builds handshake URLs and submission bodies and parses the line-oriented
responses of the submission and radio servers into immutable results.
Nothing here performs I/O or touches session state; the session and
submission services decide what a parsed response means for them.

Response grammar (first non-empty line selects the branch):
- ``UPTODATE`` followed by the challenge and the submit URL
- ``UPDATE <message>``: client is obsolete
- ``OK``: submission accepted
- ``FAILED <reason>``, ``BADUSER``, ``BADAUTH``: rejection
- ``session=<id>`` followed by ``stream_url=<url>`` and ``subscriber=0|1``
- any later ``INTERVAL <seconds>`` line advertises a new submit interval
"""

from enum import StrEnum
import re
from urllib.parse import quote_plus

from attrs import define, field
import pylast

from audioscrobbler.config import ScrobblerConfig
from audioscrobbler.domain.entities import RadioSession
from audioscrobbler.domain.errors import (
    ClientObsoleteError,
    ParseFailureError,
    ProtocolRejectError,
    ProtocolUnrecognizedError,
)

_INTERVAL_RE = re.compile(r"^INTERVAL\s*(?P<value>.*)$")

# Fixed prefix widths of the radio handshake body
_SESSION_PREFIX = "session="
_RADIO_FIELD_WIDTH = 11  # len("stream_url=") == len("subscriber=")

PLUGIN_BUG_HINT = (
    "A server error may have occurred; if this happens often a proxy may "
    "be truncating the request"
)


class ResponseKind(StrEnum):
    """Tag of the first meaningful response line."""

    UPTODATE = "UPTODATE"
    UPDATE = "UPDATE"
    OK = "OK"
    FAILED = "FAILED"
    BADUSER = "BADUSER"
    BADAUTH = "BADAUTH"
    RADIO_SESSION = "RADIO_SESSION"
    RADIO_FAILED = "RADIO_FAILED"
    EMPTY = "EMPTY"
    UNKNOWN = "UNKNOWN"


REJECTION_KINDS = frozenset({ResponseKind.FAILED, ResponseKind.BADUSER, ResponseKind.BADAUTH})


@define(frozen=True, slots=True)
class ProtocolResponse:
    """Parsed server response.

    Attributes:
        kind: Branch selected by the first non-empty line
        challenge: Challenge token of an UPTODATE response
        submit_url: Submission endpoint of an UPTODATE response
        message: Free text after the keyword (FAILED reason, UPDATE message)
        interval: Last INTERVAL value advertised anywhere after the first line
        radio: Parsed radio session of a successful radio handshake
        malformed: The branch was recognized but its body was incomplete
        unparsed_lines: Lines kept for diagnostics (unknown responses)
    """

    kind: ResponseKind
    challenge: str = ""
    submit_url: str = ""
    message: str = ""
    interval: int | None = None
    radio: RadioSession | None = None
    malformed: bool = False
    unparsed_lines: list[str] = field(factory=list)

    @property
    def is_success(self) -> bool:
        if self.malformed:
            return False
        return self.kind in (ResponseKind.UPTODATE, ResponseKind.OK, ResponseKind.RADIO_SESSION)

    @property
    def is_rejection(self) -> bool:
        return self.kind in REJECTION_KINDS

    @property
    def is_plugin_bug(self) -> bool:
        return self.kind == ResponseKind.FAILED and self.message.startswith("Plugin bug")

    def raise_for_status(self) -> "ProtocolResponse":
        """Raise the typed error matching a non-successful response."""
        if self.is_success:
            return self

        match self.kind:
            case ResponseKind.FAILED | ResponseKind.BADUSER | ResponseKind.BADAUTH:
                raise ProtocolRejectError(self.kind.value, self.message)
            case ResponseKind.UPDATE:
                raise ClientObsoleteError(self.message or "Client update required")
            case ResponseKind.UPTODATE:
                raise ParseFailureError("UPTODATE response without challenge and submit URL")
            case ResponseKind.RADIO_SESSION:
                raise ParseFailureError("Incomplete radio session response")
            case ResponseKind.RADIO_FAILED:
                raise ParseFailureError("Radio session failed: " + ", ".join(self.unparsed_lines))
            case ResponseKind.EMPTY:
                raise ParseFailureError("Empty response from server")
            case _:
                first = self.unparsed_lines[0] if self.unparsed_lines else ""
                raise ProtocolUnrecognizedError(first, self.unparsed_lines[1:])


# =============================================================================
# CREDENTIAL HASHING
# =============================================================================


def password_hash(password: str) -> str:
    """32-character lowercase hex MD5 of the UTF-8 password."""
    return pylast.md5(password)


def session_hash(password: str, challenge: str) -> str:
    """md5(md5(password) + challenge), both as lowercase hex."""
    return pylast.md5(password_hash(password) + challenge)


# =============================================================================
# REQUEST BUILDERS
# =============================================================================


def build_handshake_url(config: ScrobblerConfig, username: str) -> str:
    return (
        f"{config.scrobbler_url}"
        f"?hs=true"
        f"&p={config.protocol_version}"
        f"&c={config.client_id}"
        f"&v={config.client_version}"
        f"&u={quote_plus(username)}"
    )


def build_radio_handshake_url(config: ScrobblerConfig, username: str, password: str) -> str:
    # No challenge is known for the radio, so only the plain password digest is sent
    return (
        f"{config.radio_url}handshake.php"
        f"?version={config.radio_version}"
        f"&platform={config.radio_platform}"
        f"&username={quote_plus(username).lower()}"
        f"&passwordmd5={password_hash(password)}"
        f"&language={config.radio_language}"
    )


def build_submission_body(
    username: str,
    password: str,
    challenge: str,
    batch_payload: str,
) -> str:
    """Credentials prefix followed by the queue's serialized batch."""
    return f"u={quote_plus(username)}&s={session_hash(password, challenge)}{batch_payload}"


# =============================================================================
# RESPONSE PARSING
# =============================================================================


def _tag(line: str) -> ResponseKind:
    if line.startswith(_SESSION_PREFIX):
        return ResponseKind.RADIO_SESSION
    # UPTODATE must be tested before UPDATE, OK is not a prefix of anything else
    for kind in (
        ResponseKind.UPTODATE,
        ResponseKind.UPDATE,
        ResponseKind.OK,
        ResponseKind.FAILED,
        ResponseKind.BADUSER,
        ResponseKind.BADAUTH,
    ):
        if line.startswith(kind.value):
            return kind
    return ResponseKind.UNKNOWN


def _parse_interval(line: str) -> int | None:
    match = _INTERVAL_RE.match(line)
    if match is None:
        return None
    try:
        return int(match.group("value").strip())
    except ValueError:
        return None


def _scan_intervals(lines: list[str]) -> int | None:
    interval = None
    for line in lines:
        if line.startswith("INTERVAL"):
            value = _parse_interval(line)
            if value is not None:
                interval = value
    return interval


def _parse_radio(first: str, rest: list[str]) -> ProtocolResponse:
    body = [first, *rest]
    if any("failed" in line.lower() for line in body):
        return ProtocolResponse(kind=ResponseKind.RADIO_FAILED, unparsed_lines=body)

    session_id = first[len(_SESSION_PREFIX):].strip()
    if not session_id or len(rest) < 2:
        return ProtocolResponse(
            kind=ResponseKind.RADIO_SESSION, malformed=True, unparsed_lines=body
        )

    stream_line, subscriber_line = rest[0], rest[1]
    for line in (stream_line, subscriber_line):
        if line[_RADIO_FIELD_WIDTH - 1 : _RADIO_FIELD_WIDTH] != "=":
            return ProtocolResponse(
                kind=ResponseKind.RADIO_SESSION, malformed=True, unparsed_lines=body
            )

    radio = RadioSession(
        session_id=session_id,
        stream_url=stream_line[_RADIO_FIELD_WIDTH:].strip(),
        subscriber=subscriber_line[_RADIO_FIELD_WIDTH:].strip() == "1",
    )
    return ProtocolResponse(kind=ResponseKind.RADIO_SESSION, radio=radio)


def parse_response(lines: list[str]) -> ProtocolResponse:
    """Parse a submission-server or radio-server response body.

    Args:
        lines: Response body split into lines

    Returns:
        Immutable parsed response; call ``raise_for_status`` to turn a
        non-successful one into the matching typed error
    """
    remaining = list(lines)
    while remaining and not remaining[0].strip():
        remaining.pop(0)

    if not remaining:
        return ProtocolResponse(kind=ResponseKind.EMPTY)

    first = remaining.pop(0).strip()
    kind = _tag(first)

    match kind:
        case ResponseKind.RADIO_SESSION:
            # Radio bodies are positional, INTERVAL is not part of their grammar
            return _parse_radio(first, [line.strip() for line in remaining])

        case ResponseKind.UPTODATE:
            fields = [line.strip() for line in remaining[:2]]
            trailing = remaining[2:]
            interval = _scan_intervals(trailing)
            if len(fields) < 2 or not all(fields):
                return ProtocolResponse(
                    kind=kind, malformed=True, interval=interval, unparsed_lines=fields
                )
            return ProtocolResponse(
                kind=kind, challenge=fields[0], submit_url=fields[1], interval=interval
            )

        case ResponseKind.FAILED:
            reason = first[len("FAILED"):].lstrip(":").strip()
            return ProtocolResponse(
                kind=kind, message=reason, interval=_scan_intervals(remaining)
            )

        case ResponseKind.UPDATE:
            message = first[len("UPDATE"):].strip()
            return ProtocolResponse(
                kind=kind, message=message, interval=_scan_intervals(remaining)
            )

        case ResponseKind.UNKNOWN:
            return ProtocolResponse(
                kind=kind,
                interval=_scan_intervals(remaining),
                unparsed_lines=[first, *remaining],
            )

        case _:
            return ProtocolResponse(kind=kind, interval=_scan_intervals(remaining))
