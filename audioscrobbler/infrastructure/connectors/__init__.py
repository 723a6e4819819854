"""Connectors for the Audioscrobbler submission and radio servers."""

from audioscrobbler.infrastructure.connectors.protocol import (
    ProtocolResponse,
    ResponseKind,
    build_handshake_url,
    build_radio_handshake_url,
    build_submission_body,
    parse_response,
    password_hash,
    session_hash,
)
from audioscrobbler.infrastructure.connectors.transport import ScrobblerTransport

__all__ = [
    "ProtocolResponse",
    "ResponseKind",
    "ScrobblerTransport",
    "build_handshake_url",
    "build_radio_handshake_url",
    "build_submission_body",
    "parse_response",
    "password_hash",
    "session_hash",
]
