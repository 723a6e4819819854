"""Domain-level collaborator interfaces."""

from .interfaces import (
    CredentialStoreProtocol,
    ScrobbleQueueProtocol,
    TransportProtocol,
)

__all__ = [
    "CredentialStoreProtocol",
    "ScrobbleQueueProtocol",
    "TransportProtocol",
]
