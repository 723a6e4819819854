"""Collaborator interfaces consumed by the submission core.

These protocols define the contracts for the durable queue, the credential
store and the HTTP transport without depending on their implementations.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from audioscrobbler.domain.entities import Scrobble, SessionState


@runtime_checkable
class ScrobbleQueueProtocol(Protocol):
    """Durable ordered list of pending scrobbles, oldest first."""

    @property
    def count(self) -> int:
        """Number of pending scrobbles."""
        ...

    def __len__(self) -> int: ...

    def add(self, scrobble: "Scrobble") -> None:
        """Append one scrobble at the end of the queue."""
        ...

    def remove_range(self, start: int, count: int) -> None:
        """Remove ``count`` scrobbles starting at ``start``."""
        ...

    def serialize_batch(self, limit: int | None = None) -> tuple[str, int]:
        """Serialize the first ``limit`` scrobbles (all when None).

        Returns:
            The wire payload (starting with ``&``) and how many entries it holds
        """
        ...

    def pending(self) -> list["Scrobble"]:
        """Snapshot of the pending scrobbles in order."""
        ...

    async def save(self) -> None:
        """Persist the current contents."""
        ...

    async def load(self) -> None:
        """Put the persisted contents ahead of anything queued before loading."""
        ...


class CredentialStoreProtocol(Protocol):
    """Source of the stored (possibly encrypted) account password."""

    def get(self) -> str:
        """Return the stored password as kept at rest."""
        ...

    def decrypt(self, ciphertext: str) -> str:
        """Turn a stored password into plaintext."""
        ...


class TransportProtocol(Protocol):
    """Single HTTP exchange returning the body as lines."""

    async def exchange(
        self,
        session: "SessionState",
        url: str,
        body: str | None = None,
        method: str | None = None,
    ) -> list[str]: ...

    async def aclose(self) -> None: ...
