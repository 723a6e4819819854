"""Single submission attempt.

One attempt signs in if needed, posts the oldest batch of the queue and
removes it once the server answers OK. Attempts never overlap: a call made
while another attempt holds the submission lock is skipped.
"""

import asyncio
from enum import StrEnum

from audioscrobbler.application.services.session_service import SessionService
from audioscrobbler.config import ScrobblerConfig, get_logger
from audioscrobbler.domain.errors import TransportError
from audioscrobbler.domain.repositories import ScrobbleQueueProtocol
from audioscrobbler.infrastructure.connectors.protocol import (
    ResponseKind,
    build_submission_body,
    parse_response,
)

logger = get_logger(__name__).bind(service="submission")

# Submission bodies without a first entry are never sent
FIRST_ENTRY_MARKER = "&a[0]"


class SubmitOutcome(StrEnum):
    """What a submission attempt ended with."""

    SUBMITTED = "submitted"
    REMOVAL_FAILED = "removal_failed"
    SKIPPED = "skipped"
    NOT_SIGNED_IN = "not_signed_in"
    EMPTY_QUEUE = "empty_queue"
    NOTHING_TO_SEND = "nothing_to_send"
    TRANSPORT_FAILED = "transport_failed"
    REJECTED = "rejected"


class SubmissionService:
    """Runs submission attempts against the active session.

    Attributes:
        sessions: Handshake service owning the active session
        queue: Pending scrobbles of the active account
        queue_lock: Guards queue mutation shared with the push path
        config: Active scrobbler configuration snapshot
        submit_lock: Held for the whole attempt
    """

    def __init__(
        self,
        sessions: SessionService,
        queue: ScrobbleQueueProtocol,
        config: ScrobblerConfig,
        queue_lock: asyncio.Lock | None = None,
    ) -> None:
        self.sessions = sessions
        self.queue = queue
        self.config = config
        self.queue_lock = queue_lock or asyncio.Lock()
        self.submit_lock = asyncio.Lock()

    async def submit(self) -> SubmitOutcome:
        """Submit the oldest batch of pending scrobbles.

        Returns:
            Outcome of the attempt; ``SKIPPED`` if another attempt is running
        """
        if self.submit_lock.locked():
            logger.debug("Submission already in progress, skipping")
            return SubmitOutcome.SKIPPED

        async with self.submit_lock:
            return await self._submit_locked()

    async def _submit_locked(self) -> SubmitOutcome:
        if not await self.sessions.handshake():
            return SubmitOutcome.NOT_SIGNED_IN

        if self.queue.count == 0:
            logger.debug("Queue is empty, nothing to submit")
            return SubmitOutcome.EMPTY_QUEUE

        # Queue is persisted before any network I/O
        await self.queue.save()

        session = self.sessions.session
        payload, count = self.queue.serialize_batch(self.config.max_batch_size)
        body = build_submission_body(
            session.username, session.password, session.challenge, payload
        )
        if FIRST_ENTRY_MARKER not in body:
            logger.warning("Submission body holds no entries, not sending")
            return SubmitOutcome.NOTHING_TO_SEND

        logger.info(f"Submitting {count} of {self.queue.count} queued scrobbles")
        try:
            lines = await self.sessions.transport.exchange(session, session.submit_url, body)
        except TransportError as e:
            logger.warning(f"Submission failed: {e}")
            return SubmitOutcome.TRANSPORT_FAILED

        response = parse_response(lines)
        accepted = await self.sessions.apply_response(response, "Submission")
        if not accepted or response.kind != ResponseKind.OK:
            return SubmitOutcome.REJECTED

        async with self.queue_lock:
            try:
                self.queue.remove_range(0, count)
                await self.queue.save()
            except Exception as e:
                # No rollback: delivery is at-least-once
                logger.exception(f"Submitted batch could not be removed from the queue: {e}")
                return SubmitOutcome.REMOVAL_FAILED

        logger.info(f"Submitted {count} scrobbles", remaining=self.queue.count)
        return SubmitOutcome.SUBMITTED
