"""Engine facade wiring session, safe mode, submission and scheduling.

Typical use::

    async with AudioscrobblerEngine.from_settings() as engine:
        await engine.push_track(scrobble)
"""

from collections.abc import Callable
from typing import TypeAlias

from audioscrobbler.application.services import (
    BackoffController,
    SessionService,
    SubmissionScheduler,
    SubmissionService,
    SubmitOutcome,
)
from audioscrobbler.config import ScrobblerConfig, Settings, get_logger, settings
from audioscrobbler.domain.entities import BackoffState, Scrobble, SessionState
from audioscrobbler.domain.repositories import (
    CredentialStoreProtocol,
    ScrobbleQueueProtocol,
    TransportProtocol,
)
from audioscrobbler.infrastructure.connectors import ScrobblerTransport
from audioscrobbler.infrastructure.credentials import SettingsCredentialStore
from audioscrobbler.infrastructure.persistence.repositories import (
    InMemoryScrobbleQueue,
)

logger = get_logger(__name__).bind(service="engine")

QueueFactory: TypeAlias = Callable[[str], ScrobbleQueueProtocol]


def _in_memory_queue(_username: str) -> ScrobbleQueueProtocol:
    return InMemoryScrobbleQueue()


class AudioscrobblerEngine:
    """Client engine for one account at a time.

    Owns the session, the backoff state and the pending queue of the active
    account, and exposes the observable state callers poll.
    """

    def __init__(
        self,
        username: str = "",
        password: str = "",
        config: ScrobblerConfig | None = None,
        queue: ScrobbleQueueProtocol | None = None,
        transport: TransportProtocol | None = None,
        credential_store: CredentialStoreProtocol | None = None,
        queue_factory: QueueFactory | None = None,
    ) -> None:
        self.config = config or settings.scrobbler
        self.credential_store = credential_store
        self._queue_factory = queue_factory or _in_memory_queue
        self.transport = transport or ScrobblerTransport(config=self.config)

        self.backoff_state = BackoffState.from_interval(self.config.submit_interval)
        self.backoff = BackoffController(self.backoff_state, self.config)
        self.sessions = SessionService(
            SessionState(username=username, password=password),
            self.transport,
            self.backoff,
            self.config,
        )
        self.submitter = SubmissionService(
            self.sessions,
            queue if queue is not None else self._queue_factory(username),
            self.config,
        )
        self.scheduler = SubmissionScheduler(self.submitter, self.backoff_state, self.config)

        self.backoff.rehandshake = self._escalation_handshake
        self.backoff.timer_reset = self.scheduler.reset_timer

    @classmethod
    def from_settings(
        cls,
        app_settings: Settings | None = None,
        credential_store: CredentialStoreProtocol | None = None,
        queue_factory: QueueFactory | None = None,
    ) -> "AudioscrobblerEngine":
        """Build an engine for the account configured in settings.

        The stored password is decrypted once, here.
        """
        app_settings = app_settings or settings
        store = credential_store or SettingsCredentialStore(
            stored_password=app_settings.credentials.lastfm_password
        )
        return cls(
            username=app_settings.credentials.lastfm_username,
            password=_decrypt(store, store.get()),
            config=app_settings.scrobbler,
            credential_store=store,
            queue_factory=queue_factory,
        )

    async def _escalation_handshake(self) -> bool:
        return await self.sessions.handshake(force=True, escalate_on_reject=False)

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def session(self) -> SessionState:
        return self.sessions.session

    @property
    def queue(self) -> ScrobbleQueueProtocol:
        return self.submitter.queue

    @property
    def username(self) -> str:
        return self.session.username

    @username.setter
    def username(self, value: str) -> None:
        if value != self.session.username:
            self.session.username = value
            self.session.invalidate_handshake()

    @property
    def password(self) -> str:
        return self.session.password

    @password.setter
    def password(self, value: str) -> None:
        if value != self.session.password:
            self.session.password = value
            self.session.invalidate_handshake()

    @property
    def connected(self) -> bool:
        return self.session.signed_in

    @property
    def queue_length(self) -> int:
        return self.queue.count

    @property
    def subscriber(self) -> bool:
        return self.session.radio.subscriber

    @property
    def failure_count(self) -> int:
        return self.backoff_state.failure_count

    @property
    def submit_interval(self) -> int:
        return self.backoff_state.submit_interval

    async def radio_session(self) -> str:
        """Radio session id, refreshing the radio handshake when due."""
        async with self.submitter.submit_lock:
            await self.sessions.radio_handshake()
        return self.session.radio.session_id

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def handshake(self, force: bool = False) -> bool:
        async with self.submitter.submit_lock:
            return await self.sessions.handshake(force=force)

    async def radio_handshake(self, force: bool = False) -> bool:
        async with self.submitter.submit_lock:
            return await self.sessions.radio_handshake(force=force)

    async def push_track(self, scrobble: Scrobble) -> None:
        """Queue a played track and, outside safe mode, submit right away."""
        async with self.submitter.queue_lock:
            self.queue.add(scrobble)
        logger.info("Queued {}", scrobble.short_description(), queue_length=self.queue_length)

        if self.backoff_state.in_safe_mode:
            logger.debug(
                "Safe mode active, waiting for the next timer tick",
                failure_count=self.failure_count,
            )
            return

        self.scheduler.request_submit("push")
        self.scheduler.reset_timer()

    async def submit_now(self) -> SubmitOutcome:
        """Run one submission attempt in the caller's task."""
        return await self.submitter.submit()

    async def flush(self) -> SubmitOutcome:
        """Submit batches until the queue is empty or an attempt fails."""
        outcome = SubmitOutcome.EMPTY_QUEUE
        while self.queue_length:
            before = self.queue_length
            outcome = await self.submit_now()
            if outcome != SubmitOutcome.SUBMITTED or self.queue_length >= before:
                break
        return outcome

    async def connect(self) -> None:
        """Load the queue and start periodic submission."""
        await self.queue.load()
        self.scheduler.start()
        logger.info(
            "Scrobbler connected",
            username=self.username,
            queue_length=self.queue_length,
            interval=self.submit_interval,
        )
        if not self.config.disable_timer_submit:
            self.scheduler.request_submit("connect")

    async def disconnect(self) -> None:
        """Stop periodic submission and persist the queue."""
        await self.scheduler.stop()
        await self.queue.save()
        self.session.signed_in = False
        logger.info("Scrobbler disconnected", username=self.username)

    async def close(self) -> None:
        await self.disconnect()
        await self.transport.aclose()

    async def __aenter__(self) -> "AudioscrobblerEngine":
        await self.connect()
        return self

    async def __aexit__(self, *_exc) -> None:
        await self.close()

    async def change_user(self, username: str, encrypted_password: str) -> bool:
        """Switch accounts, keeping the current one if the new one cannot sign in.

        Args:
            username: New account name
            encrypted_password: Password as kept by the credential store

        Returns:
            True if the engine now uses ``username``
        """
        if username == self.username:
            return True

        password = (
            _decrypt(self.credential_store, encrypted_password)
            if self.credential_store is not None
            else encrypted_password
        )
        await self.queue.save()

        async with self.submitter.submit_lock:
            previous = self.sessions.session
            self.sessions.session = SessionState(username=username, password=password)
            if not await self.sessions.handshake(force=True, escalate_on_reject=False):
                logger.error(f"Could not sign in as {username}, keeping {previous.username}")
                self.sessions.session = previous
                return False

            async with self.submitter.queue_lock:
                queue = self._queue_factory(username)
                await queue.load()
                self.submitter.queue = queue

        logger.info("Changed user", username=username, queue_length=self.queue_length)
        return True

    async def reconfigure(self, config: ScrobblerConfig) -> None:
        """Swap the configuration snapshot between attempts."""
        async with self.submitter.submit_lock:
            self.config = config
            self.backoff.config = config
            self.sessions.config = config
            self.submitter.config = config
            self.scheduler.config = config
            if isinstance(self.transport, ScrobblerTransport):
                self.transport.config = config
            if not self.backoff_state.in_safe_mode:
                self.backoff_state.base_interval = config.submit_interval
                self.backoff_state.submit_interval = config.submit_interval
        self.scheduler.reset_timer()
        logger.info("Configuration reloaded", interval=self.submit_interval)


def _decrypt(store: CredentialStoreProtocol, ciphertext: str) -> str:
    if not ciphertext:
        return ""
    try:
        return store.decrypt(ciphertext)
    except Exception as e:
        logger.warning(f"Could not decrypt the stored password: {e}")
        return ""
