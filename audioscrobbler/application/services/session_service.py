"""Handshake routines for the submission and radio servers.

The service owns the active ``SessionState`` and keeps it valid: a cached
main handshake is reused for ``handshake_interval_minutes``, and the radio
handshake is layered on top of a valid main handshake. Protocol errors never
escape; every routine reports success as a boolean.
"""

from datetime import UTC, datetime, timedelta

from audioscrobbler.application.services.backoff_controller import BackoffController
from audioscrobbler.config import ScrobblerConfig, get_logger
from audioscrobbler.domain.entities import SessionState
from audioscrobbler.domain.errors import (
    ClientObsoleteError,
    NotConfiguredError,
    ParseFailureError,
    ProtocolRejectError,
    ProtocolUnrecognizedError,
    TransportError,
)
from audioscrobbler.domain.repositories import TransportProtocol
from audioscrobbler.infrastructure.connectors.protocol import (
    PLUGIN_BUG_HINT,
    ProtocolResponse,
    ResponseKind,
    build_handshake_url,
    build_radio_handshake_url,
    parse_response,
)

logger = get_logger(__name__).bind(service="session")


class SessionService:
    """Performs and caches handshakes for one account at a time.

    Attributes:
        session: Active account session, replaced on account change
        transport: Gated HTTP exchange
        backoff: Safe mode controller escalated on rejections
        config: Active scrobbler configuration snapshot
    """

    def __init__(
        self,
        session: SessionState,
        transport: TransportProtocol,
        backoff: BackoffController,
        config: ScrobblerConfig,
    ) -> None:
        self.session = session
        self.transport = transport
        self.backoff = backoff
        self.config = config

    @property
    def handshake_interval(self) -> timedelta:
        return timedelta(minutes=self.config.handshake_interval_minutes)

    @property
    def radio_handshake_interval(self) -> timedelta:
        return self.handshake_interval * self.config.radio_handshake_multiplier

    def _require_credentials(self) -> None:
        if not self.session.has_credentials:
            raise NotConfiguredError("User or password not defined")

    async def apply_response(
        self,
        response: ProtocolResponse,
        context: str,
        escalate_on_reject: bool = True,
    ) -> bool:
        """Apply the side effects of a parsed response and report success.

        Rejections escalate safe mode before any advertised interval is
        adopted. Every other failure is logged only.

        Args:
            response: Parsed server response
            context: Name of the exchange for log messages
            escalate_on_reject: False for the forced handshake run by the
                backoff controller itself

        Returns:
            True if the response is a success
        """
        success = False
        try:
            response.raise_for_status()
            success = True
        except ProtocolRejectError as e:
            if response.is_plugin_bug:
                logger.warning(f"{context} failed: {e.reason} ({PLUGIN_BUG_HINT})")
            elif e.kind in (ResponseKind.BADUSER, ResponseKind.BADAUTH):
                logger.warning(f"{context} failed: {e.kind}, please check your credentials")
            else:
                logger.warning(f"{context} failed: {e}")
            if escalate_on_reject:
                await self.backoff.escalate()
        except ClientObsoleteError as e:
            logger.error(f"{context} failed: client update required: {e}")
        except ProtocolUnrecognizedError as e:
            logger.critical(
                "{} received an unknown response: {}",
                context,
                e.first_line,
                remaining=e.remaining,
            )
        except ParseFailureError as e:
            logger.error(f"{context} failed: {e}")

        self.backoff.apply_interval(response.interval)
        return success

    async def handshake(self, force: bool = False, escalate_on_reject: bool = True) -> bool:
        """Sign in to the submission server unless a cached handshake is valid.

        Args:
            force: Ignore the cached handshake
            escalate_on_reject: Escalate safe mode on FAILED/BADUSER/BADAUTH

        Returns:
            True when a valid challenge and submit URL are available
        """
        session = self.session
        try:
            self._require_credentials()
        except NotConfiguredError as e:
            logger.error(f"Handshake skipped: {e}")
            return False

        now = datetime.now(UTC)
        if not force and not session.handshake_due(now, self.handshake_interval):
            if self.config.debug_log:
                next_due = session.last_handshake + self.handshake_interval
                logger.debug(f"Next handshake due at {next_due.isoformat()}")
            return True

        url = build_handshake_url(self.config, session.username)
        logger.debug("Attempting handshake", username=session.username, force=force)
        try:
            lines = await self.transport.exchange(session, url)
        except TransportError as e:
            logger.warning(f"Handshake failed: {e}")
            return False

        response = parse_response(lines)
        if response.kind == ResponseKind.UPTODATE and response.malformed:
            session.challenge = ""

        if not await self.apply_response(response, "Handshake", escalate_on_reject):
            return False

        if response.kind != ResponseKind.UPTODATE:
            logger.error(f"Handshake failed: unexpected {response.kind} response")
            return False

        session.mark_signed_in(response.challenge, response.submit_url, now)
        self.backoff.reset()
        logger.info("Handshake successful", username=session.username)
        return True

    async def radio_handshake(self, force: bool = False) -> bool:
        """Open a radio session on top of a valid main handshake.

        Args:
            force: Ignore the cached radio handshake

        Returns:
            True when a radio session is available
        """
        session = self.session
        try:
            self._require_credentials()
        except NotConfiguredError as e:
            logger.error(f"Radio handshake skipped: {e}")
            return False

        if not await self.handshake():
            logger.warning("Radio handshake skipped: main handshake failed")
            return False

        now = datetime.now(UTC)
        if not force and not session.radio_handshake_due(now, self.radio_handshake_interval):
            if self.config.debug_log:
                next_due = session.last_radio_handshake + self.radio_handshake_interval
                logger.debug(f"Next radio handshake due at {next_due.isoformat()}")
            return True

        url = build_radio_handshake_url(self.config, session.username, session.password)
        try:
            lines = await self.transport.exchange(session, url)
        except TransportError as e:
            logger.warning(f"Radio handshake failed: {e}")
            return False

        response = parse_response(lines)
        if not await self.apply_response(response, "Radio handshake"):
            return False

        if response.kind != ResponseKind.RADIO_SESSION or response.radio is None:
            logger.error(f"Radio handshake failed: unexpected {response.kind} response")
            return False

        session.mark_radio_session(response.radio, now)
        logger.info(
            "Radio handshake successful",
            username=session.username,
            subscriber=response.radio.subscriber,
        )
        return True
