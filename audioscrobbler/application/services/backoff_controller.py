"""Safe mode controller.

Repeated protocol rejections (FAILED, BADUSER, BADAUTH) stretch the periodic
submission interval so a misbehaving client stops hammering the server. Only
a later successful handshake clears the failure count.
"""

from collections.abc import Awaitable, Callable

from audioscrobbler.config import ScrobblerConfig, get_logger
from audioscrobbler.domain.entities import BackoffState

logger = get_logger(__name__).bind(service="backoff")


class BackoffController:
    """Escalates and clears safe mode on a shared ``BackoffState``.

    Attributes:
        state: Failure counter and intervals shared with the scheduler
        config: Active scrobbler configuration snapshot
        rehandshake: Forced handshake that must not escalate again
        timer_reset: Restarts the periodic submission timer
    """

    def __init__(
        self,
        state: BackoffState,
        config: ScrobblerConfig,
        rehandshake: Callable[[], Awaitable[bool]] | None = None,
        timer_reset: Callable[[], None] | None = None,
    ) -> None:
        self.state = state
        self.config = config
        self.rehandshake = rehandshake
        self.timer_reset = timer_reset

    @property
    def failure_count(self) -> int:
        return self.state.failure_count

    @property
    def submit_interval(self) -> int:
        return self.state.submit_interval

    async def escalate(self) -> int:
        """Enter (or go deeper into) safe mode.

        Counts the failure (saturating at ``max_failure_count``), forces a
        fresh handshake, scales the submit interval and restarts the timer.
        The remaining steps run even when the counter is already saturated.

        Returns:
            The new submit interval in seconds
        """
        if not self.state.record_failure(self.config.max_failure_count):
            logger.debug(f"Failure count already at {self.state.failure_count}")

        if self.rehandshake is not None:
            await self.rehandshake()

        interval = self.state.scale_interval(self.config.safe_mode_fallback_interval)

        if self.timer_reset is not None:
            self.timer_reset()

        logger.warning(
            f"Falling back to safe mode: new interval: {interval} sec",
            failure_count=self.state.failure_count,
        )
        return interval

    def apply_interval(self, seconds: int | None) -> bool:
        """Adopt a server-advertised interval when it is above the minimum."""
        if seconds is None:
            return False
        accepted = self.state.apply_advertised(seconds, self.config.min_advertised_interval)
        if self.config.debug_log:
            logger.debug(
                f"Server currently allows an interval of: {seconds} sec",
                accepted=accepted,
            )
        return accepted

    def reset(self) -> None:
        """Leave safe mode after a successful handshake."""
        if self.state.in_safe_mode:
            logger.info("Leaving safe mode", failure_count=self.state.failure_count)
        self.state.clear_failures()
