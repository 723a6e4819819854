"""Background submission scheduling.

One worker task consumes a single-slot trigger queue, so at most one attempt
runs and at most one more is pending. A separate timer task raises a
trigger every ``submit_interval`` seconds; resetting the timer cancels it
and starts a fresh one.
"""

import asyncio

from audioscrobbler.application.services.submission_service import (
    SubmissionService,
    SubmitOutcome,
)
from audioscrobbler.config import ScrobblerConfig, get_logger
from audioscrobbler.domain.entities import BackoffState

logger = get_logger(__name__).bind(service="scheduler")


class SubmissionScheduler:
    """Drives ``SubmissionService.submit`` from pushes and timer ticks."""

    def __init__(
        self,
        submitter: SubmissionService,
        backoff_state: BackoffState,
        config: ScrobblerConfig,
    ) -> None:
        self.submitter = submitter
        self.backoff_state = backoff_state
        self.config = config
        self.last_outcome: SubmitOutcome | None = None
        self._triggers: asyncio.Queue[str] | None = None
        self._worker: asyncio.Task | None = None
        self._timer: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker and the periodic timer on the running loop."""
        if self.running:
            return
        self._triggers = asyncio.Queue(maxsize=1)
        self._worker = asyncio.create_task(self._work(), name="scrobble-submit-worker")
        self.reset_timer()
        logger.debug("Scheduler started", interval=self.backoff_state.submit_interval)

    async def stop(self) -> None:
        """Stop the timer and worker once the running attempt, if any, completes.

        Pending triggers are dropped; an attempt already in flight keeps the
        submit lock until its batch has been removed and saved.
        """
        async with self.submitter.submit_lock:
            tasks = [task for task in (self._timer, self._worker) if task is not None]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._worker = None
        self._triggers = None
        logger.debug("Scheduler stopped")

    def request_submit(self, reason: str) -> bool:
        """Ask for a submission attempt.

        Returns:
            False if the scheduler is stopped or a trigger is already pending
        """
        if self._triggers is None or not self.running:
            logger.debug(f"Scheduler not running, ignoring {reason} trigger")
            return False
        try:
            self._triggers.put_nowait(reason)
        except asyncio.QueueFull:
            logger.debug(f"Submission already pending, coalescing {reason} trigger")
            return False
        return True

    def reset_timer(self) -> None:
        """Restart the periodic timer from now with the current interval."""
        if not self.running:
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._tick_forever(), name="scrobble-submit-timer")

    def periodic_tick(self) -> bool:
        """Timer callback; suppressed unless timer submission is on or in safe mode."""
        if self.config.disable_timer_submit and not self.backoff_state.in_safe_mode:
            return False
        return self.request_submit("timer")

    async def wait_idle(self) -> None:
        """Wait until every pending trigger has been handled."""
        if self._triggers is not None:
            await self._triggers.join()

    async def _tick_forever(self) -> None:
        while True:
            await asyncio.sleep(self.backoff_state.submit_interval)
            self.periodic_tick()

    async def _work(self) -> None:
        assert self._triggers is not None
        triggers = self._triggers
        while True:
            reason = await triggers.get()
            try:
                self.last_outcome = await self.submitter.submit()
                logger.debug(f"Submission attempt ({reason}): {self.last_outcome}")
            except Exception as e:
                logger.exception(f"Submission attempt ({reason}) crashed: {e}")
            finally:
                triggers.task_done()
