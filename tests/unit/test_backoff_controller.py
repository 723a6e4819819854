"""Tests for safe mode escalation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from audioscrobbler.application.services import BackoffController
from audioscrobbler.config import ScrobblerConfig
from audioscrobbler.domain.entities import BackoffState


@pytest.fixture
def controller():
    """Controller with mocked handshake and timer hooks."""
    return BackoffController(
        BackoffState.from_interval(30),
        ScrobblerConfig(),
        rehandshake=AsyncMock(return_value=False),
        timer_reset=MagicMock(),
    )


class TestEscalate:
    """Test the escalation steps."""

    async def test_escalation_runs_every_step(self, controller):
        interval = await controller.escalate()

        assert controller.failure_count == 1
        assert interval == 30
        controller.rehandshake.assert_awaited_once()
        controller.timer_reset.assert_called_once()

    async def test_saturated_escalation_still_rehandshakes(self, controller):
        for _ in range(7):
            await controller.escalate()

        assert controller.failure_count == 5
        assert controller.submit_interval == 150
        assert controller.rehandshake.await_count == 7
        assert controller.timer_reset.call_count == 7

    async def test_successful_rehandshake_falls_back_to_fixed_interval(self, controller):
        # A successful forced handshake clears the count before scaling
        async def succeed():
            controller.reset()
            return True

        controller.rehandshake = succeed
        assert await controller.escalate() == 120
        assert controller.failure_count == 0

    async def test_escalate_without_hooks(self):
        controller = BackoffController(BackoffState.from_interval(60), ScrobblerConfig())
        assert await controller.escalate() == 60


class TestIntervals:
    """Test advertised intervals and reset."""

    def test_apply_interval_above_minimum(self, controller):
        assert controller.apply_interval(45)
        assert controller.submit_interval == 45

    def test_apply_interval_at_minimum_ignored(self, controller):
        assert not controller.apply_interval(30)
        assert not controller.apply_interval(None)
        assert controller.submit_interval == 30

    async def test_reset_keeps_interval(self, controller):
        await controller.escalate()
        await controller.escalate()
        controller.reset()

        assert controller.failure_count == 0
        assert controller.submit_interval == 60
