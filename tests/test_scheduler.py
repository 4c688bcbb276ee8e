"""Tests for the AlertScheduler job wrapper."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from marketdesk.jobs import AlertScheduler
from marketdesk.services.alerts import AlertCycleReport


@pytest.fixture
def evaluator():
    mock = MagicMock()
    mock.run_cycle = AsyncMock(return_value=AlertCycleReport())
    return mock


class TestAlertScheduler:
    @pytest.mark.asyncio
    async def test_run_once_records_time(self, evaluator):
        scheduler = AlertScheduler(evaluator, interval_seconds=60)

        await scheduler.run_once()

        evaluator.run_cycle.assert_awaited_once()
        assert scheduler.last_run_at is not None

    @pytest.mark.asyncio
    async def test_failed_cycle_does_not_raise(self, evaluator):
        evaluator.run_cycle.side_effect = RuntimeError("store unreadable")
        scheduler = AlertScheduler(evaluator)

        await scheduler.run_once()

        assert scheduler.last_run_at is not None

    @pytest.mark.asyncio
    async def test_start_schedules_job_and_stop_clears(self, evaluator):
        scheduler = AlertScheduler(evaluator, interval_seconds=30)

        await scheduler.start()
        try:
            assert scheduler.running
            assert scheduler.next_run_time() is not None
            # Second start is a no-op
            await scheduler.start()
        finally:
            await scheduler.stop()

        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_stop_before_start_is_harmless(self, evaluator):
        scheduler = AlertScheduler(evaluator)

        await scheduler.stop()

        assert not scheduler.running
