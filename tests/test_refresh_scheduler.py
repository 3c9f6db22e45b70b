# tests/test_refresh_scheduler.py
"""Tests for the periodic alert refresh scheduler."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio
import threading
from unittest.mock import MagicMock

import pytest
from crowdvision.services.refresh_scheduler import RefreshScheduler, SchedulerState


class TestTick:
    @pytest.mark.asyncio
    async def test_tick_runs_refresh(self):
        refresh = MagicMock(return_value=True)
        scheduler = RefreshScheduler(refresh, interval=60)
        assert await scheduler.tick() is True
        refresh.assert_called_once()
        assert scheduler.completed_cycles == 1
        assert scheduler.last_cycle_at is not None

    @pytest.mark.asyncio
    async def test_refresh_reporting_skip_counts_as_skipped(self):
        scheduler = RefreshScheduler(MagicMock(return_value=False), interval=60)
        assert await scheduler.tick() is False
        assert scheduler.skipped_ticks == 1
        assert scheduler.completed_cycles == 0

    @pytest.mark.asyncio
    async def test_failure_is_recorded_not_raised(self):
        scheduler = RefreshScheduler(MagicMock(side_effect=RuntimeError("db gone")), interval=60)
        assert await scheduler.tick() is False
        assert scheduler.last_error == "db gone"
        assert scheduler.state is SchedulerState.STOPPED

    @pytest.mark.asyncio
    async def test_overlapping_tick_is_skipped(self):
        release = threading.Event()
        entered = threading.Event()

        def slow_refresh():
            entered.set()
            release.wait(5)
            return True

        scheduler = RefreshScheduler(slow_refresh, interval=60)
        first = asyncio.create_task(scheduler.tick())
        await asyncio.to_thread(entered.wait, 5)
        assert scheduler.state is SchedulerState.ACQUIRING

        assert await scheduler.tick() is False
        assert scheduler.skipped_ticks == 1

        release.set()
        assert await first is True
        assert scheduler.completed_cycles == 1


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        refresh = MagicMock(return_value=True)
        scheduler = RefreshScheduler(refresh, interval=0.01)
        scheduler.start()
        assert scheduler.running
        assert scheduler.state is SchedulerState.IDLE

        for _ in range(200):
            if scheduler.completed_cycles >= 2:
                break
            await asyncio.sleep(0.01)
        assert scheduler.completed_cycles >= 2

        await scheduler.stop()
        assert not scheduler.running
        assert scheduler.state is SchedulerState.STOPPED
        calls = refresh.call_count
        await asyncio.sleep(0.05)
        assert refresh.call_count == calls

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        scheduler = RefreshScheduler(MagicMock(return_value=True), interval=60)
        scheduler.start()
        task = scheduler._task
        scheduler.start()
        assert scheduler._task is task
        await scheduler.stop()

    def test_status_shape(self):
        status = RefreshScheduler(MagicMock(), interval=10.0).status()
        assert status["state"] == "STOPPED"
        assert status["interval_seconds"] == 10.0
        assert status["completed_cycles"] == 0
