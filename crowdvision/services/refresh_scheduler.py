# crowdvision/services/refresh_scheduler.py
"""
Periodic alert refresh — one asyncio task ticking every ALERT_REFRESH_SECONDS.

Status is a small state machine: IDLE → ACQUIRING → IDLE around each cycle,
STOPPED once the task is cancelled. A tick that finds the previous cycle still
running is skipped, never queued.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from crowdvision.utils.logger import get_logger

logger = get_logger(__name__)


class SchedulerState(str, Enum):
    IDLE = "IDLE"
    ACQUIRING = "ACQUIRING"
    STOPPED = "STOPPED"


class RefreshScheduler:
    def __init__(self, refresh: Callable[[], bool], interval: float = 10.0):
        self._refresh = refresh
        self.interval = interval
        self.state = SchedulerState.STOPPED
        self.completed_cycles = 0
        self.skipped_ticks = 0
        self.last_cycle_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self.state = SchedulerState.IDLE
        self._task = asyncio.create_task(self._run(), name="alert-refresh")
        logger.info(f"[SCHEDULER] Alert refresh every {self.interval}s")

    async def stop(self):
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.state = SchedulerState.STOPPED
        logger.info("[SCHEDULER] Alert refresh stopped")

    async def tick(self) -> bool:
        """Run one cycle now. Returns False if skipped because a cycle is in flight."""
        if self.state is SchedulerState.ACQUIRING:
            self.skipped_ticks += 1
            logger.warning("[SCHEDULER] Previous refresh still running — tick skipped")
            return False

        previous = self.state
        self.state = SchedulerState.ACQUIRING
        try:
            ran = await asyncio.to_thread(self._refresh)
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"[SCHEDULER] Refresh cycle failed: {e}", exc_info=True)
            return False
        finally:
            self.state = previous if previous is SchedulerState.STOPPED else SchedulerState.IDLE

        if not ran:
            self.skipped_ticks += 1
            return False
        self.completed_cycles += 1
        self.last_error = None
        self.last_cycle_at = datetime.now(timezone.utc)
        return True

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            await self.tick()

    def status(self) -> dict:
        return {
            "state": self.state.value,
            "interval_seconds": self.interval,
            "completed_cycles": self.completed_cycles,
            "skipped_ticks": self.skipped_ticks,
            "last_cycle_at": self.last_cycle_at,
            "last_error": self.last_error,
        }
