"""Background task running the daily expiry sweep."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .errors import SchedulerError
from .services import purge_svc

logger = logging.getLogger(__name__)

MIDNIGHT = time(0, 0)


def seconds_until(run_at: time, now: datetime | None = None) -> float:
    """Seconds from ``now`` (local time) to the next occurrence of ``run_at``."""
    now = now or datetime.now()
    target = datetime.combine(now.date(), run_at)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()


class PurgeScheduler:
    """Runs the expiry sweep once a day and optionally once at startup."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        run_at: time = MIDNIGHT,
    ) -> None:
        self._session_factory = session_factory
        self.run_at = run_at
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def initialize(self, run_on_startup: bool = True, test_mode: bool = False) -> None:
        """Start the daily schedule. Test mode uses 0-day thresholds for the startup pass."""
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(
            self._run_loop(run_on_startup, test_mode), name="offline-form-purge"
        )
        logger.info(
            "Data purge service initialized with daily schedule%s%s",
            " and startup execution" if run_on_startup else "",
            " (TEST MODE)" if test_mode else "",
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

    async def run_startup_pass(self, test_mode: bool = False) -> purge_svc.PurgeResult | None:
        sync_days = 0 if test_mode else purge_svc.DEFAULT_SYNCED_DAYS
        stale_days = 0 if test_mode else purge_svc.DEFAULT_STALE_DAYS
        try:
            async with self._session_factory() as db:
                result = await purge_svc.run_manual(db, sync_days, stale_days)
        except Exception:
            logger.exception("Error in startup purge")
            return None
        logger.info(
            "Startup purge completed (%s): %d synced records expired, %d stale records expired",
            "TEST MODE" if test_mode else "STANDARD MODE",
            result.expired_synced_count,
            result.expired_stale_count,
        )
        return result

    async def run_tick(self) -> purge_svc.PurgeResult | None:
        """One scheduled sweep. Failures are logged and left for the next tick."""
        logger.info("Running scheduled data purge job")
        try:
            async with self._session_factory() as db:
                return await purge_svc.run_scheduled(db)
        except SchedulerError as exc:
            logger.error("%s", exc)
            return None

    async def _run_loop(self, run_on_startup: bool, test_mode: bool) -> None:
        if run_on_startup:
            await self.run_startup_pass(test_mode)

        while not self._stop_event.is_set():
            delay = seconds_until(self.run_at)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
            except asyncio.TimeoutError:
                await self.run_tick()
