"""Expiry sweeps that relabel aged forms as EXPIRED.

Each sweep is one bulk UPDATE in its own transaction, comparing calendar
dates (UTC) rather than times of day. No per-record history is written.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta

from sqlalchemy import Date, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import SchedulerError
from ..models import FormRecord, FormStatus
from ..models.base import utcnow
from . import store_svc

logger = logging.getLogger(__name__)

DEFAULT_SYNCED_DAYS = 7
DEFAULT_STALE_DAYS = 14

STALE_STATUSES = (FormStatus.PENDING_SYNC, FormStatus.INCOMPLETE)


@dataclass
class PurgeResult:
    expired_synced_count: int = 0
    expired_stale_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def cutoff_date(days: int, now: datetime | None = None) -> date:
    return ((now or utcnow()) - timedelta(days=days)).date()


async def expire_synced_older_than(
    db: AsyncSession, days: int = DEFAULT_SYNCED_DAYS, now: datetime | None = None
) -> int:
    """Expire SYNCHRONIZATION_COMPLETE forms synced on or before today - days."""
    now = now or utcnow()
    stmt = (
        update(FormRecord)
        .where(
            FormRecord.status == FormStatus.SYNCHRONIZATION_COMPLETE,
            FormRecord.synced_on.is_not(None),
            func.date(FormRecord.synced_on, type_=Date) <= cutoff_date(days, now),
        )
        .values(status=FormStatus.EXPIRED, last_modified_on=now)
        .execution_options(synchronize_session=False)
    )
    async with store_svc.transaction(db):
        result = await db.execute(stmt)
    logger.info("Expired %d old synchronized records (%d day threshold)", result.rowcount, days)
    return result.rowcount


async def expire_stale_older_than(
    db: AsyncSession, days: int = DEFAULT_STALE_DAYS, now: datetime | None = None
) -> int:
    """Expire PENDING_SYNC/INCOMPLETE forms created on or before today - days."""
    now = now or utcnow()
    stmt = (
        update(FormRecord)
        .where(
            FormRecord.status.in_(STALE_STATUSES),
            func.date(FormRecord.created_on, type_=Date) <= cutoff_date(days, now),
        )
        .values(status=FormStatus.EXPIRED, last_modified_on=now)
        .execution_options(synchronize_session=False)
    )
    async with store_svc.transaction(db):
        result = await db.execute(stmt)
    logger.info("Expired %d stale records (%d day threshold)", result.rowcount, days)
    return result.rowcount


async def run_manual(
    db: AsyncSession,
    sync_days: int = DEFAULT_SYNCED_DAYS,
    stale_days: int = DEFAULT_STALE_DAYS,
) -> PurgeResult:
    """Run both sweeps with caller-supplied thresholds."""
    logger.info("Running data purge (sync: %d days, stale: %d days)", sync_days, stale_days)
    result = PurgeResult(
        expired_synced_count=await expire_synced_older_than(db, sync_days),
        expired_stale_count=await expire_stale_older_than(db, stale_days),
    )
    logger.info(
        "Purge completed: %d synced records expired, %d stale records expired",
        result.expired_synced_count,
        result.expired_stale_count,
    )
    return result


async def run_scheduled(db: AsyncSession) -> PurgeResult:
    """Daily sweep. Always uses the default thresholds."""
    try:
        return await run_manual(db, DEFAULT_SYNCED_DAYS, DEFAULT_STALE_DAYS)
    except Exception as exc:
        raise SchedulerError(f"Scheduled purge failed: {exc}") from exc
