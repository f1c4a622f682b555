"""Record store: CRUD and criteria search over forms and their history.

Store functions never commit. Callers group a record mutation and its
history entry inside ``transaction()`` so both land or neither does.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import Select, delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, StorageError
from ..models import FormRecord, FormStatus, HistoryEntry
from ..models.base import as_naive_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass
class FormCriteria:
    """Search filters for form records. Unset fields do not filter."""

    form_type: str | None = None
    status: str | None = None
    statuses: list[str] = field(default_factory=list)
    customer_name: str | None = None
    customer_id: str | None = None
    form_category: str | None = None
    sync_flag: bool | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None

    def status_list(self) -> list[str]:
        """Requested statuses, de-duplicated in request order."""
        requested = list(self.statuses)
        if self.status:
            requested.append(self.status)
        return list(dict.fromkeys(s for s in requested if s))


@asynccontextmanager
async def transaction(db: AsyncSession):
    """Commit on success; roll back and raise StorageError on database failure."""
    try:
        yield
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Transaction rolled back: %s", exc)
        raise StorageError(f"Storage failure: {exc}") from exc
    except Exception:
        await db.rollback()
        raise


# ── Form records ──────────────────────────────────────────────────────────

async def create(db: AsyncSession, record: FormRecord) -> FormRecord:
    """Insert a new record. Strict insert: an existing id is a conflict."""
    if record.id is None:
        record.id = uuid.uuid4()
    elif await db.get(FormRecord, record.id) is not None:
        raise ConflictError(f"Form with id {record.id} already exists")
    db.add(record)
    await db.flush()
    return record


async def get_by_id(db: AsyncSession, form_id: uuid.UUID) -> FormRecord | None:
    result = await db.execute(select(FormRecord).where(FormRecord.id == form_id))
    return result.scalar_one_or_none()


def _apply_filters(stmt: Select, criteria: FormCriteria) -> Select:
    if criteria.form_type:
        stmt = stmt.where(FormRecord.form_type == criteria.form_type)
    if criteria.customer_name:
        stmt = stmt.where(FormRecord.customer_name.contains(criteria.customer_name, autoescape=True))
    if criteria.customer_id:
        stmt = stmt.where(FormRecord.customer_id == criteria.customer_id)
    if criteria.form_category:
        stmt = stmt.where(FormRecord.form_category == criteria.form_category)
    if criteria.sync_flag is not None:
        stmt = stmt.where(FormRecord.sync_flag == criteria.sync_flag)
    if criteria.created_from:
        stmt = stmt.where(FormRecord.created_on >= criteria.created_from)
    if criteria.created_to:
        stmt = stmt.where(FormRecord.created_on <= criteria.created_to)
    return stmt


def _newest_first(record: FormRecord):
    return as_naive_utc(record.created_on)


async def find_by_criteria(
    db: AsyncSession,
    criteria: FormCriteria | None = None,
    limit: int | None = 100,
    offset: int = 0,
) -> list[FormRecord]:
    """Search records, newest first. ``limit=None`` returns every match.

    Several statuses are searched one at a time and merged by id, then
    sorted and paginated over the merged set.
    """
    criteria = criteria or FormCriteria()
    statuses = criteria.status_list()

    if len(statuses) > 1:
        merged: dict[uuid.UUID, FormRecord] = {}
        for status in statuses:
            stmt = _apply_filters(select(FormRecord), criteria).where(FormRecord.status == status)
            result = await db.execute(stmt.order_by(FormRecord.created_on.desc()))
            for record in result.scalars().all():
                merged[record.id] = record
        ordered = sorted(merged.values(), key=_newest_first, reverse=True)
        end = None if limit is None else offset + limit
        return ordered[offset:end]

    stmt = _apply_filters(select(FormRecord), criteria)
    if statuses:
        stmt = stmt.where(FormRecord.status == statuses[0])
    stmt = stmt.order_by(FormRecord.created_on.desc()).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count(db: AsyncSession, criteria: FormCriteria | None = None) -> int:
    criteria = criteria or FormCriteria()
    stmt = _apply_filters(select(func.count(FormRecord.id)), criteria)
    statuses = criteria.status_list()
    if statuses:
        stmt = stmt.where(FormRecord.status.in_(statuses))
    result = await db.execute(stmt)
    return result.scalar_one()


async def soft_delete(db: AsyncSession, form_id: uuid.UUID, actor: str) -> FormRecord | None:
    """Mark a record CANCELLED. Re-cancelling re-stamps the deletion fields."""
    record = await get_by_id(db, form_id)
    if record is None:
        return None
    now = utcnow()
    record.status = FormStatus.CANCELLED
    record.deleted_by = actor
    record.deleted_on = now
    record.last_modified_by = actor
    record.last_modified_on = now
    await db.flush()
    return record


async def hard_delete(db: AsyncSession, form_id: uuid.UUID) -> bool:
    """Remove a record and its whole history. Irreversible."""
    await delete_history_by_form_id(db, form_id)
    result = await db.execute(
        delete(FormRecord)
        .where(FormRecord.id == form_id)
        .execution_options(synchronize_session=False)
    )
    record = await db.get(FormRecord, form_id)
    if record is not None:
        db.expunge(record)
    return result.rowcount > 0


# ── History ───────────────────────────────────────────────────────────────

async def append_history(db: AsyncSession, entry: HistoryEntry) -> HistoryEntry:
    db.add(entry)
    await db.flush()
    return entry


async def find_history_by_form_id(db: AsyncSession, form_id: uuid.UUID) -> list[HistoryEntry]:
    stmt = (
        select(HistoryEntry)
        .where(HistoryEntry.form_id == form_id)
        .order_by(HistoryEntry.created_on.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def delete_history_by_form_id(db: AsyncSession, form_id: uuid.UUID) -> int:
    result = await db.execute(
        delete(HistoryEntry)
        .where(HistoryEntry.form_id == form_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def _history_filters(
    stmt: Select,
    status: str | None,
    category_code: str | None,
    form_id: uuid.UUID | None,
) -> Select:
    if status:
        stmt = stmt.where(HistoryEntry.status == status)
    if category_code:
        stmt = stmt.where(HistoryEntry.category_code == category_code)
    if form_id:
        stmt = stmt.where(HistoryEntry.form_id == form_id)
    return stmt


async def find_history(
    db: AsyncSession,
    status: str | None = None,
    category_code: str | None = None,
    form_id: uuid.UUID | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[HistoryEntry]:
    stmt = _history_filters(select(HistoryEntry), status, category_code, form_id)
    stmt = stmt.order_by(HistoryEntry.created_on.desc()).limit(limit).offset(offset)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_history(
    db: AsyncSession,
    status: str | None = None,
    category_code: str | None = None,
    form_id: uuid.UUID | None = None,
) -> int:
    stmt = _history_filters(select(func.count(HistoryEntry.id)), status, category_code, form_id)
    result = await db.execute(stmt)
    return result.scalar_one()
