"""Tests for offline form database models."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from offline_forms.models import FormRecord, FormStatus, HistoryEntry, HistoryStatus, SyncStatus
from offline_forms.models.base import as_naive_utc


@pytest.mark.asyncio
async def test_form_defaults(db: AsyncSession):
    form = FormRecord(form_type="UPDATE_CONTACT_DETAIL")
    db.add(form)
    await db.commit()
    await db.refresh(form)
    assert form.id is not None
    assert form.status == FormStatus.INCOMPLETE
    assert form.sync_flag is False
    assert form.sync_status == SyncStatus.NONE
    assert form.created_on is not None
    assert form.synced_on is None


@pytest.mark.asyncio
async def test_history_links_to_form(db: AsyncSession):
    form = FormRecord(form_type="UPDATE_CONTACT_DETAIL")
    db.add(form)
    await db.flush()
    db.add(HistoryEntry(
        form_id=form.id, remark="Form Created", status=HistoryStatus.CREATED,
        category_code="CREATED",
    ))
    await db.commit()

    result = await db.execute(select(HistoryEntry).where(HistoryEntry.form_id == form.id))
    entries = result.scalars().all()
    assert len(entries) == 1
    assert entries[0].remark == "Form Created"


@pytest.mark.asyncio
async def test_history_requires_existing_form(db: AsyncSession):
    import uuid

    db.add(HistoryEntry(form_id=uuid.uuid4(), status=HistoryStatus.UPDATED))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()


def test_status_groups():
    assert FormStatus.SYNCABLE == (FormStatus.PENDING_SYNC, FormStatus.FAILED_SYNC)
    assert FormStatus.EDITABLE == (FormStatus.INCOMPLETE, FormStatus.PENDING_SYNC)
    assert len(FormStatus.ALL) == 7


def test_as_naive_utc():
    aware = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
    naive = datetime(2026, 3, 1, 8, 0)
    assert as_naive_utc(aware) == naive
    assert as_naive_utc(naive) is naive
