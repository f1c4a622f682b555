"""Tests for the form lifecycle engine."""

from __future__ import annotations

import json
import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from offline_forms.errors import NotFoundError, StorageError, ValidationError
from offline_forms.models import FormStatus, HistoryStatus, SyncStatus
from offline_forms.services import form_svc, store_svc

CONTACT = "UPDATE_CONTACT_DETAIL"


async def _fail_history(db, entry):
    raise SQLAlchemyError("history table unavailable")


@pytest.mark.asyncio
async def test_create_complete_contact_form(db: AsyncSession):
    record = await form_svc.create_form(
        db,
        actor="alice",
        form_type=CONTACT,
        data={"email": "jane@example.com"},
        customer_id="C1",
        customer_name="Jane",
        branch="KL01",
    )
    assert record.status == FormStatus.PENDING_SYNC
    assert record.sync_flag is False
    assert record.sync_status == SyncStatus.NONE
    assert record.created_by == "alice"
    assert record.branch == "KL01"
    assert json.loads(record.payload) == {"email": "jane@example.com"}

    history = await form_svc.get_history(db, record.id)
    assert len(history) == 1
    assert history[0].remark == "Form Created"
    assert history[0].status == HistoryStatus.CREATED
    assert history[0].category_code == "CREATED"


@pytest.mark.asyncio
async def test_create_half_filled_phone_is_incomplete(db: AsyncSession):
    record = await form_svc.create_form(
        db, actor="alice", form_type=CONTACT,
        data={"countryCodeMobile": "+60", "mobileNo": ""},
    )
    assert record.status == FormStatus.INCOMPLETE


@pytest.mark.asyncio
async def test_create_with_no_channels_is_incomplete(db: AsyncSession):
    record = await form_svc.create_form(
        db, actor="alice", form_type=CONTACT,
        data={"email": "", "countryCodeMobile": "", "mobileNo": ""},
    )
    assert record.status == FormStatus.INCOMPLETE


@pytest.mark.asyncio
async def test_provisional_signal_only_makes_stricter(db: AsyncSession):
    record = await form_svc.create_form(
        db, actor="alice", form_type=CONTACT,
        data={"email": "jane@example.com"}, provisional_complete=False,
    )
    assert record.status == FormStatus.INCOMPLETE

    record = await form_svc.create_form(
        db, actor="alice", form_type=CONTACT,
        data={"mobileNo": "0123"}, provisional_complete=True,
    )
    assert record.status == FormStatus.INCOMPLETE


@pytest.mark.asyncio
async def test_create_with_explicit_id(db: AsyncSession):
    form_id = uuid.uuid4()
    record = await form_svc.create_form(
        db, actor="alice", form_type=CONTACT, data={"email": "x@y.z"}, form_id=form_id
    )
    assert record.id == form_id


@pytest.mark.asyncio
async def test_create_requires_actor_and_type(db: AsyncSession):
    with pytest.raises(ValidationError):
        await form_svc.create_form(db, actor="", form_type=CONTACT, data={"email": "a@b.c"})
    with pytest.raises(ValidationError):
        await form_svc.create_form(db, actor="alice", form_type=None, data={"email": "a@b.c"})
    assert await store_svc.count(db) == 0
    assert await store_svc.count_history(db) == 0


@pytest.mark.asyncio
async def test_create_rolls_back_when_history_fails(db: AsyncSession, monkeypatch):
    monkeypatch.setattr(store_svc, "append_history", _fail_history)
    with pytest.raises(StorageError):
        await form_svc.create_form(db, actor="alice", form_type=CONTACT, data={"email": "a@b.c"})
    monkeypatch.undo()

    assert await store_svc.count(db) == 0
    assert await store_svc.count_history(db) == 0


@pytest.mark.asyncio
async def test_update_rolls_back_when_history_fails(db: AsyncSession, monkeypatch):
    record = await form_svc.create_form(db, actor="alice", form_type=CONTACT, data={})
    assert record.status == FormStatus.INCOMPLETE

    monkeypatch.setattr(store_svc, "append_history", _fail_history)
    with pytest.raises(StorageError):
        await form_svc.update_form(db, record.id, actor="bob", data={"email": "a@b.c"})
    monkeypatch.undo()

    fetched = await store_svc.get_by_id(db, record.id)
    assert fetched.status == FormStatus.INCOMPLETE
    assert fetched.last_modified_by is None
    assert len(await form_svc.get_history(db, record.id)) == 1


@pytest.mark.asyncio
async def test_cancel_rolls_back_when_history_fails(db: AsyncSession, monkeypatch):
    record = await form_svc.create_form(db, actor="alice", form_type=CONTACT, data={"email": "a@b.c"})
    assert record.status == FormStatus.PENDING_SYNC

    monkeypatch.setattr(store_svc, "append_history", _fail_history)
    with pytest.raises(StorageError):
        await form_svc.cancel_form(db, record.id, actor="bob")
    monkeypatch.undo()

    fetched = await store_svc.get_by_id(db, record.id)
    assert fetched.status == FormStatus.PENDING_SYNC
    assert fetched.deleted_by is None
    assert fetched.deleted_on is None
    assert len(await form_svc.get_history(db, record.id)) == 1


@pytest.mark.asyncio
async def test_update_reevaluates_completeness(db: AsyncSession):
    record = await form_svc.create_form(db, actor="alice", form_type=CONTACT, data={})
    assert record.status == FormStatus.INCOMPLETE

    record = await form_svc.update_form(
        db, record.id, actor="bob", data={"email": "jane@example.com"}
    )
    assert record.status == FormStatus.PENDING_SYNC
    assert record.last_modified_by == "bob"
    assert record.last_modified_on is not None

    record = await form_svc.update_form(
        db, record.id, actor="bob", data={"countryCodeHome": "+60"}
    )
    assert record.status == FormStatus.INCOMPLETE

    history = await form_svc.get_history(db, record.id)
    statuses = sorted(e.status for e in history)
    assert statuses == ["CREATED", "UPDATED", "UPDATED"]


@pytest.mark.asyncio
async def test_update_without_payload_keeps_status(db: AsyncSession):
    record = await form_svc.create_form(
        db, actor="alice", form_type=CONTACT, data={"email": "a@b.c"}
    )
    record = await form_svc.update_form(db, record.id, actor="bob", customer_name="Jane")
    assert record.status == FormStatus.PENDING_SYNC
    assert record.customer_name == "Jane"
    assert json.loads(record.payload) == {"email": "a@b.c"}


@pytest.mark.asyncio
async def test_update_after_sync_does_not_change_status(db: AsyncSession, make_form):
    record = await make_form(FormStatus.SYNCHRONIZATION_COMPLETE, sync_flag=True)
    record = await form_svc.update_form(db, record.id, actor="bob", data={})
    assert record.status == FormStatus.SYNCHRONIZATION_COMPLETE
    assert record.sync_flag is True
    assert record.payload == "{}"


@pytest.mark.asyncio
async def test_update_missing_form(db: AsyncSession):
    with pytest.raises(NotFoundError):
        await form_svc.update_form(db, uuid.uuid4(), actor="bob", data={})


@pytest.mark.asyncio
async def test_update_requires_actor(db: AsyncSession, make_form):
    record = await make_form()
    with pytest.raises(ValidationError):
        await form_svc.update_form(db, record.id, actor=None, data={})


@pytest.mark.asyncio
async def test_cancel_writes_history_every_time(db: AsyncSession):
    record = await form_svc.create_form(
        db, actor="alice", form_type=CONTACT, data={"email": "a@b.c"}
    )
    first = await form_svc.cancel_form(db, record.id, actor="bob")
    assert first.status == FormStatus.CANCELLED
    assert first.deleted_by == "bob"

    second = await form_svc.cancel_form(db, record.id, actor="carol")
    assert second.status == FormStatus.CANCELLED
    assert second.deleted_by == "carol"

    history = await form_svc.get_history(db, record.id)
    deleted = [e for e in history if e.status == HistoryStatus.DELETED]
    assert len(deleted) == 2
    assert all(e.remark == "Form Deleted" and e.category_code == "DELETED" for e in deleted)


@pytest.mark.asyncio
async def test_cancel_missing_form(db: AsyncSession):
    with pytest.raises(NotFoundError):
        await form_svc.cancel_form(db, uuid.uuid4(), actor="bob")
    assert await store_svc.count_history(db) == 0


@pytest.mark.asyncio
async def test_purge_form(db: AsyncSession):
    record = await form_svc.create_form(db, actor="alice", form_type=CONTACT, data={})
    await form_svc.purge_form(db, record.id)
    assert await form_svc.get_form(db, record.id) is None
    assert await form_svc.get_history(db, record.id) == []

    with pytest.raises(NotFoundError):
        await form_svc.purge_form(db, record.id)


@pytest.mark.asyncio
async def test_search_forms_returns_page_and_total(db: AsyncSession):
    for i in range(3):
        await form_svc.create_form(db, actor="alice", form_type=CONTACT, data={"email": f"{i}@x.y"})
    items, total = await form_svc.search_forms(db, limit=2)
    assert len(items) == 2
    assert total == 3
