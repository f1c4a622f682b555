"""Form lifecycle engine: create, update and cancel offline forms.

Each transition writes exactly one history entry in the same transaction
as the record change.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, ValidationError
from ..models import FormRecord, FormStatus, HistoryEntry, HistoryStatus, SyncStatus
from ..models.base import utcnow
from . import completeness, store_svc

logger = logging.getLogger(__name__)

# Context fields copied straight from input onto the record
CONTEXT_FIELDS = ("branch", "date_of_birth", "country_of_origin", "id_type")


@dataclass
class Payload:
    """Serialized form payload and whether it is ready to sync."""

    json: str
    complete: bool


def build_payload(
    form_type: str | None,
    data: dict[str, Any] | None,
    customer_id: str | None = None,
    customer_name: str | None = None,
    provisional_complete: bool | None = None,
) -> Payload:
    """Serialize form input and evaluate it against the type's predicate.

    A provisional signal from an upstream payload builder can only make the
    result stricter.
    """
    complete = completeness.is_complete(form_type, data, customer_id, customer_name)
    if provisional_complete is not None:
        complete = complete and provisional_complete
    return Payload(json=json.dumps(data or {}), complete=complete)


def _status_for(payload: Payload) -> str:
    return FormStatus.PENDING_SYNC if payload.complete else FormStatus.INCOMPLETE


def _require(value: str | None, name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return value


def _history(form_id: uuid.UUID, remark: str, status: str, category_code: str) -> HistoryEntry:
    return HistoryEntry(
        form_id=form_id,
        remark=remark,
        error_message="",
        status=status,
        category_code=category_code,
    )


async def create_form(
    db: AsyncSession,
    *,
    actor: str | None,
    form_type: str | None,
    data: dict[str, Any] | None = None,
    customer_id: str | None = None,
    customer_name: str | None = None,
    form_category: str | None = None,
    provisional_complete: bool | None = None,
    form_id: uuid.UUID | None = None,
    **context: Any,
) -> FormRecord:
    """Create a form as INCOMPLETE or PENDING_SYNC depending on its payload."""
    actor = _require(actor, "actor")
    form_type = _require(form_type, "form_type")

    payload = build_payload(form_type, data, customer_id, customer_name, provisional_complete)
    record = FormRecord(
        id=form_id,
        created_by=actor,
        created_on=utcnow(),
        customer_id=customer_id,
        customer_name=customer_name,
        form_type=form_type,
        form_category=form_category,
        sync_flag=False,
        sync_status=SyncStatus.NONE,
        payload=payload.json,
        status=_status_for(payload),
        **{k: v for k, v in context.items() if k in CONTEXT_FIELDS},
    )

    async with store_svc.transaction(db):
        await store_svc.create(db, record)
        await store_svc.append_history(
            db, _history(record.id, "Form Created", HistoryStatus.CREATED, "CREATED")
        )

    logger.info("Created form %s (%s) as %s", record.id, form_type, record.status)
    return record


async def update_form(
    db: AsyncSession,
    form_id: uuid.UUID,
    *,
    actor: str | None,
    data: dict[str, Any] | None = None,
    form_type: str | None = None,
    form_category: str | None = None,
    customer_id: str | None = None,
    customer_name: str | None = None,
    provisional_complete: bool | None = None,
    **context: Any,
) -> FormRecord:
    """Update a form, re-evaluating completeness when a payload is supplied.

    Only INCOMPLETE and PENDING_SYNC forms change status; later states keep
    their status and sync flags.
    """
    actor = _require(actor, "actor")

    async with store_svc.transaction(db):
        record = await store_svc.get_by_id(db, form_id)
        if record is None:
            raise NotFoundError(f"Form with id {form_id} not found")

        record.last_modified_by = actor
        record.last_modified_on = utcnow()
        record.customer_id = customer_id or record.customer_id
        record.customer_name = customer_name or record.customer_name
        record.form_type = form_type or record.form_type
        record.form_category = form_category or record.form_category
        for key in CONTEXT_FIELDS:
            if context.get(key):
                setattr(record, key, context[key])

        if data is not None:
            payload = build_payload(
                record.form_type, data, record.customer_id, record.customer_name,
                provisional_complete,
            )
            record.payload = payload.json
            if record.status in FormStatus.EDITABLE:
                record.status = _status_for(payload)

        await store_svc.append_history(
            db, _history(record.id, "Form Updated", HistoryStatus.UPDATED, "UPDATED")
        )

    logger.info("Updated form %s, status %s", record.id, record.status)
    return record


async def cancel_form(db: AsyncSession, form_id: uuid.UUID, *, actor: str | None) -> FormRecord:
    """Soft delete: any state moves to CANCELLED. Safe to repeat."""
    actor = _require(actor, "actor")

    async with store_svc.transaction(db):
        record = await store_svc.soft_delete(db, form_id, actor)
        if record is None:
            raise NotFoundError(f"Form with id {form_id} not found")
        await store_svc.append_history(
            db, _history(record.id, "Form Deleted", HistoryStatus.DELETED, "DELETED")
        )

    logger.info("Cancelled form %s by %s", form_id, actor)
    return record


async def purge_form(db: AsyncSession, form_id: uuid.UUID) -> None:
    """Administrative hard delete of a form and its history."""
    async with store_svc.transaction(db):
        deleted = await store_svc.hard_delete(db, form_id)
        if not deleted:
            raise NotFoundError(f"Form with id {form_id} not found")
    logger.warning("Permanently deleted form %s and its history", form_id)


async def get_form(db: AsyncSession, form_id: uuid.UUID) -> FormRecord | None:
    return await store_svc.get_by_id(db, form_id)


async def search_forms(
    db: AsyncSession,
    criteria: store_svc.FormCriteria | None = None,
    limit: int | None = 100,
    offset: int = 0,
) -> tuple[list[FormRecord], int]:
    """Return one page of matching forms plus the total match count."""
    items = await store_svc.find_by_criteria(db, criteria, limit=limit, offset=offset)
    total = await store_svc.count(db, criteria)
    return items, total


async def get_history(db: AsyncSession, form_id: uuid.UUID) -> list[HistoryEntry]:
    return await store_svc.find_history_by_form_id(db, form_id)
