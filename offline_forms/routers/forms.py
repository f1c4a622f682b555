"""JSON API for offline forms: CRUD, search, sync and history."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_remote_client
from ..errors import NotFoundError
from ..remote import RemoteClient, RemoteCredentials
from ..schemas.form import FormCancel, FormCreate, FormRead, FormUpdate, HistoryRead, SyncRequest
from ..services import form_svc, sync_svc
from .params import build_criteria

router = APIRouter(prefix="/api/forms", tags=["forms"])


def _form(record) -> dict:
    return FormRead.model_validate(record).model_dump(mode="json")


def _history(entries) -> list[dict]:
    return [HistoryRead.model_validate(e).model_dump(mode="json") for e in entries]


@router.get("")
async def list_forms(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    items, total = await form_svc.search_forms(db, limit=limit, offset=offset)
    return {
        "success": True,
        "message": "Forms retrieved successfully",
        "count": total,
        "data": [_form(r) for r in items],
    }


@router.get("/search")
async def search_forms(
    form_type: str | None = None,
    status: str | None = None,
    statuses: str | None = None,
    customer_name: str | None = None,
    customer_id: str | None = None,
    form_category: str | None = None,
    sync_flag: str | None = None,
    created_from: str | None = None,
    created_to: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    criteria = build_criteria(
        form_type=form_type,
        status=status,
        statuses=statuses,
        customer_name=customer_name,
        customer_id=customer_id,
        form_category=form_category,
        sync_flag=sync_flag,
        created_from=created_from,
        created_to=created_to,
    )
    items, total = await form_svc.search_forms(db, criteria, limit=limit, offset=offset)
    return {
        "success": True,
        "message": "Forms searched successfully",
        "count": total,
        "data": [_form(r) for r in items],
    }


@router.get("/{form_id}")
async def get_form(form_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    record = await form_svc.get_form(db, form_id)
    if not record:
        raise NotFoundError(f"Form with id {form_id} not found")
    history = await form_svc.get_history(db, form_id)
    return {
        "success": True,
        "message": "Form retrieved successfully",
        "data": {"form": _form(record), "history": _history(history)},
    }


@router.post("", status_code=201)
async def create_form(data: FormCreate, db: AsyncSession = Depends(get_db)):
    record = await form_svc.create_form(db, **data.model_dump())
    return {"success": True, "message": "Form created successfully", "data": _form(record)}


@router.put("/{form_id}")
async def update_form(form_id: uuid.UUID, data: FormUpdate, db: AsyncSession = Depends(get_db)):
    record = await form_svc.update_form(db, form_id, **data.model_dump())
    return {"success": True, "message": "Form updated successfully", "data": _form(record)}


@router.patch("/{form_id}/cancel")
async def cancel_form(form_id: uuid.UUID, data: FormCancel, db: AsyncSession = Depends(get_db)):
    record = await form_svc.cancel_form(db, form_id, actor=data.actor)
    return {"success": True, "message": "Form cancelled successfully", "data": _form(record)}


@router.delete("/{form_id}")
async def delete_form(form_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await form_svc.purge_form(db, form_id)
    return {
        "success": True,
        "message": "Form and related history deleted permanently",
        "data": {"id": str(form_id)},
    }


@router.post("/{form_id}/sync")
async def sync_form(
    form_id: uuid.UUID,
    data: SyncRequest,
    db: AsyncSession = Depends(get_db),
    remote: RemoteClient = Depends(get_remote_client),
):
    credentials = RemoteCredentials(
        authorization_code=data.authorization_code,
        session_header=data.session_header,
        username=data.username,
    )
    result = await sync_svc.sync_form(db, form_id, credentials, remote, value_body=data.value_body)
    return {"success": not result.error, "message": result.message, "data": result.to_dict()}


@router.get("/{form_id}/history")
async def form_history(form_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    history = await form_svc.get_history(db, form_id)
    return {
        "success": True,
        "message": "History retrieved successfully",
        "count": len(history),
        "data": _history(history),
    }
