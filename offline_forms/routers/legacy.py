"""Spring Boot compatible routes for existing offline clients.

Responses are bare objects and arrays in the legacy field layout. Lookup
failures answer 200 with ``{}`` or ``[]`` as the Java service did.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..deps import get_remote_client
from ..errors import NotFoundError, OfflineFormError, RemoteSyncError, ValidationError
from ..presentation import legacy_form, legacy_history
from ..remote import RemoteClient, RemoteCredentials
from ..schemas.form import LegacyBranchesRequest, LegacyFormRequest, LegacySyncRequest
from ..services import form_svc, store_svc, sync_svc
from .params import build_criteria, parse_form_id, split_statuses

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/form", tags=["legacy"])
history_router = APIRouter(prefix="/history", tags=["legacy"])


@router.post("/requestForm")
async def request_form(data: LegacyFormRequest, db: AsyncSession = Depends(get_db)):
    try:
        record = await form_svc.create_form(
            db,
            actor=data.created_by,
            form_type=data.form_type,
            data=data.data,
            customer_id=data.customer_id,
            customer_name=data.customer_name,
            form_category=data.form_category,
            **data.context(),
        )
    except OfflineFormError as exc:
        logger.error("Error in requestForm endpoint: %s", exc)
        return {}
    return legacy_form(record)


@router.put("/update")
async def update_form(
    data: LegacyFormRequest,
    uuid: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    try:
        form_id = parse_form_id(uuid)
        record = await form_svc.update_form(
            db,
            form_id,
            actor=data.last_modified_by or data.created_by,
            data=data.data,
            form_type=data.form_type,
            form_category=data.form_category,
            customer_id=data.customer_id,
            customer_name=data.customer_name,
            **data.context(),
        )
    except OfflineFormError as exc:
        logger.error("Error in update endpoint: %s", exc)
        return {}
    return legacy_form(record)


@router.get("/list")
async def list_forms(
    status: list[str] | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    criteria = store_svc.FormCriteria(statuses=split_statuses(status))
    try:
        records = await store_svc.find_by_criteria(db, criteria, limit=None)
    except OfflineFormError as exc:
        logger.error("Error in list endpoint: %s", exc)
        return []
    return [legacy_form(r) for r in records]


@router.get("/selected")
async def selected_form(uuid: str | None = None, db: AsyncSession = Depends(get_db)):
    try:
        record = await form_svc.get_form(db, parse_form_id(uuid))
    except OfflineFormError:
        return {}
    return legacy_form(record) if record else {}


@router.put("/cancel")
async def cancel_form(
    uuid: str | None = None,
    modifiedBy: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    try:
        record = await form_svc.cancel_form(db, parse_form_id(uuid), actor=modifiedBy or "system")
    except OfflineFormError as exc:
        logger.error("Error in cancel endpoint: %s", exc)
        return {}
    return legacy_form(record)


@router.get("/search")
async def search_forms(
    formType: str | None = None,
    customerName: str | None = None,
    customerId: str | None = None,
    status: str | None = None,
    statuses: list[str] | None = Query(None),
    formCategory: str | None = None,
    isFormSync: str | None = None,
    createdOnStart: str | None = None,
    createdOnEnd: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    try:
        criteria = build_criteria(
            form_type=formType,
            status=None if statuses else status,
            statuses=statuses,
            customer_name=customerName,
            customer_id=customerId,
            form_category=formCategory,
            sync_flag=isFormSync,
            created_from=createdOnStart,
            created_to=createdOnEnd,
        )
        records = await store_svc.find_by_criteria(db, criteria, limit=None)
    except OfflineFormError as exc:
        logger.error("Error in search endpoint: %s", exc)
        return []
    return [legacy_form(r) for r in records]


@router.post("/sync")
async def sync_form(
    data: LegacySyncRequest,
    uuid: str | None = None,
    db: AsyncSession = Depends(get_db),
    remote: RemoteClient = Depends(get_remote_client),
):
    credentials = RemoteCredentials(
        authorization_code=data.authorization_code or "",
        session_header=data.dbos_hs,
        username=data.username,
    )
    try:
        form_id = parse_form_id(uuid)
        result = await sync_svc.sync_form(db, form_id, credentials, remote, value_body=data.value_body)
    except (NotFoundError, ValidationError):
        logger.error("Form not found with UUID: %s", uuid)
        return {"uuid": uuid, "error": True, "message": "Form not found"}
    except RemoteSyncError as exc:
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "error": exc.message},
        )
    return result.to_legacy()


@router.post("/branches")
async def branches(
    data: LegacyBranchesRequest,
    remote: RemoteClient = Depends(get_remote_client),
):
    if not data.authorization_code:
        return []
    credentials = RemoteCredentials(authorization_code=data.authorization_code)
    return await sync_svc.list_branches(remote, credentials)


@history_router.get("/search")
async def search_history(
    uuid: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    if not uuid:
        return JSONResponse(status_code=400, content={"error": "UUID parameter is required"})
    try:
        entries = await form_svc.get_history(db, parse_form_id(uuid))
    except NotFoundError:
        return []
    return [legacy_history(e) for e in entries]
