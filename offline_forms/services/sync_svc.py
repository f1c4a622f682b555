"""Sync a form with the remote system of record and reconcile the outcome."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, RemoteSyncError, SyncConflictError
from ..models import FormRecord, FormStatus, HistoryEntry, HistoryStatus, SyncStatus
from ..models.base import utcnow
from ..remote import RemoteClient, RemoteCredentials
from . import store_svc

logger = logging.getLogger(__name__)

SYNC_CATEGORY = "SYNC"
NO_RESPONSE_MESSAGE = "No response received from server."


@dataclass
class SyncResult:
    """Outcome of one sync call. ``error=False`` does not guarantee a remote_id."""

    remote_id: str | None = None
    reference_number: str | None = None
    error: bool = False
    message: str = ""
    status: str = "success"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_legacy(self) -> dict[str, Any]:
        return {
            "uuid": self.remote_id or "",
            "refNo": self.reference_number or "",
            "error": self.error,
            "message": self.message,
            "status": self.status,
        }


def _success_ids(data: Any) -> tuple[str | None, str | None] | None:
    """Pull (remote id, reference number) from a response.

    Any non-empty JSON object or array counts as accepted, with or without ids.
    None means the body was empty or not JSON.
    """
    if not data or not isinstance(data, (dict, list)):
        return None
    if not isinstance(data, dict):
        return None, None
    remote_id = data.get("uuid") or data.get("remoteId")
    reference_number = data.get("refNo") or data.get("referenceNumber")
    return (
        str(remote_id) if remote_id else None,
        str(reference_number) if reference_number else None,
    )


async def _claim(db: AsyncSession, record: FormRecord, actor: str) -> None:
    """Move the form to SYNC_IN_PROGRESS if, and only if, it is still syncable."""
    now = utcnow()
    async with store_svc.transaction(db):
        result = await db.execute(
            update(FormRecord)
            .where(FormRecord.id == record.id, FormRecord.status.in_(FormStatus.SYNCABLE))
            .values(
                status=FormStatus.SYNC_IN_PROGRESS,
                sync_attempted_on=now,
                last_modified_by=actor,
                last_modified_on=now,
            )
            .execution_options(synchronize_session=False)
        )
        claimed = result.rowcount > 0
    await db.refresh(record)
    if not claimed:
        raise SyncConflictError(f"Form {record.id} cannot be synced while {record.status}")


def _outbound_body(record: FormRecord, value_body: Any) -> Any:
    if value_body is not None:
        return value_body
    try:
        return json.loads(record.payload) if record.payload else {}
    except ValueError:
        return {}


async def _record_success(
    db: AsyncSession, record: FormRecord, actor: str, remote_id: str | None, reference: str | None
) -> None:
    now = utcnow()
    async with store_svc.transaction(db):
        record.sync_flag = True
        record.sync_status = SyncStatus.SUCCESS
        record.status = FormStatus.SYNCHRONIZATION_COMPLETE
        record.synced_on = now
        record.sync_attempted_on = now
        record.remote_id = remote_id
        record.reference_number = reference
        record.last_modified_by = actor
        record.last_modified_on = now
        await store_svc.append_history(db, HistoryEntry(
            form_id=record.id,
            remark="Form Synchronized - Success",
            error_message="",
            status=HistoryStatus.SUCCESS,
            category_code=SYNC_CATEGORY,
        ))


async def _record_failure(
    db: AsyncSession,
    record: FormRecord,
    actor: str,
    history_status: str,
    remark: str,
    error_message: str,
) -> None:
    now = utcnow()
    async with store_svc.transaction(db):
        record.sync_flag = False
        record.sync_status = SyncStatus.FAILED
        record.status = FormStatus.FAILED_SYNC
        record.sync_attempted_on = now
        record.last_modified_by = actor
        record.last_modified_on = now
        await store_svc.append_history(db, HistoryEntry(
            form_id=record.id,
            remark=remark,
            error_message=error_message,
            status=history_status,
            category_code=SYNC_CATEGORY,
        ))


async def _release_claim(db: AsyncSession, form_id: uuid.UUID, actor: str, exc: BaseException) -> None:
    """Put a form still held in SYNC_IN_PROGRESS back to FAILED_SYNC with an ERROR entry."""
    message = str(exc) or type(exc).__name__
    now = utcnow()
    try:
        async with store_svc.transaction(db):
            result = await db.execute(
                update(FormRecord)
                .where(FormRecord.id == form_id, FormRecord.status == FormStatus.SYNC_IN_PROGRESS)
                .values(
                    status=FormStatus.FAILED_SYNC,
                    sync_flag=False,
                    sync_status=SyncStatus.FAILED,
                    sync_attempted_on=now,
                    last_modified_by=actor,
                    last_modified_on=now,
                )
                .execution_options(synchronize_session="fetch")
            )
            if result.rowcount:
                await store_svc.append_history(db, HistoryEntry(
                    form_id=form_id,
                    remark="Form Synchronized - Exception",
                    error_message=message,
                    status=HistoryStatus.ERROR,
                    category_code=SYNC_CATEGORY,
                ))
    except Exception:
        logger.exception("Could not release sync claim on form %s", form_id)
        return
    logger.warning("Released sync claim on form %s after %s", form_id, message)


async def _submit(
    db: AsyncSession,
    record: FormRecord,
    actor: str,
    credentials: RemoteCredentials,
    client: RemoteClient,
    value_body: Any,
) -> SyncResult:
    form_id = record.id
    try:
        data = await client.submit(_outbound_body(record, value_body), credentials)
    except Exception as exc:
        logger.error("Error syncing form %s: %s", form_id, exc)
        await _record_failure(
            db, record, actor,
            history_status=HistoryStatus.ERROR,
            remark="Form Synchronized - Exception",
            error_message=str(exc),
        )
        result = SyncResult(
            remote_id=record.remote_id,
            reference_number=record.reference_number,
            error=True,
            message=str(exc),
            status="error",
        )
        raise RemoteSyncError(f"Sync failed for form {form_id}: {exc}", result=result) from exc

    ids = _success_ids(data)
    if ids is None:
        logger.warning("No response data received from remote for form %s", form_id)
        await _record_failure(
            db, record, actor,
            history_status=HistoryStatus.FAILED,
            remark="Form Synchronized - Failed",
            error_message=NO_RESPONSE_MESSAGE,
        )
        return SyncResult(
            remote_id=record.remote_id,
            reference_number=record.reference_number,
            error=True,
            message=NO_RESPONSE_MESSAGE,
            status="failed",
        )

    remote_id, reference = ids
    await _record_success(db, record, actor, remote_id, reference)
    logger.info("Form %s synchronized (remote id %s, ref %s)", form_id, remote_id, reference)
    return SyncResult(
        remote_id=remote_id,
        reference_number=reference,
        error=False,
        message="Form synchronized",
        status="success",
    )


async def sync_form(
    db: AsyncSession,
    form_id: uuid.UUID,
    credentials: RemoteCredentials,
    client: RemoteClient,
    value_body: Any = None,
) -> SyncResult:
    """Submit one form to the remote system.

    Once claimed, the form always leaves SYNC_IN_PROGRESS: if the outcome
    cannot be recorded (storage failure, cancelled request) the claim is
    released to FAILED_SYNC with an ERROR entry and the error re-raised.

    Raises:
        NotFoundError: no such form.
        SyncConflictError: form is not PENDING_SYNC/FAILED_SYNC (another sync
            may be running).
        RemoteSyncError: transport failure; the ERROR history entry is
            already committed and ``exc.result`` holds the SyncResult.
    """
    record = await store_svc.get_by_id(db, form_id)
    if record is None:
        raise NotFoundError(f"Form with id {form_id} not found")

    actor = credentials.username or "system"
    await _claim(db, record, actor)
    logger.info("Starting sync for form %s", form_id)

    try:
        return await _submit(db, record, actor, credentials, client, value_body)
    except RemoteSyncError:
        raise
    except BaseException as exc:
        await _release_claim(db, form_id, actor, exc)
        raise


async def list_branches(client: RemoteClient, credentials: RemoteCredentials) -> list[dict[str, str]]:
    """Branch directory lookup; any failure yields an empty list."""
    try:
        return await client.list_branches(credentials)
    except Exception as exc:
        logger.error("Branch lookup failed: %s", exc)
        return []
