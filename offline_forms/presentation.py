"""Legacy Spring Boot response shapes.

The legacy clients expect Java ``LocalDateTime`` serialization: a
7-element array ``[year, month, day, hour, minute, second, nanosecond]`` in
server local time, and the legacy camelCase field names. Nothing outside
the legacy routers should depend on these shapes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .models import FormRecord, HistoryEntry


def to_java_datetime(value: datetime | None) -> list[int] | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    local = value.astimezone()
    return [
        local.year,
        local.month,
        local.day,
        local.hour,
        local.minute,
        local.second,
        local.microsecond * 1000,
    ]


def legacy_form(record: FormRecord) -> dict[str, Any]:
    return {
        "uuid": str(record.id),
        "uuidOnline": record.remote_id,
        "refNo": record.reference_number,
        "payloadJson": record.payload,
        "formType": record.form_type,
        "isFormSync": bool(record.sync_flag),
        "formSync": bool(record.sync_flag),
        "formSyncStatus": record.sync_status,
        "createdBy": record.created_by,
        "createdOn": to_java_datetime(record.created_on),
        "lastModifiedBy": record.last_modified_by,
        "lastModifiedOn": to_java_datetime(record.last_modified_on),
        "formSyncDate": to_java_datetime(record.synced_on),
        "formSyncOn": to_java_datetime(record.sync_attempted_on),
        "customerName": record.customer_name,
        "customerId": record.customer_id,
        "transactionBranch": record.branch,
        "dateOfBirth": record.date_of_birth,
        "countryOfOrigin": record.country_of_origin,
        "idType": record.id_type,
        "status": record.status,
        "deletedBy": record.deleted_by,
        "deletedOn": to_java_datetime(record.deleted_on),
        "formCategory": record.form_category,
    }


def legacy_history(entry: HistoryEntry) -> dict[str, Any]:
    return {
        "uuid": str(entry.id),
        "createdOn": to_java_datetime(entry.created_on),
        "remark": entry.remark or "",
        "errorMessage": entry.error_message or "",
        "status": entry.status,
        "uuidOffline": str(entry.form_id),
        "categoryCode": entry.category_code or "UPDATED",
    }
