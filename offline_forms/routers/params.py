"""Query parameter parsing shared by the modern and legacy form routes."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone

from ..errors import NotFoundError, ValidationError
from ..services.store_svc import FormCriteria


def parse_form_id(value: str | None) -> uuid.UUID:
    if not value:
        raise ValidationError("uuid is required")
    try:
        return uuid.UUID(value)
    except ValueError:
        raise NotFoundError(f"Form with id {value} not found") from None


def split_statuses(value: str | list[str] | None) -> list[str]:
    if not value:
        return []
    parts = value if isinstance(value, list) else [value]
    return [s.strip() for part in parts for s in part.split(",") if s.strip()]


def parse_bound(value: str | None, end_of_day: bool = False) -> datetime | None:
    """Parse an ISO timestamp or a bare date. A bare end date covers the whole day.

    Naive values are taken as UTC; offset values are converted to UTC, the
    zone the store compares in.
    """
    if not value:
        return None
    try:
        if "T" in value or " " in value.strip():
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        else:
            day = date.fromisoformat(value)
            parsed = datetime.combine(day, time.max if end_of_day else time.min)
    except ValueError:
        raise ValidationError(f"Invalid date: {value}") from None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_bool(value: str | None) -> bool | None:
    if value is None or value == "":
        return None
    return value.strip().lower() in {"true", "1", "yes"}


def build_criteria(
    form_type: str | None = None,
    status: str | None = None,
    statuses: str | list[str] | None = None,
    customer_name: str | None = None,
    customer_id: str | None = None,
    form_category: str | None = None,
    sync_flag: str | None = None,
    created_from: str | None = None,
    created_to: str | None = None,
) -> FormCriteria:
    return FormCriteria(
        form_type=form_type or None,
        status=status or None,
        statuses=split_statuses(statuses),
        customer_name=customer_name or None,
        customer_id=customer_id or None,
        form_category=form_category or None,
        sync_flag=parse_bool(sync_flag),
        created_from=parse_bound(created_from),
        created_to=parse_bound(created_to, end_of_day=True),
    )
