"""Pydantic models for the offline form API."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FormCreate(BaseModel):
    actor: str | None = None
    form_type: str | None = None
    form_category: str | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    data: dict[str, Any] | None = None
    provisional_complete: bool | None = None
    branch: str | None = None
    date_of_birth: str | None = None
    country_of_origin: str | None = None
    id_type: str | None = None


class FormUpdate(FormCreate):
    """Same fields as FormCreate; omitted fields keep their stored values."""


class FormCancel(BaseModel):
    actor: str | None = None


class SyncRequest(BaseModel):
    authorization_code: str
    session_header: str | None = None
    username: str | None = None
    value_body: Any = None


class PurgeRequest(BaseModel):
    sync_days: int | None = Field(default=None, ge=0)
    stale_days: int | None = Field(default=None, ge=0)


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite returns naive UTC; attach the zone so every read serializes alike."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class FormRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    remote_id: str | None = None
    reference_number: str | None = None
    payload: str | None = None
    form_type: str
    form_category: str | None = None
    sync_flag: bool
    sync_status: str
    status: str
    created_by: str | None = None
    created_on: datetime
    last_modified_by: str | None = None
    last_modified_on: datetime | None = None
    synced_on: datetime | None = None
    sync_attempted_on: datetime | None = None
    deleted_by: str | None = None
    deleted_on: datetime | None = None
    customer_name: str | None = None
    customer_id: str | None = None
    branch: str | None = None
    date_of_birth: str | None = None
    country_of_origin: str | None = None
    id_type: str | None = None

    @field_validator(
        "created_on", "last_modified_on", "synced_on", "sync_attempted_on", "deleted_on"
    )
    @classmethod
    def attach_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class HistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    created_on: datetime
    remark: str | None = None
    error_message: str | None = None
    status: str
    category_code: str | None = None

    @field_validator("created_on")
    @classmethod
    def attach_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


# ── Legacy (Spring Boot compatible) request bodies ────────────────────────

class LegacyFormRequest(BaseModel):
    """Body of ``/form/requestForm`` and ``/form/update``."""

    model_config = ConfigDict(populate_by_name=True)

    created_by: str | None = Field(default=None, alias="createdBy")
    last_modified_by: str | None = Field(default=None, alias="lastModifiedBy")
    customer_id: str | None = Field(default=None, alias="id")
    customer_name: str | None = Field(default=None, alias="name")
    form_type: str | None = Field(default=None, alias="formType")
    form_category: str | None = Field(default=None, alias="formCategory")
    data: dict[str, Any] | None = None
    branch: str | None = Field(default=None, alias="transactionBranch")
    date_of_birth: str | None = Field(default=None, alias="dateOfBirth")
    country_of_origin: str | None = Field(default=None, alias="countryOfOrigin")
    id_type: str | None = Field(default=None, alias="idType")

    def context(self) -> dict[str, Any]:
        return {
            "branch": self.branch,
            "date_of_birth": self.date_of_birth,
            "country_of_origin": self.country_of_origin,
            "id_type": self.id_type,
        }


class LegacySyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    authorization_code: str | None = Field(default=None, alias="authorizationCode")
    dbos_hs: str | None = Field(default=None, alias="dbosHS")
    username: str | None = None
    value_body: Any = Field(default=None, alias="valueBody")


class LegacyBranchesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    authorization_code: str | None = Field(default=None, alias="authorizationCode")
