"""Offline form record model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UUIDMixin, utcnow

if TYPE_CHECKING:
    from .history import HistoryEntry


class FormStatus:
    """Lifecycle states of an offline form."""

    INCOMPLETE = "INCOMPLETE"
    PENDING_SYNC = "PENDING_SYNC"
    SYNC_IN_PROGRESS = "SYNC_IN_PROGRESS"
    SYNCHRONIZATION_COMPLETE = "SYNCHRONIZATION_COMPLETE"
    FAILED_SYNC = "FAILED_SYNC"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    ALL = (
        INCOMPLETE,
        PENDING_SYNC,
        SYNC_IN_PROGRESS,
        SYNCHRONIZATION_COMPLETE,
        FAILED_SYNC,
        CANCELLED,
        EXPIRED,
    )
    # States a sync may be started from; FAILED_SYNC allows an operator retry.
    SYNCABLE = (PENDING_SYNC, FAILED_SYNC)
    # Completeness re-evaluation only applies before the first sync.
    EDITABLE = (INCOMPLETE, PENDING_SYNC)


class SyncStatus:
    NONE = "NONE"
    SUCCESS = "success"
    FAILED = "failed"


class FormRecord(Base, UUIDMixin):
    """One offline form submission and its lifecycle state."""

    __tablename__ = "offline_form"

    remote_id: Mapped[str | None] = mapped_column(String(100), default=None)
    reference_number: Mapped[str | None] = mapped_column(String(100), default=None)
    payload: Mapped[str | None] = mapped_column(Text, default=None)
    form_type: Mapped[str] = mapped_column(String(100), index=True)
    form_category: Mapped[str | None] = mapped_column(String(100), default=None)

    sync_flag: Mapped[bool] = mapped_column(Boolean, default=False)
    sync_status: Mapped[str] = mapped_column(String(20), default=SyncStatus.NONE)
    status: Mapped[str] = mapped_column(
        String(30), default=FormStatus.INCOMPLETE, index=True
    )

    created_by: Mapped[str | None] = mapped_column(String(100), default=None)
    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    last_modified_by: Mapped[str | None] = mapped_column(String(100), default=None)
    last_modified_on: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    synced_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    sync_attempted_on: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    deleted_by: Mapped[str | None] = mapped_column(String(100), default=None)
    deleted_on: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    customer_name: Mapped[str | None] = mapped_column(String(255), default=None)
    customer_id: Mapped[str | None] = mapped_column(String(100), default=None, index=True)
    branch: Mapped[str | None] = mapped_column(String(100), default=None)
    date_of_birth: Mapped[str | None] = mapped_column(String(30), default=None)
    country_of_origin: Mapped[str | None] = mapped_column(String(100), default=None)
    id_type: Mapped[str | None] = mapped_column(String(50), default=None)

    history: Mapped[list[HistoryEntry]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<FormRecord {self.id} {self.status}>"
