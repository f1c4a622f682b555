"""Append-only audit trail for form lifecycle transitions."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, UUIDMixin, utcnow

if TYPE_CHECKING:
    from .form import FormRecord


class HistoryStatus:
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    ERROR = "ERROR"


class HistoryEntry(Base, UUIDMixin):
    """Immutable record of one transition on a form."""

    __tablename__ = "form_history"

    form_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("offline_form.id", ondelete="CASCADE"), index=True
    )
    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    remark: Mapped[str | None] = mapped_column(Text, default=None)
    error_message: Mapped[str | None] = mapped_column(Text, default=None)
    status: Mapped[str] = mapped_column(String(20))
    category_code: Mapped[str | None] = mapped_column(String(30), default=None)

    form: Mapped[FormRecord] = relationship(back_populates="history")

    def __repr__(self) -> str:
        return f"<HistoryEntry {self.status} {self.category_code}>"
