"""Offline form database models."""

from .base import Base
from .form import FormRecord, FormStatus, SyncStatus
from .history import HistoryEntry, HistoryStatus

__all__ = [
    "Base",
    "FormRecord",
    "FormStatus",
    "SyncStatus",
    "HistoryEntry",
    "HistoryStatus",
]
