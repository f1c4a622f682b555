"""Exception hierarchy for the offline form service."""

from __future__ import annotations

from typing import Any


class OfflineFormError(Exception):
    """Base exception for offline form errors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(OfflineFormError):
    """Referenced form does not exist."""

    def __init__(self, message: str):
        super().__init__(message, 404)


class ValidationError(OfflineFormError):
    """Malformed create/update input, rejected before any mutation."""

    def __init__(self, message: str):
        super().__init__(message, 422)


class ConflictError(OfflineFormError):
    """Write collides with existing state."""

    def __init__(self, message: str):
        super().__init__(message, 409)


class SyncConflictError(ConflictError):
    """Form is not in a syncable state (already synced or a sync is running)."""


class StorageError(OfflineFormError):
    """Transaction failed in the record store and was rolled back."""

    def __init__(self, message: str):
        super().__init__(message, 500)


class RemoteSyncError(OfflineFormError):
    """Remote endpoint unreachable, timed out, or rejected the submission.

    Always raised after the failure has been recorded as a history entry.
    """

    def __init__(self, message: str, result: Any = None):
        self.result = result
        super().__init__(message, 500)


class SchedulerError(OfflineFormError):
    """An expiry sweep failed. Logged by the worker, never surfaced."""
