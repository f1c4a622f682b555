"""Shared FastAPI dependencies."""

from __future__ import annotations

from .config import settings
from .remote import RemoteClient


async def get_remote_client():
    """FastAPI dependency that yields a remote client for one request."""
    async with RemoteClient.from_settings(settings) as client:
        yield client
