"""Client for the remote system of record."""

from .client import (
    RemoteAuthError,
    RemoteClient,
    RemoteCredentials,
    RemoteError,
    RemoteTimeoutError,
)

__all__ = [
    "RemoteAuthError",
    "RemoteClient",
    "RemoteCredentials",
    "RemoteError",
    "RemoteTimeoutError",
]
