"""Remote submission client - wrapper for the form system of record API."""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import OfflineFormSettings

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """Base exception for remote API errors."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None):
        self.message = message
        self.status_code = status_code
        self.response = response
        super().__init__(self.message)


class RemoteAuthError(RemoteError):
    """Credentials rejected by the remote system."""

    pass


class RemoteTimeoutError(RemoteError):
    """Remote call exceeded its timeout."""

    pass


@dataclass
class RemoteCredentials:
    """Bearer credentials obtained from the external auth collaborator."""

    authorization_code: str
    session_header: str | None = None
    username: str | None = None

    def headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.authorization_code}"}
        if self.session_header:
            headers["DBOS-HS"] = self.session_header
        return headers


def tls12_context() -> ssl.SSLContext:
    """Verified TLS context pinned to TLS 1.2 or newer."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


class RemoteClient:
    """Async client for the remote submission and branch directory endpoints.

    Usage:
        async with RemoteClient.from_settings(settings) as remote:
            data = await remote.submit(body, credentials)

    Every call is a single attempt; there is no retry.
    """

    def __init__(
        self,
        base_url: str,
        submit_path: str,
        branches_path: str,
        connect_timeout: float = 10.0,
        read_timeout: float = 30.0,
        verify_tls: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.submit_path = submit_path
        self.branches_path = branches_path

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            verify=tls12_context() if verify_tls else False,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: OfflineFormSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> RemoteClient:
        return cls(
            base_url=settings.remote_base_url,
            submit_path=settings.remote_submit_path,
            branches_path=settings.remote_branches_path,
            connect_timeout=settings.remote_connect_timeout_seconds,
            read_timeout=settings.remote_read_timeout_seconds,
            verify_tls=settings.remote_verify_tls,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        json: Any = None,
    ) -> Any:
        """Make an API request; returns parsed JSON or None for an empty or non-JSON body."""
        try:
            response = await self._client.request(method, path, headers=headers, json=json)
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError(f"Request to {path} timed out: {e!r}") from e
        except httpx.TransportError as e:
            raise RemoteError(f"Transport error calling {path}: {e!r}") from e

        if response.status_code in (401, 403):
            raise RemoteAuthError("Remote system rejected credentials", response.status_code)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteError(
                f"API error: {e.response.status_code}",
                e.response.status_code,
                e.response.text or None,
            ) from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.warning("Non-JSON response from %s", path)
            return None

    async def submit(self, body: Any, credentials: RemoteCredentials) -> Any:
        """POST a form payload to the submission endpoint."""
        logger.info("Submitting form to %s%s", self.base_url, self.submit_path)
        return await self._request(
            "POST", self.submit_path, headers=credentials.headers(), json=body
        )

    async def list_branches(self, credentials: RemoteCredentials) -> list[dict[str, str]]:
        """Fetch the branch directory, normalized to the legacy field set."""
        data = await self._request("GET", self.branches_path, headers=credentials.headers())
        if not isinstance(data, list):
            return []
        return [
            {
                "branchName": item.get("branchName") or "",
                "uuid": item.get("uuid") or "",
                "convBranch": item.get("convBranch") or "",
                "islamicBranch": item.get("islamicBranch") or "",
            }
            for item in data
            if isinstance(item, dict)
        ]
