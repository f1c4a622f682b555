"""Tests for the remote submission client."""

from __future__ import annotations

import ssl

import httpx
import pytest

from offline_forms.config import OfflineFormSettings
from offline_forms.remote import (
    RemoteAuthError,
    RemoteClient,
    RemoteCredentials,
    RemoteError,
    RemoteTimeoutError,
)
from offline_forms.remote.client import tls12_context


def test_credentials_headers():
    creds = RemoteCredentials(authorization_code="abc", session_header="hs")
    assert creds.headers() == {"Authorization": "Bearer abc", "DBOS-HS": "hs"}
    assert "DBOS-HS" not in RemoteCredentials(authorization_code="abc").headers()


def test_tls_context_requires_tls12():
    assert tls12_context().minimum_version == ssl.TLSVersion.TLSv1_2


@pytest.mark.asyncio
async def test_from_settings_uses_configured_endpoints():
    settings = OfflineFormSettings(
        remote_base_url="https://remote.example", remote_submit_path="/submit",
    )
    async with RemoteClient.from_settings(settings) as client:
        assert client.base_url == "https://remote.example"
        assert client.submit_path == "/submit"


@pytest.mark.asyncio
async def test_submit_returns_json(remote, remote_stub):
    data = await remote.submit({"a": 1}, RemoteCredentials(authorization_code="t"))
    assert data == {"uuid": "R1", "refNo": "REF1"}


@pytest.mark.asyncio
async def test_non_json_body_returns_none(remote, remote_stub):
    remote_stub.handler = lambda request: httpx.Response(200, text="OK")
    assert await remote.submit({}, RemoteCredentials(authorization_code="t")) is None


@pytest.mark.asyncio
async def test_rejected_credentials(remote, remote_stub):
    remote_stub.handler = lambda request: httpx.Response(403)
    with pytest.raises(RemoteAuthError) as excinfo:
        await remote.submit({}, RemoteCredentials(authorization_code="t"))
    assert excinfo.value.status_code == 403


@pytest.mark.asyncio
async def test_http_error_carries_status(remote, remote_stub):
    remote_stub.handler = lambda request: httpx.Response(500, text="boom")
    with pytest.raises(RemoteError) as excinfo:
        await remote.submit({}, RemoteCredentials(authorization_code="t"))
    assert excinfo.value.status_code == 500
    assert excinfo.value.response == "boom"


@pytest.mark.asyncio
async def test_timeout_maps_to_timeout_error(remote, remote_stub):
    def slow(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    remote_stub.handler = slow
    with pytest.raises(RemoteTimeoutError):
        await remote.submit({}, RemoteCredentials(authorization_code="t"))


@pytest.mark.asyncio
async def test_connection_failure_maps_to_remote_error(remote, remote_stub):
    def refused(request):
        raise httpx.ConnectError("connection refused", request=request)

    remote_stub.handler = refused
    with pytest.raises(RemoteError, match="connection refused"):
        await remote.submit({}, RemoteCredentials(authorization_code="t"))
