"""Async test fixtures for offline form tests using SQLite."""

from __future__ import annotations

from datetime import timedelta

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from offline_forms.database import enable_sqlite_foreign_keys, get_db
from offline_forms.deps import get_remote_client
from offline_forms.models import Base, FormRecord, FormStatus
from offline_forms.models.base import utcnow
from offline_forms.remote import RemoteClient
from offline_forms.services import store_svc

class RemoteStub:
    """Programmable stand-in for the remote system of record.

    Set ``handler`` to a callable taking an ``httpx.Request`` and returning an
    ``httpx.Response`` (or raising an httpx exception).
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler = lambda request: httpx.Response(
            200, json={"uuid": "R1", "refNo": "REF1"}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> RemoteClient:
        return RemoteClient(
            base_url="https://remote.test",
            submit_path="/form/submit",
            branches_path="/branches",
            transport=httpx.MockTransport(self),
        )


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def remote_stub():
    return RemoteStub()


@pytest_asyncio.fixture
async def remote(remote_stub):
    async with remote_stub.client() as client:
        yield client


@pytest_asyncio.fixture
async def client(session_factory, remote_stub):
    """HTTPX async test client against the offline form app."""
    from offline_forms.app import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_remote_client():
        async with remote_stub.client() as remote_client:
            yield remote_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_remote_client] = override_get_remote_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def make_form(db):
    """Insert a FormRecord directly, bypassing the lifecycle engine."""

    async def _make(
        status: str = FormStatus.PENDING_SYNC,
        age_days: float = 0,
        **fields,
    ) -> FormRecord:
        fields.setdefault("form_type", "UPDATE_CONTACT_DETAIL")
        fields.setdefault("created_by", "tester")
        fields.setdefault("payload", '{"email": "jane@example.com"}')
        created_on = fields.pop("created_on", None) or utcnow() - timedelta(days=age_days)
        record = FormRecord(status=status, created_on=created_on, **fields)
        async with store_svc.transaction(db):
            await store_svc.create(db, record)
        return record

    return _make
