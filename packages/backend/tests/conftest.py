"""Test fixtures — a fresh SQLite database and app per test.

Learn: Testing pattern for the async SQLAlchemy + FastAPI stack:

1. Each test gets its own Database over a temp-file SQLite DB (aiosqlite),
   with all tables created. A file, not :memory:, so the realtime
   collections can open several connections concurrently.
2. create_app(database=...) injects it — no dependency override for the
   session needed.
3. Outbound HTTP (geo-IP, chat provider) goes to an httpx MockTransport
   whose responses each test can script.
"""

from typing import Callable

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from folio.api.deps import get_http_client
from folio.auth.dependencies import require_admin
from folio.db.engine import Database
from folio.main import create_app


class FakeUpstream:
    """Scriptable stand-in for third-party HTTP services.

    responses maps a URL prefix to a handler(request) -> httpx.Response.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for prefix, respond in self.responses.items():
            if str(request.url).startswith(prefix):
                return respond(request)
        return httpx.Response(404, text="no fake response configured")


@pytest_asyncio.fixture()
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'folio.db'}")
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture()
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture()
async def upstream():
    return FakeUpstream()


@pytest_asyncio.fixture()
async def app(database, upstream):
    app = create_app(database=database)
    outbound = httpx.AsyncClient(transport=httpx.MockTransport(upstream.handle))
    app.dependency_overrides[get_http_client] = lambda: outbound
    yield app
    await outbound.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client with admin auth overridden.

    Learn: We override require_admin so admin routes work without a
    token. Auth itself is tested with unauthenticated_client.
    """
    app.dependency_overrides[require_admin] = lambda: None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def unauthenticated_client(app):
    """HTTP client WITHOUT the admin override — for testing the real token check."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
