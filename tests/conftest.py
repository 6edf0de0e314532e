"""Test fixtures — a fresh in-memory database and captcha store per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI + aiosqlite:

1. Each test gets its own in-memory SQLite engine (StaticPool keeps the
   single connection alive) with tables created from the ORM metadata.
2. get_db is overridden to hand out sessions bound to that engine.
3. get_challenge_store is overridden with a fresh MemoryChallengeStore,
   which tests can read to "solve" the captcha they were just served.

Environment variables are set before the app is imported so the default
settings, and the engine create_app() builds from them, never point at a
real Postgres or Redis.
"""

import os

os.environ.setdefault("NOTEKEEP_ENVIRONMENT", "test")
os.environ.setdefault("NOTEKEEP_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("NOTEKEEP_CAPTCHA_STORE", "memory")
os.environ.setdefault("NOTEKEEP_BCRYPT_ROUNDS", "4")  # fast hashing in tests
os.environ.setdefault("NOTEKEEP_LOG_LEVEL", "WARNING")

import uuid  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from notekeep.api.auth import get_challenge_store  # noqa: E402
from notekeep.captcha import MemoryChallengeStore  # noqa: E402
from notekeep.db.engine import get_db  # noqa: E402
from notekeep.db.models import Base  # noqa: E402
from notekeep.main import app  # noqa: E402

STRONG_PASSWORD = "Passw0rd"


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def challenge_store():
    return MemoryChallengeStore()


def _client(session_factory, challenge_store, raise_app_exceptions=True):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_challenge_store] = lambda: challenge_store

    transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture()
async def client(session_factory, challenge_store):
    """HTTP client against the real app with test DB and captcha store."""
    async with _client(session_factory, challenge_store) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def lenient_client(session_factory, challenge_store):
    """Like `client`, but unhandled exceptions come back as 500 responses."""
    async with _client(session_factory, challenge_store, raise_app_exceptions=False) as ac:
        yield ac
    app.dependency_overrides.clear()


# ─── Helpers ────────────────────────────────────────────


async def solve_captcha(client, store: MemoryChallengeStore) -> str:
    """Fetch a captcha for the client's session and return its answer."""
    r = await client.get("/api/auth/captcha")
    assert r.status_code == 200
    # Newest challenge is last
    answer, _ = list(store._entries.values())[-1]
    return answer


async def register(client, store, username=None, password=STRONG_PASSWORD, **profile):
    username = username or f"user_{uuid.uuid4().hex[:8]}"
    answer = await solve_captcha(client, store)
    return await client.post(
        "/api/auth/register",
        json={"username": username, "password": password, "captcha": answer, **profile},
    )


async def register_token(client, store, username=None, **kwargs) -> str:
    r = await register(client, store, username, **kwargs)
    assert r.status_code == 200, r.text
    return r.json()["data"]["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
