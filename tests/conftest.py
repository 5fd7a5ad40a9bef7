"""Test fixtures: a throwaway database per test.

Pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine on a fresh SQLite file (aiosqlite), with
   foreign keys on so ON DELETE CASCADE behaves as in Postgres. Point
   TASKHUB_TEST_DATABASE_URL at Postgres to run the same suite there.
2. The app's get_db dependency is overridden to open sessions on that
   engine, one per request, exactly like production.
3. Auth is NOT mocked: users are created through UserService and get real
   access tokens, so every request goes through the real gate.
"""

import os

os.environ.setdefault("TASKHUB_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskhub.auth.jwt import issue_access_token, issue_refresh_token
from taskhub.db.engine import build_engine, get_db
from taskhub.db.models import Base
from taskhub.main import app
from taskhub.services.user_service import UserService

DEFAULT_PASSWORD = "Passw0rd1"


@pytest.fixture()
def test_db_url(tmp_path):
    return os.environ.get(
        "TASKHUB_TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'taskhub.db'}"
    )


@pytest_asyncio.fixture()
async def engine(test_db_url):
    engine = build_engine(test_db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client with get_db pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(session_factory):
    """Factory: create a user directly in the store and hand back tokens."""

    async def _make(username: str, role: str = "user", password: str = DEFAULT_PASSWORD):
        async with session_factory() as db:
            user = await UserService(db).create(
                username, f"{username}@example.com", password, role=role
            )
        access = issue_access_token(user.id, user.role)
        return SimpleNamespace(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            password=password,
            access_token=access,
            refresh_token=issue_refresh_token(user.id),
            headers={"Authorization": f"Bearer {access}"},
        )

    return _make


@pytest_asyncio.fixture()
async def alice(make_user):
    return await make_user("alice")


@pytest_asyncio.fixture()
async def bob(make_user):
    return await make_user("bob")


@pytest_asyncio.fixture()
async def admin(make_user):
    return await make_user("root", role="admin")
