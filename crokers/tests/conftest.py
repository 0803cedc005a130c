"""
Shared pytest configuration for crokers tests.

Service tests run against TEST_DATABASE_URL, an in-memory SQLite database
(aiosqlite) by default. Point it at a PostgreSQL database whose name contains
"test" to run the same suite against the production dialect.
"""

import os

# Must be set before the app modules are imported: disables rate limiting
# and keeps bcrypt fast.
os.environ.setdefault("ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from crokers.database.db import Base, get_db_session


def _resolve_test_database_url() -> str:
    """
    Build the test database URL.

    Raises ``RuntimeError`` for a non-SQLite URL whose database name does not
    contain "test", so a misconfigured environment never touches real data.
    """
    url = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    if not url.startswith("sqlite"):
        db_name = url.rsplit("/", 1)[-1].split("?")[0]
        if "test" not in db_name.lower():
            raise RuntimeError(
                f"Refusing to run tests against database '{db_name}'; "
                f"set TEST_DATABASE_URL to a database whose name contains 'test'."
            )
    return url


TEST_DATABASE_URL = _resolve_test_database_url()


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh schema per test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection so every session sees the same in-memory db
        engine = create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """Database session bound to the test engine."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


# ============================================================================
# API test helpers
# ============================================================================

async def _no_db_session():
    yield None


@pytest.fixture
def client():
    """
    TestClient for route tests.

    Routes are exercised with their services monkeypatched, so the database
    dependency yields nothing instead of opening a real session.
    """
    from crokers.api.main import app

    app.dependency_overrides[get_db_session] = _no_db_session
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture
def auth_headers(monkeypatch):
    """Bearer header accepted by a stubbed token verifier."""
    from crokers.services import auth_service

    def fake_verify_token(token):
        if token != "valid-token":
            return None
        return {"sub": "1", "email": "test@example.com"}

    monkeypatch.setattr(auth_service, "verify_token", fake_verify_token, raising=True)
    return {"Authorization": "Bearer valid-token"}
