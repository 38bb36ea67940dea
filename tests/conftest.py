"""
Shared test fixtures for the member-area test suite.

Every test gets its own in-memory SQLite database (aiosqlite + StaticPool)
and an httpx AsyncClient wired to the app through ASGITransport.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
# Fast hashes; the scheme is still bcrypt
os.environ["BCRYPT_ROUNDS"] = "4"

from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from memberauth.api.deps import get_db
from memberauth.core.security import get_password_hash
from memberauth.db.base import Base
from memberauth.main import app
from memberauth.models.account import ROLE_ADMIN, ROLE_USER, Account

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpass1"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def create_account(session_factory):
    """Insert an account directly, bypassing signup."""

    async def _create(
        email: str,
        password: str = "password123",
        name: str = "Test User",
        role: str = ROLE_USER,
    ) -> Account:
        async with session_factory() as session:
            account = Account(
                email=email,
                name=name,
                hashed_password=get_password_hash(password),
                role=role,
            )
            session.add(account)
            await session.commit()
            return account

    return _create


@pytest.fixture
def fetch_account(session_factory):
    """Read an account straight from the database."""

    async def _fetch(email: str) -> Account | None:
        async with session_factory() as session:
            result = await session.execute(select(Account).where(Account.email == email))
            return result.scalar_one_or_none()

    return _fetch


@pytest.fixture
async def admin_client(async_client: AsyncClient, create_account) -> AsyncClient:
    """The shared client, logged in as an admin."""
    await create_account(ADMIN_EMAIL, ADMIN_PASSWORD, name="Root", role=ROLE_ADMIN)
    resp = await async_client.post(
        "/login", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 303
    return async_client
