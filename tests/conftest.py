"""Shared pytest fixtures for the Companion Marketplace tests.

Every test runs against a throwaway SQLite file (via aiosqlite).  The
environment is prepared before any ``app`` module reads its settings.
"""
import os
import tempfile
import uuid

_DB_DIR = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CLOUD_SQL_USE_UNIX_SOCKET"] = "false"
os.environ["PAYMENT_MOCK_SUCCESS_RATE"] = "1.0"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.database import Base, async_session_factory, engine
from app.main import app
from app.models.profile import ClientProfile, CompanionProfile
from app.models.user import User
from app.utils.security import create_access_token, hash_password

PASSWORD = "password123"


@pytest_asyncio.fixture(autouse=True)
async def _schema():
    """Fresh tables for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db():
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow; hash the shared test password once.
    return hash_password(PASSWORD)


@pytest.fixture
def make_user(db, password_hash):
    async def _make(role="client", email=None, first_name="Test", last_name="User", **fields):
        user = User(
            email=email or f"{role}-{uuid.uuid4().hex[:8]}@example.com",
            password_hash=password_hash,
            role=role,
            first_name=first_name,
            last_name=last_name,
            **fields,
        )
        db.add(user)
        await db.flush()
        return user

    return _make


@pytest.fixture
def make_companion(db, make_user):
    """Create a companion account plus profile; profile fields pass through."""

    async def _make(display_name="Companion", **fields):
        user = await make_user(role="companion", first_name=display_name)
        profile = CompanionProfile(user_id=user.id, display_name=display_name, **fields)
        profile.user = user
        db.add(profile)
        await db.flush()
        return profile

    return _make


@pytest.fixture
def make_client_profile(db, make_user):
    async def _make(**fields):
        user = await make_user(role="client")
        profile = ClientProfile(
            user_id=user.id,
            display_name=user.first_name,
            favorites=[],
            recently_viewed=[],
            **fields,
        )
        db.add(profile)
        await db.flush()
        return user, profile

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}

    return _headers
