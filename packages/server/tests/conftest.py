"""
Shared fixtures: in-memory SQLite database, fake Redis, seeded tenants.
"""

from __future__ import annotations

import os

os.environ.setdefault("VINCI_ENVIRONMENT", "test")
os.environ.setdefault("VINCI_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("VINCI_BCRYPT_ROUNDS", "4")
os.environ.setdefault("VINCI_COOKIE_SECURE", "false")
os.environ.setdefault("VINCI_LOG_FORMAT", "console")

import uuid  # noqa: E402
from dataclasses import dataclass  # noqa: E402
from typing import Optional  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.auth import create_jwt, hash_password  # noqa: E402
from app.core.database import async_session_factory, engine, init_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.member import Member  # noqa: E402
from app.models.organization import Organization  # noqa: E402
from app.models.user import User  # noqa: E402


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.fixture
async def database():
    """Fresh schema per test."""
    await init_db()
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


@pytest.fixture
async def session(database):
    async with async_session_factory() as s:
        yield s


@pytest.fixture(autouse=True)
def fake_redis():
    """Dict-backed stand-in for the revocation list."""
    store: dict[str, str] = {}

    async def setex(key, ttl, value):
        store[key] = value

    async def exists(*keys):
        return sum(1 for key in keys if key in store)

    client = AsyncMock()
    client.setex = AsyncMock(side_effect=setex)
    client.exists = AsyncMock(side_effect=exists)
    client.store = store

    with patch("app.core.redis.get_redis", AsyncMock(return_value=client)):
        yield client


@pytest.fixture
async def client(database):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

@dataclass
class Tenant:
    user: User
    org: Organization

    @property
    def headers(self) -> dict[str, str]:
        return auth_headers(self.user)


def auth_headers(user: User) -> dict[str, str]:
    token, _jti = create_jwt(user.id)
    return {"Authorization": f"Bearer {token}"}


async def seed_user(
    name: str = "Ada", email: Optional[str] = None, password: str = "password123"
) -> User:
    email = email or f"{uuid.uuid4().hex[:10]}@example.com"
    async with async_session_factory() as s:
        user = User(name=name, email=email, password_hash=hash_password(password))
        s.add(user)
        await s.commit()
        return user


async def seed_org(slug: Optional[str] = None, name: str = "Acme") -> Organization:
    async with async_session_factory() as s:
        org = Organization(name=name, slug=slug or f"org-{uuid.uuid4().hex[:8]}", settings={})
        s.add(org)
        await s.commit()
        return org


async def seed_member(org: Organization, user: User, role: str = "member") -> None:
    async with async_session_factory() as s:
        s.add(Member(organization_id=org.id, user_id=user.id, role=role))
        await s.commit()


@pytest.fixture
def make_tenant(database):
    """Factory: a new user owning (or holding ``role`` in) a new org."""

    async def _make(role: str = "owner", name: str = "Ada") -> Tenant:
        user = await seed_user(name=name)
        org = await seed_org()
        await seed_member(org, user, role=role)
        return Tenant(user=user, org=org)

    return _make
