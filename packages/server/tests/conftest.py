"""
Shared fixtures: a fresh in-memory SQLite database per test, an httpx
client wired to it, and principal headers for a few callers.
"""

from __future__ import annotations

import os

os.environ.setdefault("MERIDIAN_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MERIDIAN_LOG_FORMAT", "console")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.auth import encode_principal  # noqa: E402
from app.core.config import get_settings  # noqa: E402
from app.core.database import get_session  # noqa: E402
from app.main import app  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def principal_headers(external_id: str, name: str, email: str, tenant: str = "tenant-1") -> dict:
    """Headers carrying an AAD-style client principal for the given caller."""
    principal = {
        "identityProvider": "aad",
        "userId": external_id,
        "userDetails": email,
        "claims": [
            {"typ": "http://schemas.microsoft.com/identity/claims/objectidentifier", "val": external_id},
            {"typ": "http://schemas.microsoft.com/identity/claims/tenantid", "val": tenant},
            {"typ": "name", "val": name},
            {"typ": "preferred_username", "val": email},
        ],
    }
    return {get_settings().principal_header: encode_principal(principal)}


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session on the test DB."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------

@pytest.fixture
def alice():
    return principal_headers("oid-alice", "Alice Able", "alice@example.com")


@pytest.fixture
def bob():
    return principal_headers("oid-bob", "Bob Baker", "bob@example.com")


@pytest.fixture
def carol():
    return principal_headers("oid-carol", "Carol Cole", "carol@example.com")


async def user_id_of(client: AsyncClient, headers: dict) -> str:
    """Resolve (and on first call create) the caller's internal id."""
    response = await client.get("/api/board", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["myUserId"]


async def create_meridian(client: AsyncClient, headers: dict, slug: str = "ops", **extra) -> dict:
    body = {"name": slug.title(), "slug": slug, **extra}
    response = await client.post("/api/meridians", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def create_item(
    client: AsyncClient,
    headers: dict,
    meridian_id: str,
    type_: str,
    title: str,
    parent_id: str | None = None,
) -> dict:
    body = {"type": type_, "title": title, "meridianId": meridian_id, "parentId": parent_id}
    response = await client.post("/api/items", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def add_member(
    client: AsyncClient, owner: dict, meridian_id: str, user_id: str, role: str
) -> None:
    response = await client.post(
        f"/api/meridians/{meridian_id}/members",
        json={"userId": user_id, "role": role},
        headers=owner,
    )
    assert response.status_code == 201, response.text
