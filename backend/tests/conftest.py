# ruff: noqa: E402
from __future__ import annotations

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db import get_session
from app.main import app
from app.models import SQLModel
from app.models.enums import Role
from app.security import create_access_token
from app.services.cache import NullCache, OverviewCaches, get_overview_caches
from app.services.presence import PresenceHub, get_presence_hub
from app.services.user import create_user

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from app.models.user import User

TEST_PASSWORD = "secret123"


@dataclass
class Actor:
    """A persisted user together with ready-to-use auth headers."""

    user: User
    headers: dict[str, str]

    @property
    def id(self) -> uuid.UUID:
        return self.user.id


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """Create a fresh in-memory database for each test."""
    _engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with _engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield _engine
    await _engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Factory for short-lived sessions used by fixtures and direct DB assertions."""
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def presence_hub() -> PresenceHub:
    return PresenceHub()


@pytest.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
    presence_hub: PresenceHub,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the session, caches and presence hub overridden."""

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[get_overview_caches] = lambda: OverviewCaches(manager=NullCache(), admin=NullCache())
    app.dependency_overrides[get_presence_hub] = lambda: presence_hub
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_actor(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Awaitable[Actor]]:
    """Factory that persists a user with the given role and returns it with a bearer token."""

    async def _make(role: Role, name: str | None = None) -> Actor:
        name = name or f"{role.value.capitalize()} {uuid.uuid4().hex[:6]}"
        async with session_factory() as session:
            user = await create_user(
                session,
                name=name,
                email=f"{uuid.uuid4().hex[:10]}@example.com",
                password=TEST_PASSWORD,
                role=role,
            )
            await session.commit()
            await session.refresh(user)
        return Actor(user=user, headers={"Authorization": f"Bearer {create_access_token(user)}"})

    return _make


@pytest.fixture
async def admin(make_actor: Callable[..., Awaitable[Actor]]) -> Actor:
    return await make_actor(Role.ADMIN, "Ada Admin")


@pytest.fixture
async def manager(make_actor: Callable[..., Awaitable[Actor]]) -> Actor:
    return await make_actor(Role.MANAGER, "Maya Manager")


@pytest.fixture
async def employee(make_actor: Callable[..., Awaitable[Actor]]) -> Actor:
    return await make_actor(Role.EMPLOYEE, "Eli Employee")


@pytest.fixture
def make_team(async_client: AsyncClient) -> Callable[..., Awaitable[str]]:
    """Factory that creates a team for ``owner`` with ``members`` and returns its ID."""

    async def _make(owner: Actor, *members: Actor, name: str | None = None) -> str:
        resp = await async_client.post(
            "/teams", json={"name": name or f"Team {uuid.uuid4().hex[:6]}"}, headers=owner.headers
        )
        assert resp.status_code == 201, resp.text
        team_id = resp.json()["team"]["id"]
        for member in members:
            resp = await async_client.post(
                f"/teams/{team_id}/members", json={"employee_id": str(member.id)}, headers=owner.headers
            )
            assert resp.status_code == 200, resp.text
        return team_id

    return _make


@pytest.fixture
def set_allocation(async_client: AsyncClient, admin: Actor) -> Callable[..., Awaitable[dict]]:
    """Factory that gives an employee a leave quota through the admin API."""

    async def _set(target: Actor, total_leaves: int) -> dict:
        resp = await async_client.post(
            "/leave-allocations",
            json={"employee_id": str(target.id), "total_leaves": total_leaves},
            headers=admin.headers,
        )
        assert resp.status_code == 200, resp.text
        return resp.json()["allocation"]

    return _set
