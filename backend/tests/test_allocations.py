"""Tests for admin leave allocations and the consumption counter."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from app.models.enums import Role
from app.services.allocation import get_allocation_for_employee, increment_leaves_taken

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from conftest import Actor

URL = "/leave-allocations"


# ---------------------------------------------------------------------------
# Set (upsert)
# ---------------------------------------------------------------------------


async def test_set_creates_then_updates(async_client: AsyncClient, admin: Actor, employee: Actor) -> None:
    payload = {"employee_id": str(employee.id), "total_leaves": 20}
    resp = await async_client.post(URL, json=payload, headers=admin.headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Leave allocation created successfully"
    assert body["allocation"]["total_leaves"] == 20
    assert body["allocation"]["leaves_taken"] == 0
    assert body["allocation"]["leaves_remaining"] == 20
    assert body["allocation"]["employee"]["id"] == str(employee.id)

    resp = await async_client.post(URL, json={**payload, "total_leaves": 25}, headers=admin.headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Leave allocation updated successfully"
    assert resp.json()["allocation"]["id"] == body["allocation"]["id"]
    assert resp.json()["allocation"]["total_leaves"] == 25


async def test_set_bounds(async_client: AsyncClient, admin: Actor, employee: Actor) -> None:
    for total in (-1, 366):
        resp = await async_client.post(
            URL, json={"employee_id": str(employee.id), "total_leaves": total}, headers=admin.headers
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Total leaves must be between 0 and 365"

    for total in (0, 365):
        resp = await async_client.post(
            URL, json={"employee_id": str(employee.id), "total_leaves": total}, headers=admin.headers
        )
        assert resp.status_code == 200


async def test_set_for_non_employee(async_client: AsyncClient, admin: Actor, manager: Actor) -> None:
    resp = await async_client.post(
        URL, json={"employee_id": str(manager.id), "total_leaves": 10}, headers=admin.headers
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Employee not found"


async def test_set_requires_admin(async_client: AsyncClient, manager: Actor, employee: Actor) -> None:
    resp = await async_client.post(
        URL, json={"employee_id": str(employee.id), "total_leaves": 10}, headers=manager.headers
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Update / list
# ---------------------------------------------------------------------------


async def test_update_cannot_drop_below_taken(
    async_client: AsyncClient,
    admin: Actor,
    employee: Actor,
    set_allocation: Callable[..., Awaitable[dict]],
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    allocation = await set_allocation(employee, 10)
    async with session_factory() as session:
        await increment_leaves_taken(session, employee.id, 4)
        await session.commit()

    resp = await async_client.put(f"{URL}/{allocation['id']}", json={"total_leaves": 3}, headers=admin.headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Total leaves cannot be less than leaves already taken (4)"

    resp = await async_client.put(f"{URL}/{allocation['id']}", json={"total_leaves": 4}, headers=admin.headers)
    assert resp.status_code == 200
    assert resp.json()["allocation"]["leaves_remaining"] == 0


async def test_update_unknown_allocation(async_client: AsyncClient, admin: Actor) -> None:
    resp = await async_client.put(f"{URL}/{uuid.uuid4()}", json={"total_leaves": 5}, headers=admin.headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Leave allocation not found"


async def test_list_includes_unallocated_employees(
    async_client: AsyncClient,
    admin: Actor,
    make_actor: Callable[..., Awaitable[Actor]],
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    allocated = await make_actor(Role.EMPLOYEE, "Alice Allocated")
    await make_actor(Role.EMPLOYEE, "Zed Pending")
    await make_actor(Role.EMPLOYEE, "Bob Pending")
    await make_actor(Role.MANAGER)
    await set_allocation(allocated, 15)

    resp = await async_client.get(URL, headers=admin.headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [a["employee"]["name"] for a in body["allocations"]] == ["Alice Allocated"]
    assert [u["name"] for u in body["unallocated_employees"]] == ["Bob Pending", "Zed Pending"]


# ---------------------------------------------------------------------------
# Consumption counter
# ---------------------------------------------------------------------------


async def test_increment_without_allocation_is_noop(
    session_factory: async_sessionmaker[AsyncSession],
    employee: Actor,
) -> None:
    async with session_factory() as session:
        assert await increment_leaves_taken(session, employee.id, 3) is False
        await session.commit()
        assert await get_allocation_for_employee(session, employee.id) is None


async def test_increment_adds_days(
    session_factory: async_sessionmaker[AsyncSession],
    employee: Actor,
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await set_allocation(employee, 10)
    async with session_factory() as session:
        assert await increment_leaves_taken(session, employee.id, 3) is True
        assert await increment_leaves_taken(session, employee.id, 2) is True
        await session.commit()

    async with session_factory() as session:
        allocation = await get_allocation_for_employee(session, employee.id)
    assert allocation is not None
    assert allocation.leaves_taken == 5
    assert allocation.leaves_remaining == 5
