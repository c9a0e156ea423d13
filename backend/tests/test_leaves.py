"""Tests for the leave workflow: apply, review, escalation, admin override and the ledger."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from app.models.allocation import LeaveAllocation
from app.models.enums import AuditAction, Role

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from conftest import Actor


async def _apply(
    client: AsyncClient,
    actor: Actor,
    start: str = "2025-03-03",
    end: str = "2025-03-05",
    leave_type: str = "casual",
) -> dict:
    resp = await client.post(
        "/leaves",
        json={"leave_type": leave_type, "start_date": start, "end_date": end, "reason": "Family trip"},
        headers=actor.headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["leave"]


async def _review(client: AsyncClient, reviewer: Actor, leave_id: str, decision: str, note: str = ""):
    return await client.put(
        f"/leaves/{leave_id}/review", json={"status": decision, "note": note}, headers=reviewer.headers
    )


async def _balance(client: AsyncClient, actor: Actor) -> dict:
    resp = await client.get("/leaves/balance", headers=actor.headers)
    assert resp.status_code == 200
    return resp.json()["balance"]


# ---------------------------------------------------------------------------
# Apply
# ---------------------------------------------------------------------------


async def test_apply_counts_inclusive_days(async_client: AsyncClient, employee: Actor) -> None:
    leave = await _apply(async_client, employee, "2025-03-03", "2025-03-05")
    assert leave["number_of_days"] == 3
    assert leave["status"] == "pending"
    assert leave["escalated_to_admin"] is False
    assert leave["admin_override"] == "none"
    assert leave["employee"]["name"] == "Eli Employee"


async def test_apply_single_day(async_client: AsyncClient, employee: Actor) -> None:
    leave = await _apply(async_client, employee, "2025-03-03", "2025-03-03")
    assert leave["number_of_days"] == 1


async def test_apply_end_before_start(async_client: AsyncClient, employee: Actor) -> None:
    resp = await async_client.post(
        "/leaves",
        json={"leave_type": "sick", "start_date": "2025-03-05", "end_date": "2025-03-03", "reason": "Flu"},
        headers=employee.headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "End date cannot be before start date"


async def test_apply_insufficient_balance(
    async_client: AsyncClient,
    employee: Actor,
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await set_allocation(employee, 2)
    resp = await async_client.post(
        "/leaves",
        json={"leave_type": "earned", "start_date": "2025-03-03", "end_date": "2025-03-05", "reason": "Trip"},
        headers=employee.headers,
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "InsufficientBalanceError"
    assert body["message"] == "Insufficient leave balance. You have 2 days remaining."


async def test_apply_unpaid_ignores_balance(
    async_client: AsyncClient,
    employee: Actor,
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await set_allocation(employee, 0)
    leave = await _apply(async_client, employee, "2025-03-03", "2025-03-07", leave_type="unpaid")
    assert leave["number_of_days"] == 5


async def test_apply_without_allocation_is_unchecked(async_client: AsyncClient, employee: Actor) -> None:
    leave = await _apply(async_client, employee, "2025-01-01", "2025-01-31")
    assert leave["number_of_days"] == 31


async def test_admin_cannot_apply(async_client: AsyncClient, admin: Actor) -> None:
    resp = await async_client.post(
        "/leaves",
        json={"leave_type": "sick", "start_date": "2025-03-03", "end_date": "2025-03-03", "reason": "Flu"},
        headers=admin.headers,
    )
    assert resp.status_code == 403


async def test_apply_writes_submit_audit(async_client: AsyncClient, admin: Actor, employee: Actor) -> None:
    leave = await _apply(async_client, employee)
    resp = await async_client.get("/audit-log", params={"entity_type": "LEAVE"}, headers=admin.headers)
    logs = resp.json()["entries"]
    assert [log["action"] for log in logs] == [AuditAction.SUBMIT]
    assert logs[0]["entity_id"] == leave["id"]
    assert logs[0]["actor_id"] == str(employee.id)
    assert logs[0]["before_json"] is None


# ---------------------------------------------------------------------------
# Balance and history
# ---------------------------------------------------------------------------


async def test_balance_without_allocation(async_client: AsyncClient, employee: Actor) -> None:
    await _apply(async_client, employee)
    assert await _balance(async_client, employee) == {
        "total_leaves": 0,
        "leaves_taken": 0,
        "leaves_remaining": 0,
        "pending_requests": 1,
    }


async def test_my_leaves_status_filter(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
) -> None:
    await make_team(manager, employee)
    first = await _apply(async_client, employee, "2025-03-03", "2025-03-03")
    await _apply(async_client, employee, "2025-04-01", "2025-04-01")
    await _review(async_client, manager, first["id"], "approved")

    everything = (await async_client.get("/leaves/my", headers=employee.headers)).json()
    assert everything["count"] == 2

    approved = (await async_client.get("/leaves/my", params={"status": "approved"}, headers=employee.headers)).json()
    assert [leave["id"] for leave in approved["leaves"]] == [first["id"]]


# ---------------------------------------------------------------------------
# Withdraw
# ---------------------------------------------------------------------------


async def test_withdraw_pending(async_client: AsyncClient, employee: Actor) -> None:
    leave = await _apply(async_client, employee)
    resp = await async_client.put(f"/leaves/{leave['id']}/withdraw", headers=employee.headers)
    assert resp.status_code == 200
    assert resp.json()["leave"]["status"] == "withdrawn"
    assert resp.json()["message"] == "Leave request withdrawn successfully"


async def test_withdraw_someone_elses_leave(
    async_client: AsyncClient,
    employee: Actor,
    make_actor: Callable[..., Awaitable[Actor]],
) -> None:
    leave = await _apply(async_client, employee)
    other = await make_actor(Role.EMPLOYEE)
    resp = await async_client.put(f"/leaves/{leave['id']}/withdraw", headers=other.headers)
    assert resp.status_code == 403


@pytest.mark.parametrize("outcome", ["approved", "rejected", "withdrawn"])
async def test_withdraw_only_while_pending(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
    outcome: str,
) -> None:
    await make_team(manager, employee)
    leave = await _apply(async_client, employee)
    withdraw_url = f"/leaves/{leave['id']}/withdraw"
    if outcome == "withdrawn":
        resp = await async_client.put(withdraw_url, headers=employee.headers)
    else:
        resp = await _review(async_client, manager, leave["id"], outcome)
    assert resp.json()["leave"]["status"] == outcome

    resp = await async_client.put(withdraw_url, headers=employee.headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidStateError"
    assert resp.json()["message"] == "Only pending leave requests can be withdrawn"

    history = (await async_client.get("/leaves/my", headers=employee.headers)).json()
    assert [item["status"] for item in history["leaves"]] == [outcome]


# ---------------------------------------------------------------------------
# Manager review
# ---------------------------------------------------------------------------


async def test_approve_charges_allocation(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await make_team(manager, employee)
    await set_allocation(employee, 20)
    leave = await _apply(async_client, employee, "2025-03-03", "2025-03-05")

    resp = await _review(async_client, manager, leave["id"], "approved", "Enjoy")
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Leave request approved successfully"
    assert body["leave"]["status"] == "approved"
    assert body["leave"]["manager_note"] == "Enjoy"
    assert body["leave"]["reviewer"]["id"] == str(manager.id)
    assert body["leave"]["escalated_to_admin"] is False

    balance = await _balance(async_client, employee)
    assert balance["leaves_taken"] == 3
    assert balance["leaves_remaining"] == 17
    assert balance["pending_requests"] == 0


async def test_approvals_accumulate(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await make_team(manager, employee)
    await set_allocation(employee, 10)
    first = await _apply(async_client, employee, "2025-03-03", "2025-03-04")
    second = await _apply(async_client, employee, "2025-05-05", "2025-05-09")
    await _review(async_client, manager, first["id"], "approved")
    await _review(async_client, manager, second["id"], "approved")

    assert (await _balance(async_client, employee))["leaves_taken"] == 7


async def test_approve_unpaid_not_charged(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await make_team(manager, employee)
    await set_allocation(employee, 5)
    leave = await _apply(async_client, employee, "2025-03-03", "2025-03-04", leave_type="unpaid")
    await _review(async_client, manager, leave["id"], "approved")

    assert (await _balance(async_client, employee))["leaves_taken"] == 0


async def test_approve_without_allocation_succeeds(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
) -> None:
    await make_team(manager, employee)
    leave = await _apply(async_client, employee)
    resp = await _review(async_client, manager, leave["id"], "approved")
    assert resp.status_code == 200
    assert (await _balance(async_client, employee))["leaves_taken"] == 0


async def test_second_review_rejected_without_double_charge(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await make_team(manager, employee)
    await set_allocation(employee, 20)
    leave = await _apply(async_client, employee, "2025-03-03", "2025-03-05")
    await _review(async_client, manager, leave["id"], "approved")

    resp = await _review(async_client, manager, leave["id"], "approved")
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "message": "Leave request has already been approved",
        "error": "InvalidStateError",
    }
    assert (await _balance(async_client, employee))["leaves_taken"] == 3


async def test_review_outside_team_forbidden(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
) -> None:
    leave = await _apply(async_client, employee)
    resp = await _review(async_client, manager, leave["id"], "approved")
    assert resp.status_code == 403
    assert resp.json()["message"] == "This employee is not in your team"


async def test_removal_from_team_revokes_review(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
) -> None:
    team_id = await make_team(manager, employee)
    leave = await _apply(async_client, employee)

    resp = await async_client.delete(f"/teams/{team_id}/members/{employee.id}", headers=manager.headers)
    assert resp.status_code == 200

    resp = await _review(async_client, manager, leave["id"], "approved")
    assert resp.status_code == 403

    team = (await async_client.get("/leaves/team", headers=manager.headers)).json()
    assert team["count"] == 0


async def test_review_unknown_leave(async_client: AsyncClient, manager: Actor) -> None:
    resp = await _review(async_client, manager, "00000000-0000-0000-0000-000000000000", "approved")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Leave request not found"


async def test_review_invalid_decision(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
) -> None:
    await make_team(manager, employee)
    leave = await _apply(async_client, employee)
    resp = await _review(async_client, manager, leave["id"], "withdrawn")
    assert resp.status_code == 400
    assert resp.json()["error"] == "ValidationError"


async def test_team_leaves_scoped_to_members(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_actor: Callable[..., Awaitable[Actor]],
    make_team: Callable[..., Awaitable[str]],
) -> None:
    outsider = await make_actor(Role.EMPLOYEE)
    await make_team(manager, employee)
    mine = await _apply(async_client, employee)
    await _apply(async_client, outsider)

    team = (await async_client.get("/leaves/team", headers=manager.headers)).json()
    assert [leave["id"] for leave in team["leaves"]] == [mine["id"]]

    # Filtering by a non-member never widens the result set.
    narrowed = (
        await async_client.get("/leaves/team", params={"employee_id": str(outsider.id)}, headers=manager.headers)
    ).json()
    assert narrowed["count"] == 0


async def test_member_of_two_teams_listed_once(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
) -> None:
    await make_team(manager, employee)
    await make_team(manager, employee)
    await _apply(async_client, employee)

    team = (await async_client.get("/leaves/team", headers=manager.headers)).json()
    assert team["count"] == 1


# ---------------------------------------------------------------------------
# Escalation and admin override
# ---------------------------------------------------------------------------


async def test_rejection_escalates_and_override_approves(
    async_client: AsyncClient,
    admin: Actor,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await make_team(manager, employee)
    await set_allocation(employee, 20)
    leave = await _apply(async_client, employee, "2025-03-03", "2025-03-05")

    resp = await _review(async_client, manager, leave["id"], "rejected", "Busy sprint")
    assert resp.status_code == 200
    rejected = resp.json()["leave"]
    assert rejected["status"] == "rejected"
    assert rejected["escalated_to_admin"] is True
    assert rejected["admin_override"] == "none"

    open_cases = (
        await async_client.get("/leaves/escalated", params={"resolved": "false"}, headers=admin.headers)
    ).json()
    assert [c["id"] for c in open_cases["leaves"]] == [leave["id"]]

    resp = await async_client.put(
        f"/leaves/{leave['id']}/override",
        json={"decision": "approved", "note": "Pre-booked travel"},
        headers=admin.headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Rejection overridden, leave approved"
    assert body["leave"]["status"] == "approved"
    assert body["leave"]["admin_override"] == "approved"
    assert body["leave"]["admin_reviewer"]["id"] == str(admin.id)
    # The manager's decision stays on record.
    assert body["leave"]["manager_note"] == "Busy sprint"

    assert (await _balance(async_client, employee))["leaves_taken"] == 3

    resolved = (await async_client.get("/leaves/escalated", params={"resolved": "true"}, headers=admin.headers)).json()
    assert resolved["count"] == 1
    still_open = (
        await async_client.get("/leaves/escalated", params={"resolved": "false"}, headers=admin.headers)
    ).json()
    assert still_open["count"] == 0

    resp = await async_client.get("/audit-log", params={"entity_id": leave["id"]}, headers=admin.headers)
    logs = resp.json()["entries"]
    assert {log["action"] for log in logs} == {AuditAction.SUBMIT, AuditAction.ESCALATE, AuditAction.OVERRIDE}


async def test_override_upholds_rejection(
    async_client: AsyncClient,
    admin: Actor,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await make_team(manager, employee)
    await set_allocation(employee, 20)
    leave = await _apply(async_client, employee)
    await _review(async_client, manager, leave["id"], "rejected")

    resp = await async_client.put(
        f"/leaves/{leave['id']}/override", json={"decision": "upheld"}, headers=admin.headers
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Rejection upheld"
    assert resp.json()["leave"]["status"] == "rejected"
    assert resp.json()["leave"]["admin_override"] == "upheld"
    assert (await _balance(async_client, employee))["leaves_taken"] == 0


async def test_override_applies_once(
    async_client: AsyncClient,
    admin: Actor,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
    set_allocation: Callable[..., Awaitable[dict]],
) -> None:
    await make_team(manager, employee)
    await set_allocation(employee, 20)
    leave = await _apply(async_client, employee, "2025-03-03", "2025-03-04")
    await _review(async_client, manager, leave["id"], "rejected")
    await async_client.put(f"/leaves/{leave['id']}/override", json={"decision": "approved"}, headers=admin.headers)

    resp = await async_client.put(
        f"/leaves/{leave['id']}/override", json={"decision": "approved"}, headers=admin.headers
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "InvalidStateError"
    assert (await _balance(async_client, employee))["leaves_taken"] == 2


async def test_override_requires_escalation(
    async_client: AsyncClient,
    admin: Actor,
    employee: Actor,
) -> None:
    leave = await _apply(async_client, employee)
    resp = await async_client.put(
        f"/leaves/{leave['id']}/override", json={"decision": "approved"}, headers=admin.headers
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "This leave request has not been escalated"


async def test_override_requires_admin(
    async_client: AsyncClient,
    manager: Actor,
    employee: Actor,
    make_team: Callable[..., Awaitable[str]],
) -> None:
    await make_team(manager, employee)
    leave = await _apply(async_client, employee)
    await _review(async_client, manager, leave["id"], "rejected")

    resp = await async_client.put(
        f"/leaves/{leave['id']}/override", json={"decision": "approved"}, headers=manager.headers
    )
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Manager leave, decided by an admin
# ---------------------------------------------------------------------------


async def test_admin_reviews_manager_leave(
    async_client: AsyncClient,
    admin: Actor,
    manager: Actor,
) -> None:
    leave = await _apply(async_client, manager, "2025-06-02", "2025-06-03")

    queue = (await async_client.get("/leaves/manager-requests", headers=admin.headers)).json()
    assert [c["id"] for c in queue["leaves"]] == [leave["id"]]

    resp = await async_client.put(
        f"/leaves/{leave['id']}/admin-review",
        json={"status": "rejected", "note": "Quarter close"},
        headers=admin.headers,
    )
    assert resp.status_code == 200
    body = resp.json()["leave"]
    assert body["status"] == "rejected"
    assert body["escalated_to_admin"] is False
    assert body["admin_note"] == "Quarter close"

    escalated = (await async_client.get("/leaves/escalated", headers=admin.headers)).json()
    assert escalated["count"] == 0


async def test_admin_review_of_manager_leave_charges_allocation(
    async_client: AsyncClient,
    admin: Actor,
    manager: Actor,
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    # Allocations are created for employees through the API; seed a manager quota directly.
    async with session_factory() as session:
        session.add(LeaveAllocation(employee_id=manager.id, total_leaves=10))
        await session.commit()

    leave = await _apply(async_client, manager, "2025-06-02", "2025-06-03")
    resp = await async_client.put(
        f"/leaves/{leave['id']}/admin-review", json={"status": "approved"}, headers=admin.headers
    )
    assert resp.status_code == 200
    assert (await _balance(async_client, manager))["leaves_taken"] == 2


async def test_admin_review_rejects_employee_leave(
    async_client: AsyncClient,
    admin: Actor,
    employee: Actor,
) -> None:
    leave = await _apply(async_client, employee)
    resp = await async_client.put(
        f"/leaves/{leave['id']}/admin-review", json={"status": "approved"}, headers=admin.headers
    )
    assert resp.status_code == 403
    assert resp.json()["message"] == "Admins review manager leave requests only"


async def test_manager_cannot_review_own_leave(
    async_client: AsyncClient,
    manager: Actor,
) -> None:
    leave = await _apply(async_client, manager)
    resp = await _review(async_client, manager, leave["id"], "approved")
    assert resp.status_code == 403
