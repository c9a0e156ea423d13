"""Seed script for development data.

Start the API first (from backend/):  uvicorn app.main:app
Then run:  python -m app.seed

Safe to re-run: existing accounts are logged into and duplicate teams are skipped.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta

import httpx

BASE_URL = "http://localhost:8000"
DEFAULT_PASSWORD = "password123"

ADMIN = {"name": "Ada Admin", "email": "admin@example.com", "role": "admin"}

MANAGERS = [
    {"name": "Maya Patel", "email": "maya.patel@example.com", "designation": "Engineering Manager"},
    {"name": "Omar Haddad", "email": "omar.haddad@example.com", "designation": "Operations Manager"},
]

EMPLOYEES = [
    {"name": "Alice Johnson", "email": "alice.johnson@example.com", "designation": "Backend Engineer"},
    {"name": "Bob Smith", "email": "bob.smith@example.com", "designation": "Frontend Engineer"},
    {"name": "Carol Nguyen", "email": "carol.nguyen@example.com", "designation": "QA Analyst"},
    {"name": "Dave Okafor", "email": "dave.okafor@example.com", "designation": "Support Specialist"},
]

# (manager email, team name, description, member emails)
TEAMS = [
    (
        "maya.patel@example.com",
        "Platform",
        "APIs and infrastructure",
        ["alice.johnson@example.com", "bob.smith@example.com"],
    ),
    (
        "maya.patel@example.com",
        "Quality",
        "Release testing",
        ["carol.nguyen@example.com", "bob.smith@example.com"],
    ),
    ("omar.haddad@example.com", "Support", "Customer support desk", ["dave.okafor@example.com"]),
]

ALLOCATIONS = {
    "alice.johnson@example.com": 24,
    "bob.smith@example.com": 20,
    "carol.nguyen@example.com": 18,
    "dave.okafor@example.com": 20,
}


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}


def _report(resp: httpx.Response, label: str) -> dict | None:
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} (already exists)")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def _safe_post(client: httpx.AsyncClient, url: str, json: dict, token: str, label: str) -> dict | None:
    """POST with 409-conflict tolerance for idempotency."""
    return _report(await client.post(url, json=json, headers=_bearer(token)), label)


async def _safe_put(client: httpx.AsyncClient, url: str, json: dict, token: str, label: str) -> dict | None:
    return _report(await client.put(url, json=json, headers=_bearer(token)), label)


async def _login(client: httpx.AsyncClient, email: str) -> dict:
    resp = await client.post(f"{BASE_URL}/auth/login", json={"email": email, "password": DEFAULT_PASSWORD})
    if resp.status_code != 200:
        print(f"  [ERROR] Login {email}: {resp.status_code} {resp.text[:200]}")
        sys.exit(1)
    return resp.json()


async def seed_admin(client: httpx.AsyncClient) -> str:
    """Register the admin account, or log in if it already exists. Returns its token."""
    print("\n--- Seeding admin ---")
    resp = await client.post(f"{BASE_URL}/auth/register", json={**ADMIN, "password": DEFAULT_PASSWORD})
    body = _report(resp, f"Admin: {ADMIN['email']}")
    if body is None:
        body = await _login(client, ADMIN["email"])
    return body["token"]


async def seed_accounts(client: httpx.AsyncClient, admin_token: str) -> dict[str, dict]:
    """Create managers and employees through the admin endpoints.

    Returns a mapping of email to ``{"id": ..., "token": ...}``.
    """
    print("\n--- Seeding accounts ---")
    accounts: dict[str, dict] = {}
    for path, people in (("create-manager", MANAGERS), ("create-employee", EMPLOYEES)):
        for person in people:
            await _safe_post(
                client,
                f"{BASE_URL}/users/{path}",
                {**person, "password": DEFAULT_PASSWORD},
                admin_token,
                f"{path.removeprefix('create-').capitalize()}: {person['name']}",
            )
            session = await _login(client, person["email"])
            accounts[person["email"]] = {"id": session["user"]["id"], "token": session["token"]}
    return accounts


async def seed_teams(client: httpx.AsyncClient, accounts: dict[str, dict]) -> None:
    print("\n--- Seeding teams ---")
    for manager_email, name, description, members in TEAMS:
        token = accounts[manager_email]["token"]
        created = await _safe_post(
            client,
            f"{BASE_URL}/teams",
            {"name": name, "description": description},
            token,
            f"Team: {name}",
        )
        if created is None:
            continue
        team_id = created["team"]["id"]
        for email in members:
            await _safe_post(
                client,
                f"{BASE_URL}/teams/{team_id}/members",
                {"employee_id": accounts[email]["id"]},
                token,
                f"  Member: {email} -> {name}",
            )


async def seed_allocations(client: httpx.AsyncClient, admin_token: str, accounts: dict[str, dict]) -> None:
    """Upsert leave quotas for every seeded employee."""
    print("\n--- Seeding leave allocations ---")
    for email, total in ALLOCATIONS.items():
        await _safe_post(
            client,
            f"{BASE_URL}/leave-allocations",
            {"employee_id": accounts[email]["id"], "total_leaves": total},
            admin_token,
            f"Allocation: {email} = {total}d",
        )


def _next_weekday(start: date, days_ahead: int) -> date:
    candidate = start + timedelta(days=days_ahead)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


async def seed_cases(client: httpx.AsyncClient, accounts: dict[str, dict]) -> None:
    """File one of each case type and walk a few of them through review."""
    print("\n--- Seeding cases ---")
    today = date.today()
    alice = accounts["alice.johnson@example.com"]["token"]
    carol = accounts["carol.nguyen@example.com"]["token"]
    dave = accounts["dave.okafor@example.com"]["token"]
    maya = accounts["maya.patel@example.com"]["token"]

    # Alice: 3-day casual leave, stays pending
    start = _next_weekday(today, 7)
    await _safe_post(
        client,
        f"{BASE_URL}/leaves",
        {
            "leave_type": "casual",
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(days=2)).isoformat(),
            "reason": "Family trip",
        },
        alice,
        "Leave: Alice 3-day casual (pending)",
    )

    # Carol: 1-day sick leave, approved by Maya
    sick_day = _next_weekday(today, 3)
    result = await _safe_post(
        client,
        f"{BASE_URL}/leaves",
        {
            "leave_type": "sick",
            "start_date": sick_day.isoformat(),
            "end_date": sick_day.isoformat(),
            "reason": "Doctor appointment",
        },
        carol,
        "Leave: Carol 1-day sick",
    )
    if result:
        await _safe_put(
            client,
            f"{BASE_URL}/leaves/{result['leave']['id']}/review",
            {"status": "approved", "note": "Feel better!"},
            maya,
            "  Approved Carol's sick leave",
        )

    await _safe_post(
        client,
        f"{BASE_URL}/complaints",
        {
            "subject": "Broken monitor",
            "description": "Second screen flickers constantly",
            "category": "workplace",
        },
        dave,
        "Complaint: Dave broken monitor",
    )

    # Alice: travel claim forwarded by Maya to the admin queue
    result = await _safe_post(
        client,
        f"{BASE_URL}/reimbursements",
        {
            "title": "Conference travel",
            "description": "Train tickets to PyCon",
            "amount": 184.5,
            "category": "travel",
        },
        alice,
        "Reimbursement: Alice conference travel",
    )
    if result:
        await _safe_put(
            client,
            f"{BASE_URL}/reimbursements/{result['reimbursement']['id']}/manager-review",
            {"status": "manager_approved", "note": "Approved for the conference"},
            maya,
            "  Forwarded Alice's claim to admin",
        )

    await _safe_post(
        client,
        f"{BASE_URL}/messages",
        {"receiver_id": accounts["maya.patel@example.com"]["id"], "content": "Thanks for approving my trip!"},
        alice,
        "Message: Alice -> Maya",
    )


async def main() -> None:
    print("=" * 60)
    print("  Leave Desk: Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Make sure the API is running (uvicorn app.main:app)")
            sys.exit(1)

        admin_token = await seed_admin(client)
        accounts = await seed_accounts(client, admin_token)
        await seed_teams(client, accounts)
        await seed_allocations(client, admin_token, accounts)
        await seed_cases(client, accounts)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
