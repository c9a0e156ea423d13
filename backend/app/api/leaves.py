# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import AdminDep, ManagerDep, StaffDep
from app.db import SessionDep
from app.models.enums import LeaveStatus
from app.schemas.leave import (
    ApplyLeavePayload,
    LeaveBalanceEnvelope,
    LeaveEnvelope,
    LeaveListEnvelope,
    LeaveOverridePayload,
    LeaveReviewPayload,
)
from app.services import leave as leave_service

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


# ---------------------------------------------------------------------------
# Applicant (employee or manager)
# ---------------------------------------------------------------------------


@leaves_router.post("", response_model=LeaveEnvelope, status_code=status.HTTP_201_CREATED)
async def apply_leave(payload: ApplyLeavePayload, session: SessionDep, auth: StaffDep) -> LeaveEnvelope:
    """Apply for leave. Checked against the remaining allocation, if one exists."""
    return await leave_service.apply_leave(session, auth, payload)


@leaves_router.get("/my", response_model=LeaveListEnvelope)
async def my_leaves(
    session: SessionDep,
    auth: StaffDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
) -> LeaveListEnvelope:
    return await leave_service.list_my_leaves(session, auth, status_filter)


@leaves_router.get("/balance", response_model=LeaveBalanceEnvelope)
async def my_balance(session: SessionDep, auth: StaffDep) -> LeaveBalanceEnvelope:
    return await leave_service.get_my_balance(session, auth)


@leaves_router.put("/{leave_id}/withdraw", response_model=LeaveEnvelope)
async def withdraw_leave(leave_id: uuid.UUID, session: SessionDep, auth: StaffDep) -> LeaveEnvelope:
    return await leave_service.withdraw_leave(session, auth, leave_id)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


@leaves_router.get("/team", response_model=LeaveListEnvelope)
async def team_leaves(
    session: SessionDep,
    auth: ManagerDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    employee_id: uuid.UUID | None = Query(default=None),
) -> LeaveListEnvelope:
    """Leave cases of members of the caller's teams."""
    return await leave_service.list_team_leaves(session, auth, status_filter, employee_id)


@leaves_router.put("/{leave_id}/review", response_model=LeaveEnvelope)
async def review_leave(
    leave_id: uuid.UUID,
    payload: LeaveReviewPayload,
    session: SessionDep,
    auth: ManagerDep,
) -> LeaveEnvelope:
    return await leave_service.review_leave(session, auth, leave_id, payload)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@leaves_router.get("/manager-requests", response_model=LeaveListEnvelope)
async def manager_requests(
    session: SessionDep,
    _auth: AdminDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
) -> LeaveListEnvelope:
    """Leave cases applied for by managers."""
    return await leave_service.list_manager_leaves(session, status_filter)


@leaves_router.put("/{leave_id}/admin-review", response_model=LeaveEnvelope)
async def admin_review_leave(
    leave_id: uuid.UUID,
    payload: LeaveReviewPayload,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveEnvelope:
    return await leave_service.admin_review_leave(session, auth, leave_id, payload)


@leaves_router.get("/escalated", response_model=LeaveListEnvelope)
async def escalated_leaves(
    session: SessionDep,
    _auth: AdminDep,
    resolved: bool | None = Query(default=None),
) -> LeaveListEnvelope:
    """Rejections escalated for admin override. ``resolved`` splits open from decided ones."""
    return await leave_service.list_escalated_leaves(session, resolved)


@leaves_router.put("/{leave_id}/override", response_model=LeaveEnvelope)
async def override_leave(
    leave_id: uuid.UUID,
    payload: LeaveOverridePayload,
    session: SessionDep,
    auth: AdminDep,
) -> LeaveEnvelope:
    return await leave_service.override_leave(session, auth, leave_id, payload)
