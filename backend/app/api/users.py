# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from app.api.deps import AdminDep, AdminOrManagerDep, AuthDep, CachesDep, ManagerDep
from app.db import SessionDep
from app.models.enums import Role
from app.schemas.common import Envelope
from app.schemas.user import (
    AdminOverviewResponse,
    ChangePasswordRequest,
    CreateUserRequest,
    EmployeeRefPayload,
    UpdateProfileRequest,
    UserEnvelope,
    UserListEnvelope,
)
from app.services import overview as overview_service
from app.services import user as user_service

users_router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@users_router.post("/create-manager", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_manager(payload: CreateUserRequest, session: SessionDep, auth: AdminDep) -> UserEnvelope:
    return await user_service.admin_create_user(session, auth, payload, Role.MANAGER)


@users_router.post("/create-employee", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_employee(payload: CreateUserRequest, session: SessionDep, auth: AdminDep) -> UserEnvelope:
    return await user_service.admin_create_user(session, auth, payload, Role.EMPLOYEE)


@users_router.get("/managers", response_model=UserListEnvelope)
async def list_managers(session: SessionDep, _auth: AdminDep) -> UserListEnvelope:
    return await user_service.list_users(session, Role.MANAGER)


@users_router.get("/employees", response_model=UserListEnvelope)
async def list_employees(session: SessionDep, _auth: AdminOrManagerDep) -> UserListEnvelope:
    return await user_service.list_users(session, Role.EMPLOYEE)


@users_router.get("/all", response_model=UserListEnvelope)
async def list_all_users(session: SessionDep, _auth: AdminDep) -> UserListEnvelope:
    return await user_service.list_users(session)


@users_router.get("/admin-overview", response_model=AdminOverviewResponse)
async def admin_overview(session: SessionDep, caches: CachesDep, _auth: AdminDep) -> AdminOverviewResponse:
    """Admin dashboard counts. Served from a short-lived cache."""
    return await overview_service.get_admin_overview(session, caches)


# ---------------------------------------------------------------------------
# Manager roster
# ---------------------------------------------------------------------------


@users_router.get("/unassigned-employees", response_model=UserListEnvelope)
async def list_unassigned_employees(session: SessionDep, _auth: ManagerDep) -> UserListEnvelope:
    return await user_service.list_unassigned_employees(session)


@users_router.post("/assign-employee", response_model=UserEnvelope)
async def assign_employee(payload: EmployeeRefPayload, session: SessionDep, auth: ManagerDep) -> UserEnvelope:
    return await user_service.assign_employee(session, auth, payload.employee_id)


@users_router.get("/my-team", response_model=UserListEnvelope)
async def my_team(session: SessionDep, auth: ManagerDep) -> UserListEnvelope:
    """Employees directly assigned to the caller."""
    return await user_service.list_my_roster(session, auth)


@users_router.post("/remove-employee", response_model=UserEnvelope)
async def remove_employee(payload: EmployeeRefPayload, session: SessionDep, auth: ManagerDep) -> UserEnvelope:
    return await user_service.unassign_employee(session, auth, payload.employee_id)


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------


@users_router.put("/profile", response_model=UserEnvelope)
async def update_profile(payload: UpdateProfileRequest, session: SessionDep, auth: AuthDep) -> UserEnvelope:
    return await user_service.update_profile(session, auth, payload)


@users_router.post("/change-password", response_model=Envelope)
async def change_password(payload: ChangePasswordRequest, session: SessionDep, auth: AuthDep) -> Envelope:
    message = await user_service.change_password(session, auth, payload)
    return Envelope(message=message)


@users_router.delete("/{user_id}", response_model=Envelope)
async def delete_user(user_id: uuid.UUID, session: SessionDep, auth: AdminDep) -> Envelope:
    """Delete an account (admin only, never your own)."""
    await user_service.delete_user(session, auth, user_id)
    return Envelope(message="User deleted successfully")
