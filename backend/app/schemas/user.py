# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from app.schemas.auth import EMAIL_PATTERN, NewPassword, UserResponse
from app.schemas.common import Envelope, Payload, UserSummary


class CreateUserRequest(Payload):
    """Admin request body for creating a manager or employee account."""

    name: str = Field(min_length=2, max_length=50)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: NewPassword
    designation: str = Field(default="", max_length=100)


class EmployeeRefPayload(Payload):
    """Request body naming a single employee."""

    employee_id: uuid.UUID


class UpdateProfileRequest(Payload):
    """Partial profile update; omitted fields are left untouched."""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    avatar: str | None = Field(default=None, max_length=1024)
    designation: str | None = Field(default=None, max_length=100)


class ChangePasswordRequest(Payload):
    """Password change; ``current_password`` may be omitted when none is set yet."""

    current_password: str | None = None
    new_password: NewPassword


class UserEnvelope(Envelope):
    user: UserResponse


class UserListEnvelope(Envelope):
    count: int
    users: list[UserResponse]


class AdminOverviewStats(BaseModel):
    total_users: int
    admins: int
    managers: int
    employees: int
    allocated: int
    unallocated: int


class AdminOverviewResponse(Envelope):
    """Admin dashboard aggregate."""

    stats: AdminOverviewStats
    recent_users: list[UserSummary]
    unallocated_employees: list[UserSummary]
