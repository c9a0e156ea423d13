# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.models.enums import AdminOverride, LeaveStatus, LeaveType
from app.schemas.common import Envelope, Payload, UserSummary

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ApplyLeavePayload(Payload):
    """Request body for applying for leave. Date order is checked by the service."""

    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(min_length=1, max_length=500)


class LeaveReviewPayload(Payload):
    """Manager or admin decision on a pending leave."""

    status: Literal["approved", "rejected"]
    note: str = Field(default="", max_length=300)


class LeaveOverridePayload(Payload):
    """Admin resolution of an escalated rejection."""

    decision: Literal["approved", "upheld"]
    note: str = Field(default="", max_length=300)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """A leave case with related users expanded."""

    id: uuid.UUID
    employee_id: uuid.UUID
    employee: UserSummary | None
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str
    number_of_days: int
    status: LeaveStatus
    manager_note: str
    reviewed_by: uuid.UUID | None
    reviewer: UserSummary | None
    reviewed_at: datetime | None
    escalated_to_admin: bool
    admin_override: AdminOverride
    admin_note: str
    admin_reviewed_by: uuid.UUID | None
    admin_reviewer: UserSummary | None
    admin_reviewed_at: datetime | None
    created_at: datetime


class LeaveEnvelope(Envelope):
    leave: LeaveResponse


class LeaveListEnvelope(Envelope):
    count: int
    leaves: list[LeaveResponse]


class LeaveBalance(BaseModel):
    total_leaves: int
    leaves_taken: int
    leaves_remaining: int
    pending_requests: int


class LeaveBalanceEnvelope(Envelope):
    balance: LeaveBalance
