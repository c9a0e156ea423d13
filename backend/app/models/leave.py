# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from app.models.enums import AdminOverride, LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A leave interval applied for by an employee or manager."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_employee_status", "employee_id", "status"),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_dates"),
        sa.CheckConstraint("number_of_days >= 1", name="ck_leave_days"),
    )

    employee_id: uuid.UUID = Field(index=True)
    leave_type: str = Field(max_length=20)
    start_date: date
    end_date: date
    reason: str = Field(max_length=500)
    number_of_days: int
    status: str = Field(default=LeaveStatus.PENDING, max_length=20, index=True)

    manager_note: str = Field(default="", max_length=300)
    reviewed_by: uuid.UUID | None = None
    reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]

    escalated_to_admin: bool = Field(default=False, index=True)
    admin_override: str = Field(default=AdminOverride.NONE, max_length=20)
    admin_note: str = Field(default="", max_length=300)
    admin_reviewed_by: uuid.UUID | None = None
    admin_reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
