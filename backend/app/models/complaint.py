# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from app.models.enums import ComplaintStatus


class Complaint(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A grievance raised by an employee and reviewed by a team manager."""

    __tablename__ = "complaint"
    __table_args__ = (sa.Index("ix_complaint_employee_status", "employee_id", "status"),)

    employee_id: uuid.UUID = Field(index=True)
    subject: str = Field(max_length=100)
    description: str = Field(max_length=1000)
    category: str = Field(max_length=20)
    status: str = Field(default=ComplaintStatus.PENDING, max_length=20, index=True)
    manager_note: str = Field(default="", max_length=500)
    reviewed_by: uuid.UUID | None = None
    reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
