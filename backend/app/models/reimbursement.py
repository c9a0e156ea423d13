# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from app.models.enums import ReimbursementStatus


class Reimbursement(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An expense claim with a role-dependent two-stage approval."""

    __tablename__ = "reimbursement"
    __table_args__ = (
        sa.Index("ix_reimbursement_applicant_status", "applicant_id", "status"),
        sa.Index("ix_reimbursement_role_status", "applicant_role", "status"),
        sa.CheckConstraint("amount >= 1", name="ck_reimbursement_amount"),
    )

    applicant_id: uuid.UUID = Field(index=True)
    applicant_role: str = Field(max_length=20)
    title: str = Field(max_length=100)
    description: str = Field(max_length=1000)
    amount: float
    category: str = Field(max_length=20)
    receipt: str = Field(default="", max_length=1024)
    status: str = Field(default=ReimbursementStatus.PENDING, max_length=20, index=True)

    manager_reviewed_by: uuid.UUID | None = None
    manager_reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    manager_note: str = Field(default="", max_length=300)

    admin_reviewed_by: uuid.UUID | None = None
    admin_reviewed_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    admin_note: str = Field(default="", max_length=300)
