# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase

MAX_TOTAL_LEAVES = 365


class LeaveAllocation(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """Per-employee leave quota and consumption counter.

    ``leaves_remaining`` is always derived, never stored.
    """

    __tablename__ = "leave_allocation"
    __table_args__ = (
        sa.CheckConstraint(f"total_leaves >= 0 AND total_leaves <= {MAX_TOTAL_LEAVES}", name="ck_allocation_total"),
        sa.CheckConstraint("leaves_taken >= 0", name="ck_allocation_taken"),
    )

    employee_id: uuid.UUID = Field(unique=True, index=True)
    total_leaves: int = Field(default=20)
    leaves_taken: int = Field(default=0, sa_column_kwargs={"server_default": "0"})

    @property
    def leaves_remaining(self) -> int:
        return self.total_leaves - self.leaves_taken
