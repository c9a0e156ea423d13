# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase, timestamp_field


class Team(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """A manager-owned group of employees."""

    __tablename__ = "team"
    __table_args__ = (sa.UniqueConstraint("manager_id", "name", name="uq_team_manager_name"),)

    name: str = Field(max_length=50)
    description: str = Field(default="", max_length=200)
    manager_id: uuid.UUID = Field(index=True)


class TeamMember(SQLModel, table=True):
    """Membership of an employee in a team. The composite key forbids duplicates."""

    __tablename__ = "team_member"
    __table_args__ = (sa.PrimaryKeyConstraint("team_id", "employee_id"),)

    team_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("team.id", ondelete="CASCADE"), nullable=False),
    )
    employee_id: uuid.UUID = Field(index=True)
    added_at: datetime = timestamp_field()
