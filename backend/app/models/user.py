# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UpdatedAtMixin, UUIDBase
from app.models.enums import Role


class User(UUIDBase, TimestampMixin, UpdatedAtMixin, table=True):
    """An account holder: admin, manager or employee."""

    __tablename__ = "app_user"
    __table_args__ = (sa.Index("ix_user_role", "role"),)

    name: str = Field(max_length=50)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str | None = Field(default=None, max_length=255)
    role: str = Field(default=Role.EMPLOYEE, max_length=20)
    avatar: str = Field(default="", max_length=1024)
    designation: str = Field(default="", max_length=100)
    # Direct manager assignment used by the "my team" roster. Case review
    # authorization goes through team membership instead.
    manager_id: uuid.UUID | None = Field(default=None, index=True)
