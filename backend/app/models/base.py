from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


def timestamp_field(*, index: bool = False, refresh_on_update: bool = False) -> Any:
    """A timezone-aware timestamp column defaulting to now on both the app and server side."""
    column_kwargs: dict[str, Any] = {"server_default": sa.func.now()}
    if refresh_on_update:
        column_kwargs["onupdate"] = utcnow
    return Field(
        default_factory=utcnow,
        index=index,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs=column_kwargs,
    )


class UUIDBase(SQLModel):
    """Base model with a UUID v4 primary key."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, sa_type=sa.Uuid)


class TimestampMixin(SQLModel):
    """Adds ``created_at``."""

    created_at: datetime = timestamp_field()


class UpdatedAtMixin(SQLModel):
    """Adds ``updated_at``, refreshed on every UPDATE issued through the ORM or ``sa.update``."""

    updated_at: datetime = timestamp_field(refresh_on_update=True)
