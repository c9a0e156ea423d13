# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UUIDBase


class Message(UUIDBase, TimestampMixin, table=True):
    """A direct message between two users. Persisted before any live delivery."""

    __tablename__ = "message"
    __table_args__ = (
        sa.Index("ix_message_pair", "sender_id", "receiver_id"),
        sa.Index("ix_message_receiver_read", "receiver_id", "read"),
    )

    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    content: str = Field(max_length=1000)
    read: bool = Field(default=False)
