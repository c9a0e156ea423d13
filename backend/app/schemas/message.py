# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.schemas.common import Envelope, Payload, UserSummary


class SendMessagePayload(Payload):
    receiver_id: uuid.UUID
    content: str = Field(min_length=1, max_length=1000)


class MessageResponse(BaseModel):
    id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    sender: UserSummary | None
    receiver: UserSummary | None
    content: str
    read: bool
    created_at: datetime


class ConversationSummary(BaseModel):
    """Latest message exchanged with one counterpart."""

    user: UserSummary
    last_message: MessageResponse
    unread_count: int


class MessageEnvelope(Envelope):
    data: MessageResponse


class MessageListEnvelope(Envelope):
    messages: list[MessageResponse]


class ConversationListEnvelope(Envelope):
    conversations: list[ConversationSummary]


class ContactListEnvelope(Envelope):
    contacts: list[UserSummary]


class UnreadCountEnvelope(Envelope):
    count: int


# ---------------------------------------------------------------------------
# Websocket frames
# ---------------------------------------------------------------------------


class SocketFrame(BaseModel):
    """Envelope of every websocket frame in either direction: ``{event, data}``."""

    event: str
    data: dict[str, Any] = Field(default_factory=dict)


class TypingFrame(BaseModel):
    receiver_id: uuid.UUID
    is_typing: bool = True


class MarkReadFrame(BaseModel):
    sender_id: uuid.UUID
