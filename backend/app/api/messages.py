# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from app.api.deps import AuthDep, PresenceDep
from app.db import SessionDep
from app.schemas.message import (
    ContactListEnvelope,
    ConversationListEnvelope,
    MessageEnvelope,
    MessageListEnvelope,
    SendMessagePayload,
    UnreadCountEnvelope,
)
from app.services import message as message_service

messages_router = APIRouter(prefix="/messages", tags=["messages"])


@messages_router.post("", response_model=MessageEnvelope, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: SendMessagePayload,
    session: SessionDep,
    auth: AuthDep,
    hub: PresenceDep,
) -> MessageEnvelope:
    """Send a direct message. An online receiver gets it pushed immediately."""
    message = await message_service.send_message(session, auth, payload.receiver_id, payload.content)
    await message_service.push_new_message(session, hub, message)
    return MessageEnvelope(data=message)


@messages_router.get("/conversations", response_model=ConversationListEnvelope)
async def list_conversations(session: SessionDep, auth: AuthDep) -> ConversationListEnvelope:
    return await message_service.list_conversations(session, auth)


@messages_router.get("/contacts", response_model=ContactListEnvelope)
async def list_contacts(session: SessionDep, auth: AuthDep) -> ContactListEnvelope:
    """Users the caller is allowed to message."""
    return await message_service.list_contacts(session, auth)


@messages_router.get("/unread-count", response_model=UnreadCountEnvelope)
async def unread_count(session: SessionDep, auth: AuthDep) -> UnreadCountEnvelope:
    return UnreadCountEnvelope(count=await message_service.count_unread(session, auth.user_id))


@messages_router.get("/conversation/{user_id}", response_model=MessageListEnvelope)
async def get_conversation(user_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> MessageListEnvelope:
    return await message_service.get_conversation(session, auth, user_id)
