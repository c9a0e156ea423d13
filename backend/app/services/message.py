# ruff: noqa: TC003
from __future__ import annotations

import enum
import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import and_, func, or_, select, update
from sqlmodel import col

from app.exceptions import AuthorizationError, NotFoundError
from app.models.enums import Role
from app.models.message import Message
from app.models.user import User
from app.schemas.message import (
    ContactListEnvelope,
    ConversationListEnvelope,
    ConversationSummary,
    MessageListEnvelope,
    MessageResponse,
)
from app.services.team import is_managed, managed_employee_ids
from app.services.user import build_user_summary, get_user, load_user_summaries

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.schemas.common import UserSummary
    from app.services.presence import PresenceHub

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


class MessagingRule(enum.StrEnum):
    ALLOWED = "allowed"
    TEAM_CHECK = "team_check"


MESSAGING_POLICY: dict[tuple[Role, Role], MessagingRule] = {
    (Role.EMPLOYEE, Role.MANAGER): MessagingRule.ALLOWED,
    (Role.MANAGER, Role.EMPLOYEE): MessagingRule.TEAM_CHECK,
    (Role.MANAGER, Role.ADMIN): MessagingRule.ALLOWED,
    (Role.ADMIN, Role.MANAGER): MessagingRule.ALLOWED,
}

_DENIED_MESSAGES = {
    Role.EMPLOYEE: "Employees can only message managers",
    Role.MANAGER: "Managers can only message employees in their teams or admins",
    Role.ADMIN: "Admins can only message managers",
}


def messaging_rule(sender_role: Role, receiver_role: Role) -> MessagingRule | None:
    """Look up the rule for a sender/receiver role pair. None means denied."""
    return MESSAGING_POLICY.get((sender_role, receiver_role))


async def ensure_can_message(session: AsyncSession, sender: AuthContext, receiver: User) -> None:
    rule = messaging_rule(sender.role, Role(receiver.role))
    if rule is None:
        raise AuthorizationError(_DENIED_MESSAGES[sender.role])
    if rule == MessagingRule.TEAM_CHECK and not await is_managed(session, sender.user_id, receiver.id):
        raise AuthorizationError("You can only message employees in your teams")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_message_response(message: Message, users: dict[uuid.UUID, UserSummary]) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        sender_id=message.sender_id,
        receiver_id=message.receiver_id,
        sender=users.get(message.sender_id),
        receiver=users.get(message.receiver_id),
        content=message.content,
        read=message.read,
        created_at=message.created_at,
    )


async def _build_message_responses(session: AsyncSession, messages: list[Message]) -> list[MessageResponse]:
    users = await load_user_summaries(session, [uid for m in messages for uid in (m.sender_id, m.receiver_id)])
    return [_build_message_response(m, users) for m in messages]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def send_message(
    session: AsyncSession,
    auth: AuthContext,
    receiver_id: uuid.UUID,
    content: str,
) -> MessageResponse:
    """Persist a direct message after checking the messaging policy."""
    receiver = await get_user(session, receiver_id)
    if receiver is None:
        raise NotFoundError("Receiver not found")
    await ensure_can_message(session, auth, receiver)

    message = Message(sender_id=auth.user_id, receiver_id=receiver.id, content=content.strip())
    session.add(message)
    await session.commit()
    await session.refresh(message)
    (response,) = await _build_message_responses(session, [message])
    return response


async def push_new_message(session: AsyncSession, hub: PresenceHub, message: MessageResponse) -> None:
    """Deliver a stored message and the receiver's new unread count to any open connections."""
    if not hub.is_online(message.receiver_id):
        return
    await hub.send_to_user(message.receiver_id, "receive_message", message.model_dump(mode="json"))
    await hub.send_to_user(
        message.receiver_id, "unread_count", {"count": await count_unread(session, message.receiver_id)}
    )


async def mark_read(session: AsyncSession, reader_id: uuid.UUID, sender_id: uuid.UUID) -> int:
    """Mark every unread message from ``sender_id`` to ``reader_id`` as read."""
    result = await session.execute(
        update(Message)
        .where(
            col(Message.sender_id) == sender_id,
            col(Message.receiver_id) == reader_id,
            col(Message.read).is_(False),
        )
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return result.rowcount  # type: ignore[attr-defined]


async def get_conversation(session: AsyncSession, auth: AuthContext, other_id: uuid.UUID) -> MessageListEnvelope:
    """Both directions of a conversation, oldest first. The other side's messages become read."""
    result = await session.execute(
        select(Message)
        .where(
            or_(
                and_(col(Message.sender_id) == auth.user_id, col(Message.receiver_id) == other_id),
                and_(col(Message.sender_id) == other_id, col(Message.receiver_id) == auth.user_id),
            )
        )
        .order_by(col(Message.created_at))
    )
    messages = list(result.scalars().all())
    await mark_read(session, auth.user_id, other_id)
    return MessageListEnvelope(messages=await _build_message_responses(session, messages))


async def list_conversations(session: AsyncSession, auth: AuthContext) -> ConversationListEnvelope:
    """One entry per counterpart with the latest message and the unread count, newest first."""
    result = await session.execute(
        select(Message)
        .where(or_(col(Message.sender_id) == auth.user_id, col(Message.receiver_id) == auth.user_id))
        .order_by(col(Message.created_at).desc())
    )
    latest: dict[uuid.UUID, Message] = {}
    for message in result.scalars().all():
        other_id = message.receiver_id if message.sender_id == auth.user_id else message.sender_id
        latest.setdefault(other_id, message)

    unread_rows = await session.execute(
        select(col(Message.sender_id), func.count())
        .where(col(Message.receiver_id) == auth.user_id, col(Message.read).is_(False))
        .group_by(col(Message.sender_id))
    )
    unread = dict(unread_rows.all())

    users = await load_user_summaries(session, [*latest, auth.user_id])
    conversations = [
        ConversationSummary(
            user=users[other_id],
            last_message=_build_message_response(message, users),
            unread_count=unread.get(other_id, 0),
        )
        for other_id, message in latest.items()
        if other_id in users
    ]
    return ConversationListEnvelope(conversations=conversations)


async def list_contacts(session: AsyncSession, auth: AuthContext) -> ContactListEnvelope:
    """Everyone the caller is allowed to message under the policy table."""
    contacts: list[User] = []
    for (sender_role, receiver_role), rule in MESSAGING_POLICY.items():
        if sender_role != auth.role:
            continue
        query = select(User).where(col(User.role) == receiver_role.value).order_by(col(User.name))
        if rule == MessagingRule.TEAM_CHECK:
            member_ids = await managed_employee_ids(session, auth.user_id)
            if not member_ids:
                continue
            query = query.where(col(User.id).in_(member_ids))
        contacts.extend((await session.execute(query)).scalars().all())
    return ContactListEnvelope(contacts=[build_user_summary(u) for u in contacts])


async def count_unread(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Message)
        .where(col(Message.receiver_id) == user_id, col(Message.read).is_(False))
    )
    return result.scalar_one()
