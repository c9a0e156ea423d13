# ruff: noqa: B008
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pydantic
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from app.api.deps import PresenceDep
from app.db import SessionDep
from app.exceptions import AppError, AuthenticationError
from app.schemas.message import MarkReadFrame, SendMessagePayload, SocketFrame, TypingFrame
from app.security import decode_access_token
from app.services import message as message_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import AuthContext
    from app.services.presence import PresenceHub

logger = logging.getLogger(__name__)

ws_router = APIRouter(tags=["realtime"])


async def _send(websocket: WebSocket, event: str, data: dict[str, Any]) -> None:
    await websocket.send_json(SocketFrame(event=event, data=data).model_dump(mode="json"))


async def _handle_frame(
    frame: SocketFrame,
    websocket: WebSocket,
    session: AsyncSession,
    auth: AuthContext,
    hub: PresenceHub,
) -> None:
    if frame.event == "send_message":
        payload = SendMessagePayload.model_validate(frame.data)
        message = await message_service.send_message(session, auth, payload.receiver_id, payload.content)
        await message_service.push_new_message(session, hub, message)
        await _send(websocket, "message_sent", message.model_dump(mode="json"))
    elif frame.event == "typing":
        typing = TypingFrame.model_validate(frame.data)
        await hub.send_to_user(
            typing.receiver_id, "user_typing", {"user_id": str(auth.user_id), "is_typing": typing.is_typing}
        )
    elif frame.event == "mark_read":
        mark = MarkReadFrame.model_validate(frame.data)
        await message_service.mark_read(session, auth.user_id, mark.sender_id)
        await _send(websocket, "unread_count", {"count": await message_service.count_unread(session, auth.user_id)})
        await hub.send_to_user(mark.sender_id, "messages_read", {"read_by": str(auth.user_id)})
    elif frame.event == "get_unread_count":
        await _send(websocket, "unread_count", {"count": await message_service.count_unread(session, auth.user_id)})
    else:
        await _send(websocket, "error", {"message": f"Unknown event: {frame.event}", "error": "ValidationError"})


@ws_router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    session: SessionDep,
    hub: PresenceDep,
    token: str = Query(default=""),
) -> None:
    """Realtime channel: presence, live message delivery, typing and read receipts.

    Frames are JSON objects ``{"event": str, "data": {...}}`` in both directions.
    """
    try:
        auth = decode_access_token(token)
    except AuthenticationError as exc:
        logger.info("Websocket rejected: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.message)
        return

    await websocket.accept()
    if hub.connect(auth.user_id, websocket):
        await hub.broadcast("user_online", {"user_id": str(auth.user_id)}, exclude=auth.user_id)
    await _send(websocket, "online_users", {"user_ids": [str(uid) for uid in hub.online_user_ids()]})
    await _send(websocket, "unread_count", {"count": await message_service.count_unread(session, auth.user_id)})
    await session.close()

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                # Malformed JSON surfaces as a validation error frame; the socket stays open.
                await _handle_frame(SocketFrame.model_validate_json(raw), websocket, session, auth, hub)
            except AppError as exc:
                await _send(websocket, "error", {"message": exc.message, "error": type(exc).__name__})
            except pydantic.ValidationError as exc:
                message = str(exc.errors()[0]["msg"])
                await _send(websocket, "error", {"message": message, "error": "ValidationError"})
            finally:
                await session.close()
    except WebSocketDisconnect:
        logger.debug("Websocket closed for %s", auth.user_id)
    finally:
        if hub.disconnect(auth.user_id, websocket):
            await hub.broadcast("user_offline", {"user_id": str(auth.user_id)})
