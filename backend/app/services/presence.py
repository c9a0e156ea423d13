# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from starlette.websockets import WebSocketDisconnect

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = logging.getLogger(__name__)


class PresenceHub:
    """Tracks open websocket connections per user and pushes events to them.

    A user may hold several connections (tabs, devices) and is online while at
    least one is open. Delivery is best-effort: a failed send drops that
    connection and is not retried.
    """

    def __init__(self) -> None:
        self._connections: dict[uuid.UUID, set[WebSocket]] = {}

    def connect(self, user_id: uuid.UUID, websocket: WebSocket) -> bool:
        """Register a connection. Returns True if the user just came online."""
        sockets = self._connections.setdefault(user_id, set())
        came_online = not sockets
        sockets.add(websocket)
        return came_online

    def disconnect(self, user_id: uuid.UUID, websocket: WebSocket) -> bool:
        """Forget a connection. Returns True if the user just went offline."""
        sockets = self._connections.get(user_id)
        if sockets is None:
            return False
        sockets.discard(websocket)
        if sockets:
            return False
        del self._connections[user_id]
        return True

    def is_online(self, user_id: uuid.UUID) -> bool:
        return user_id in self._connections

    def online_user_ids(self) -> list[uuid.UUID]:
        return list(self._connections)

    async def send_to_user(self, user_id: uuid.UUID, event: str, data: Any) -> int:
        """Push an event to every connection of a user. Returns how many received it."""
        delivered = 0
        for websocket in list(self._connections.get(user_id, ())):
            try:
                await websocket.send_json({"event": event, "data": data})
            except (WebSocketDisconnect, RuntimeError):
                logger.debug("Dropping dead connection for %s", user_id)
                self.disconnect(user_id, websocket)
            else:
                delivered += 1
        return delivered

    async def broadcast(self, event: str, data: Any, exclude: uuid.UUID | None = None) -> None:
        for user_id in self.online_user_ids():
            if user_id != exclude:
                await self.send_to_user(user_id, event, data)


_presence_hub = PresenceHub()


def get_presence_hub() -> PresenceHub:
    """FastAPI dependency for the presence hub."""
    return _presence_hub
