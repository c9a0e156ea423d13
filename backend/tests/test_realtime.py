"""Tests for presence tracking, websocket frame handling and the overview caches."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.api.ws import _handle_frame
from app.db import get_session
from app.exceptions import AuthorizationError
from app.main import app
from app.models.enums import Role
from app.models.user import User
from app.schemas.auth import AuthContext
from app.schemas.message import SocketFrame
from app.security import create_access_token
from app.services import message as message_service
from app.services.cache import NullCache, OverviewCache, OverviewCaches, TTLCache
from app.services.overview import get_admin_overview
from app.services.presence import PresenceHub, get_presence_hub

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import async_sessionmaker

    from conftest import Actor


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.frames: list[dict[str, Any]] = []
        self.broken = broken

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.broken:
            raise RuntimeError("connection closed")
        self.frames.append(data)

    def events(self) -> list[str]:
        return [frame["event"] for frame in self.frames]


def _auth(actor: Actor) -> AuthContext:
    return AuthContext(user_id=actor.id, email=actor.user.email, role=Role(actor.user.role))


# ---------------------------------------------------------------------------
# Presence hub
# ---------------------------------------------------------------------------


def test_presence_tracks_multiple_connections() -> None:
    hub = PresenceHub()
    user_id = uuid.uuid4()
    first, second = FakeWebSocket(), FakeWebSocket()

    assert hub.connect(user_id, first) is True  # type: ignore[arg-type]
    assert hub.connect(user_id, second) is False  # type: ignore[arg-type]
    assert hub.is_online(user_id)

    assert hub.disconnect(user_id, first) is False  # type: ignore[arg-type]
    assert hub.is_online(user_id)
    assert hub.disconnect(user_id, second) is True  # type: ignore[arg-type]
    assert not hub.is_online(user_id)
    assert hub.disconnect(user_id, second) is False  # type: ignore[arg-type]


async def test_send_to_user_reaches_every_connection() -> None:
    hub = PresenceHub()
    user_id = uuid.uuid4()
    sockets = [FakeWebSocket(), FakeWebSocket()]
    for socket in sockets:
        hub.connect(user_id, socket)  # type: ignore[arg-type]

    delivered = await hub.send_to_user(user_id, "unread_count", {"count": 3})
    assert delivered == 2
    for socket in sockets:
        assert socket.frames == [{"event": "unread_count", "data": {"count": 3}}]

    assert await hub.send_to_user(uuid.uuid4(), "unread_count", {"count": 0}) == 0


async def test_dead_connection_is_dropped() -> None:
    hub = PresenceHub()
    user_id = uuid.uuid4()
    hub.connect(user_id, FakeWebSocket(broken=True))  # type: ignore[arg-type]

    assert await hub.send_to_user(user_id, "ping", {}) == 0
    assert not hub.is_online(user_id)


async def test_broadcast_skips_excluded_user() -> None:
    hub = PresenceHub()
    alice, bob = uuid.uuid4(), uuid.uuid4()
    alice_socket, bob_socket = FakeWebSocket(), FakeWebSocket()
    hub.connect(alice, alice_socket)  # type: ignore[arg-type]
    hub.connect(bob, bob_socket)  # type: ignore[arg-type]

    await hub.broadcast("user_online", {"user_id": str(alice)}, exclude=alice)
    assert alice_socket.frames == []
    assert bob_socket.events() == ["user_online"]


# ---------------------------------------------------------------------------
# Websocket frames
# ---------------------------------------------------------------------------


async def test_frame_send_message_delivers_and_acknowledges(
    session_factory: async_sessionmaker[AsyncSession],
    manager: Actor,
    employee: Actor,
) -> None:
    hub = PresenceHub()
    sender_socket, receiver_socket = FakeWebSocket(), FakeWebSocket()
    hub.connect(employee.id, sender_socket)  # type: ignore[arg-type]
    hub.connect(manager.id, receiver_socket)  # type: ignore[arg-type]

    frame = SocketFrame(event="send_message", data={"receiver_id": str(manager.id), "content": "Quick question"})
    async with session_factory() as session:
        await _handle_frame(frame, sender_socket, session, _auth(employee), hub)  # type: ignore[arg-type]

    assert sender_socket.events() == ["message_sent"]
    assert sender_socket.frames[0]["data"]["content"] == "Quick question"
    assert receiver_socket.events() == ["receive_message", "unread_count"]
    assert receiver_socket.frames[1]["data"] == {"count": 1}


async def test_frame_send_message_applies_policy(
    session_factory: async_sessionmaker[AsyncSession],
    manager: Actor,
    employee: Actor,
) -> None:
    hub = PresenceHub()
    socket = FakeWebSocket()
    frame = SocketFrame(event="send_message", data={"receiver_id": str(employee.id), "content": "Hi"})
    async with session_factory() as session:
        with pytest.raises(AuthorizationError):
            await _handle_frame(frame, socket, session, _auth(manager), hub)  # type: ignore[arg-type]
    assert socket.frames == []


async def test_frame_typing_forwarded_to_receiver(manager: Actor, employee: Actor) -> None:
    hub = PresenceHub()
    receiver_socket = FakeWebSocket()
    hub.connect(manager.id, receiver_socket)  # type: ignore[arg-type]

    frame = SocketFrame(event="typing", data={"receiver_id": str(manager.id), "is_typing": True})
    await _handle_frame(frame, FakeWebSocket(), AsyncMock(), _auth(employee), hub)  # type: ignore[arg-type]

    assert receiver_socket.frames == [
        {"event": "user_typing", "data": {"user_id": str(employee.id), "is_typing": True}}
    ]


async def test_frame_mark_read_notifies_sender(
    async_client: AsyncClient,
    session_factory: async_sessionmaker[AsyncSession],
    manager: Actor,
    employee: Actor,
) -> None:
    await async_client.post(
        "/messages", json={"receiver_id": str(manager.id), "content": "Hello"}, headers=employee.headers
    )
    hub = PresenceHub()
    reader_socket, sender_socket = FakeWebSocket(), FakeWebSocket()
    hub.connect(employee.id, sender_socket)  # type: ignore[arg-type]

    frame = SocketFrame(event="mark_read", data={"sender_id": str(employee.id)})
    async with session_factory() as session:
        await _handle_frame(frame, reader_socket, session, _auth(manager), hub)  # type: ignore[arg-type]

    assert reader_socket.frames == [{"event": "unread_count", "data": {"count": 0}}]
    assert sender_socket.frames == [{"event": "messages_read", "data": {"read_by": str(manager.id)}}]


async def test_frame_unknown_event(employee: Actor) -> None:
    socket = FakeWebSocket()
    await _handle_frame(
        SocketFrame(event="dance"), socket, AsyncMock(), _auth(employee), PresenceHub()  # type: ignore[arg-type]
    )
    assert socket.frames == [
        {"event": "error", "data": {"message": "Unknown event: dance", "error": "ValidationError"}}
    ]


def test_websocket_rejects_invalid_token() -> None:
    async def _unused_session() -> AsyncIterator[AsyncSession]:
        yield AsyncMock(spec=AsyncSession)

    app.dependency_overrides[get_session] = _unused_session
    try:
        client = TestClient(app)
        with pytest.raises(WebSocketDisconnect) as exc_info, client.websocket_connect("/ws?token=not-a-jwt"):
            pass
        assert exc_info.value.code == 1008
    finally:
        app.dependency_overrides.clear()


def test_websocket_survives_malformed_frames(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _mock_session() -> AsyncIterator[AsyncSession]:
        yield AsyncMock(spec=AsyncSession)

    hub = PresenceHub()
    monkeypatch.setattr(message_service, "count_unread", AsyncMock(return_value=2))
    app.dependency_overrides[get_session] = _mock_session
    app.dependency_overrides[get_presence_hub] = lambda: hub
    user = User(name="Eli Employee", email="eli@example.com", role=Role.EMPLOYEE.value)
    try:
        client = TestClient(app)
        with client.websocket_connect(f"/ws?token={create_access_token(user)}") as websocket:
            assert websocket.receive_json()["event"] == "online_users"
            assert websocket.receive_json()["event"] == "unread_count"

            for raw in ("not json", "[1, 2]", '{"data": {}}'):
                websocket.send_text(raw)
                frame = websocket.receive_json()
                assert frame["event"] == "error"
                assert frame["data"]["error"] == "ValidationError"

            websocket.send_json({"event": "get_unread_count"})
            assert websocket.receive_json() == {"event": "unread_count", "data": {"count": 2}}
    finally:
        app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Overview caches
# ---------------------------------------------------------------------------


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_ttl_cache_expires_entries() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=15, clock=clock)
    cache.set("admin", {"total": 3})

    clock.now = 14.9
    assert cache.get("admin") == {"total": 3}
    clock.now = 15.0
    assert cache.get("admin") is None


def test_ttl_cache_keys_are_independent() -> None:
    clock = FakeClock()
    cache = TTLCache(ttl_seconds=10, clock=clock)
    first, second = uuid.uuid4(), uuid.uuid4()
    cache.set(first, "a")
    clock.now = 5
    cache.set(second, "b")

    clock.now = 12
    assert cache.get(first) is None
    assert cache.get(second) == "b"

    cache.clear()
    assert cache.get(second) is None


def test_null_cache_never_stores() -> None:
    cache = NullCache()
    cache.set("admin", 1)
    assert cache.get("admin") is None
    assert isinstance(cache, OverviewCache)
    assert isinstance(TTLCache(1), OverviewCache)


async def test_admin_overview_served_from_cache(
    session_factory: async_sessionmaker[AsyncSession],
    make_actor: Callable[..., Awaitable[Actor]],
) -> None:
    caches = OverviewCaches(manager=NullCache(), admin=TTLCache(ttl_seconds=60))
    await make_actor(Role.EMPLOYEE)

    async with session_factory() as session:
        first = await get_admin_overview(session, caches)
    await make_actor(Role.EMPLOYEE)
    async with session_factory() as session:
        cached = await get_admin_overview(session, caches)
    assert cached.stats.employees == first.stats.employees == 1

    caches.admin.clear()
    async with session_factory() as session:
        fresh = await get_admin_overview(session, caches)
    assert fresh.stats.employees == 2
