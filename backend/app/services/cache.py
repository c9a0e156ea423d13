from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from typing import Any, Protocol, runtime_checkable

from app.config import get_settings


@runtime_checkable
class OverviewCache(Protocol):
    """Interface for the dashboard overview caches."""

    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or None if absent or expired."""
        ...

    def set(self, key: Hashable, value: Any) -> None:
        """Store a value for the configured TTL."""
        ...

    def clear(self) -> None: ...


class TTLCache:
    """In-process cache whose entries expire ``ttl_seconds`` after being set.

    The clock is injectable so expiry can be driven deterministically.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def clear(self) -> None:
        self._entries.clear()


class NullCache:
    """Cache that never stores anything."""

    def get(self, key: Hashable) -> Any | None:
        return None

    def set(self, key: Hashable, value: Any) -> None:
        return None

    def clear(self) -> None:
        return None


class OverviewCaches:
    """The manager (per manager ID) and admin (single key) overview caches."""

    def __init__(self, manager: OverviewCache, admin: OverviewCache) -> None:
        self.manager = manager
        self.admin = admin


def _default_caches() -> OverviewCaches:
    settings = get_settings()
    return OverviewCaches(
        manager=TTLCache(settings.manager_overview_ttl_seconds),
        admin=TTLCache(settings.admin_overview_ttl_seconds),
    )


_overview_caches: OverviewCaches | None = None


def get_overview_caches() -> OverviewCaches:
    """FastAPI dependency for the overview caches."""
    global _overview_caches
    if _overview_caches is None:
        _overview_caches = _default_caches()
    return _overview_caches
