"""Simple cache abstractions."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for read-only snapshots."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def put(self, key: str, value: object, timestamp: datetime | None = None) -> None:
        """Store a value stamped with the time it was produced."""


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _CacheEntry:
    value: object
    stored_at: datetime


@dataclass
class TtlCache(Cache):
    """In-memory cache with a fixed time-to-live and an injectable clock."""

    ttl_seconds: int
    clock: Callable[[], datetime]
    _entries: dict[str, _CacheEntry]

    def __init__(
        self, ttl_seconds: int = 300, clock: Callable[[], datetime] = _utc_now
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries = {}

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.stored_at >= timedelta(seconds=self.ttl_seconds):
            self._entries.pop(key, None)
            return None
        return entry.value

    def put(self, key: str, value: object, timestamp: datetime | None = None) -> None:
        """Store a value, replacing any previous entry for the key."""
        stored_at = timestamp if timestamp is not None else self.clock()
        self._entries[key] = _CacheEntry(value=value, stored_at=stored_at)
