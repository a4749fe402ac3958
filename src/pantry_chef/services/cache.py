"""In-memory cache for raw recommendation payloads."""

import threading
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from pantry_chef.domain.pantry import HistoryEntry, IngredientSnapshot

CACHE_KEY_SEPARATOR = "_"


class RecommendationCache(Protocol):
    """Cache interface keyed by request fingerprint."""

    def get(self, key: str) -> str | None:
        """Return the cached payload if present and not expired."""

    def set(self, key: str, payload: str) -> None:
        """Store a raw payload under the key."""

    def size(self) -> int:
        """Return the number of stored entries."""

    def clear(self) -> None:
        """Drop every entry."""


def request_cache_key(
    ingredients: Sequence[IngredientSnapshot], history: Sequence[HistoryEntry]
) -> str:
    """Build the cache key for a request.

    The key is order-sensitive: ingredient ids in iteration order, then the
    history descriptions in order.
    """
    parts = [item.id for item in ingredients]
    parts.extend(entry.meal_description for entry in history)
    return CACHE_KEY_SEPARATOR.join(parts)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class _CacheEntry:
    payload: str
    expires_at: datetime | None


class InMemoryRecommendationCache(RecommendationCache):
    """Bounded LRU cache with optional TTL, safe for concurrent callers."""

    def __init__(
        self,
        max_entries: int = 100,
        ttl_seconds: int | None = 3600,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, _CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        """Return a cached payload if it hasn't expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at is not None and self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.payload

    def set(self, key: str, payload: str) -> None:
        """Store a payload, evicting the least recently used entry when full."""
        expires_at = None
        if self.ttl_seconds is not None:
            expires_at = self._clock() + timedelta(seconds=self.ttl_seconds)
        with self._lock:
            self._entries[key] = _CacheEntry(payload=payload, expires_at=expires_at)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
