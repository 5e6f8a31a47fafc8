"""Small in-process TTL cache.

Holds derived aggregates (per-status enquiry counts) that may lag writes by
at most the configured TTL. Writers invalidate entries explicitly.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

import structlog

logger = structlog.get_logger()

V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[V]):
    """Key/value cache with per-entry expiry.

    Example usage:
        cache: TTLCache[dict[str, int]] = TTLCache(ttl_seconds=30)
        counts = cache.get("status-counts")
        if counts is None:
            counts = compute()
            cache.set("status-counts", counts)
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: Lifetime of each entry.
            clock: Monotonic time source, injectable for tests.
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Any, _Entry[V]] = {}

    def get(self, key: Any) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: Any, value: V) -> None:
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + self.ttl_seconds)

    def invalidate(self, key: Any | None = None) -> int:
        """Drop one entry, or every entry when key is None.

        Returns:
            Number of entries removed.
        """
        if key is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            removed = 1 if self._entries.pop(key, None) is not None else 0
        if removed:
            logger.debug("Cache invalidated", key=key, removed=removed)
        return removed

    def __len__(self) -> int:
        return len(self._entries)
