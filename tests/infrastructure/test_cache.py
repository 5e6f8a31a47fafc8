"""Tests for the in-process TTL cache."""

from horeca.infrastructure.cache import TTLCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestTTLCache:
    """Tests for TTLCache."""

    def test_get_returns_fresh_value(self) -> None:
        """Values are served until they expire."""
        clock = FakeClock()
        cache: TTLCache[int] = TTLCache(ttl_seconds=10, clock=clock)
        cache.set("a", 1)
        clock.now = 9.9
        assert cache.get("a") == 1

    def test_expired_entry_dropped(self) -> None:
        """Expired entries read as missing and are removed."""
        clock = FakeClock()
        cache: TTLCache[int] = TTLCache(ttl_seconds=10, clock=clock)
        cache.set("a", 1)
        clock.now = 10
        assert cache.get("a") is None
        assert len(cache) == 0

    def test_invalidate_one_or_all(self) -> None:
        """Invalidation reports how many entries were removed."""
        cache: TTLCache[int] = TTLCache(ttl_seconds=10)
        cache.set("a", 1)
        cache.set("b", 2)
        assert cache.invalidate("a") == 1
        assert cache.invalidate("missing") == 0
        assert cache.invalidate() == 1
        assert cache.get("b") is None

    def test_empty_cache_is_falsy_but_usable(self) -> None:
        """An empty cache has length zero."""
        cache: TTLCache[int] = TTLCache(ttl_seconds=10)
        assert len(cache) == 0
        assert not cache
