# ABOUTME: Unit tests for the in-process TTL cache.
# ABOUTME: Drives expiry with a fake clock instead of sleeping.

from bookshelf.metadata.cache import DEFAULT_TTL_SECONDS, TTLCache


class FakeClock:
    """A settable monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestTTLCache:
    """Tests for TTLCache."""

    def test_default_ttl_is_fifteen_minutes(self) -> None:
        """The default TTL is 15 minutes."""
        assert DEFAULT_TTL_SECONDS == 900
        assert TTLCache().ttl == 900

    def test_get_returns_live_entry(self) -> None:
        """A value is returned while younger than the TTL."""
        clock = FakeClock()
        cache: TTLCache[str] = TTLCache(60, clock=clock)
        cache.set("k", "v")
        clock.now += 59
        assert cache.get("k") == "v"
        assert "k" in cache

    def test_expired_entry_is_never_returned(self) -> None:
        """Once past the TTL, get returns None and evicts the entry."""
        clock = FakeClock()
        cache: TTLCache[str] = TTLCache(60, clock=clock)
        cache.set("k", "v")
        clock.now += 61
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_pop_removes_and_ignores_expired(self) -> None:
        """pop removes the entry; an expired one comes back as None."""
        clock = FakeClock()
        cache: TTLCache[int] = TTLCache(10, clock=clock)
        cache.set("fresh", 1)
        cache.set("stale", 2)
        assert cache.pop("fresh") == 1
        assert cache.pop("fresh") is None
        clock.now += 11
        assert cache.pop("stale") is None
        assert len(cache) == 0

    def test_sweep_counts_removed_entries(self) -> None:
        """sweep drops only expired entries and reports how many."""
        clock = FakeClock()
        cache: TTLCache[int] = TTLCache(10, clock=clock)
        cache.set("old", 1)
        clock.now += 8
        cache.set("new", 2)
        clock.now += 5
        assert cache.sweep() == 1
        assert cache.get("new") == 2

    def test_set_overwrites_and_refreshes(self) -> None:
        """Setting a key again replaces its value and restarts its TTL."""
        clock = FakeClock()
        cache: TTLCache[str] = TTLCache(10, clock=clock)
        cache.set("k", "a")
        clock.now += 8
        cache.set("k", "b")
        clock.now += 8
        assert cache.get("k") == "b"

    def test_clear(self) -> None:
        """clear empties the cache."""
        cache: TTLCache[str] = TTLCache()
        cache.set("a", "1")
        cache.clear()
        assert len(cache) == 0
