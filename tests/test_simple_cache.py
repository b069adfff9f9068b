"""Unit tests for the in-memory SimpleTTLCache."""

import threading

from app.utils.simple_cache import SimpleTTLCache


class FakeTime:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def time(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


def _headlines(count: int = 2) -> list[dict]:
    return [{"id": f"news-1-{i}", "title": f"Headline {i}"} for i in range(count)]


def test_set_and_get_updates_hit_miss_counters() -> None:
    cache = SimpleTTLCache(ttl_seconds=10)

    assert cache.get("missing") is None

    articles = _headlines()
    cache.set("headlines:all", articles)

    assert cache.get("headlines:all") == articles

    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_expired_entry_is_evicted() -> None:
    fake_time = FakeTime()
    cache = SimpleTTLCache(ttl_seconds=5, clock=fake_time.time)
    cache.set("key", {"data": True})

    fake_time.advance(6)

    assert cache.get("key") is None
    stats = cache.stats()
    assert stats["evictions"] == 1


def test_entry_is_served_until_ttl_elapses() -> None:
    fake_time = FakeTime()
    cache = SimpleTTLCache(ttl_seconds=300, clock=fake_time.time)
    cache.set("headlines:sports", _headlines(1))

    fake_time.advance(299)

    assert cache.get("headlines:sports") == _headlines(1)


def test_set_drops_stale_entries() -> None:
    fake_time = FakeTime()
    cache = SimpleTTLCache(ttl_seconds=5, clock=fake_time.time)
    cache.set("old", 1)

    fake_time.advance(10)
    cache.set("new", 2)

    assert cache.stats()["entries"] == 1


def test_lru_eviction_removes_least_recently_used() -> None:
    cache = SimpleTTLCache(ttl_seconds=100, max_entries=2)
    cache.set("a", {"v": 1})
    cache.set("b", {"v": 2})

    # Access "a" so that "b" becomes least recently used
    assert cache.get("a") == {"v": 1}

    cache.set("c", {"v": 3})

    assert cache.get("a") == {"v": 1}
    assert cache.get("c") == {"v": 3}
    assert cache.get("b") is None


def test_clear_resets_state() -> None:
    cache = SimpleTTLCache(ttl_seconds=10)
    cache.set("a", {"v": 1})
    cache.set("b", {"v": 2})
    cache.get("a")

    cache.clear()

    stats = cache.stats()
    assert stats["entries"] == 0
    assert stats["hits"] == 0
    assert stats["misses"] == 0
    assert stats["evictions"] == 0


def test_thread_safety_under_concurrent_sets() -> None:
    cache = SimpleTTLCache(ttl_seconds=30, max_entries=None)
    total_keys = 50

    def _writer(idx: int) -> None:
        cache.set(f"k-{idx}", {"v": idx})

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(total_keys)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.stats()["entries"] == total_keys
    # Ensure a random subset is readable
    assert cache.get("k-0") == {"v": 0}
    assert cache.get("k-25") == {"v": 25}
    assert cache.get("k-49") == {"v": 49}
