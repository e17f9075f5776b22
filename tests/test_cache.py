"""Tests for CacheStore and FailSafeCache."""

import logging
import threading

import pytest

from tennis.services.cache import CacheBackend, CacheStore, FailSafeCache, create_cache


def test_set_and_get(store_cache):
    store_cache.set("k1", [1, 2, 3], ttl=60)
    assert store_cache.get("k1") == [1, 2, 3]


def test_get_missing_key_returns_none(store_cache):
    assert store_cache.get("nonexistent") is None


def test_expiry(store_cache, clock):
    store_cache.set("k1", "value", ttl=1)

    clock.advance(0.5)
    assert store_cache.get("k1") == "value"

    clock.advance(0.6)
    assert store_cache.get("k1") is None
    # Lazy expiry removed the entry on read
    assert len(store_cache) == 0


def test_entry_expires_exactly_at_ttl(store_cache, clock):
    store_cache.set("k1", "value", ttl=10)
    clock.advance(10)
    assert store_cache.get("k1") is None


def test_delete(store_cache):
    store_cache.set("k1", "val", ttl=60)
    store_cache.delete("k1")
    assert store_cache.get("k1") is None


def test_delete_nonexistent_key(store_cache):
    store_cache.delete("nope")  # Should not raise


def test_clear(store_cache):
    store_cache.set("a", 1, ttl=60)
    store_cache.set("b", 2, ttl=60)
    assert store_cache.clear() == 2
    assert store_cache.get("a") is None
    assert store_cache.get("b") is None


def test_overwrite(store_cache, clock):
    store_cache.set("k1", "old", ttl=5)
    clock.advance(4)
    store_cache.set("k1", "new", ttl=5)
    clock.advance(4)
    # Overwrite restamps created_at
    assert store_cache.get("k1") == "new"


def test_capacity_bound_keeps_newest(clock):
    cache = CacheStore(max_entries=1000, clock=clock)
    for i in range(1001):
        cache.set(f"k{i}", i, ttl=3600)
        clock.advance(0.001)

    assert len(cache) == 1000
    assert cache.get("k0") is None
    assert cache.get("k1") == 1
    assert cache.get("k1000") == 1000
    assert cache.stats().evictions == 1


def test_eviction_drops_expired_before_oldest(clock):
    cache = CacheStore(max_entries=3, clock=clock)
    cache.set("oldest", "a", ttl=60)
    clock.advance(1)
    cache.set("short", "b", ttl=1)
    clock.advance(1)
    cache.set("middle", "c", ttl=60)
    clock.advance(1)
    cache.set("newest", "d", ttl=60)

    assert len(cache) == 3
    assert cache.get("short") is None
    assert cache.get("oldest") == "a"
    assert cache.get("newest") == "d"


def test_eviction_with_identical_timestamps_drops_first_inserted(clock):
    cache = CacheStore(max_entries=2, clock=clock)
    cache.set("a", 1, ttl=60)
    cache.set("b", 2, ttl=60)
    cache.set("c", 3, ttl=60)
    assert cache.keys() == ["b", "c"]


def test_invalid_capacity():
    with pytest.raises(ValueError):
        CacheStore(max_entries=0)


def test_invalidate_pattern_is_literal_substring(store_cache):
    store_cache.set("player_stats:playerId:42", "a", ttl=60)
    store_cache.set("player_stats:playerId:43", "b", ttl=60)
    store_cache.set("head_to_head:player1Id:42|player2Id:50", "c", ttl=60)

    removed = store_cache.invalidate_pattern("player_stats:playerId:42")

    assert removed == 1
    assert store_cache.get("player_stats:playerId:42") is None
    assert store_cache.get("player_stats:playerId:43") == "b"
    assert store_cache.get("head_to_head:player1Id:42|player2Id:50") == "c"


def test_invalidate_pattern_does_not_treat_pattern_as_regex(store_cache):
    store_cache.set("matches:days:7|tour:atp", 1, ttl=60)
    assert store_cache.invalidate_pattern("matches:.*") == 0
    assert store_cache.invalidate_pattern("|tour:atp") == 1


def test_stats_count_hits_and_misses(store_cache, clock):
    store_cache.set("k", 1, ttl=1)
    store_cache.get("k")
    store_cache.get("missing")
    clock.advance(2)
    store_cache.get("k")

    stats = store_cache.stats()
    assert stats.hits == 1
    assert stats.misses == 2
    assert stats.expirations == 1
    assert stats.size == 0


def test_concurrent_misses_last_write_wins(store_cache):
    # Two callers both miss, compute, and write back in turn.
    assert store_cache.get("prediction:x") is None
    assert store_cache.get("prediction:x") is None
    store_cache.set("prediction:x", "V1", ttl=60)
    store_cache.set("prediction:x", "V2", ttl=60)
    assert store_cache.get("prediction:x") == "V2"


def test_concurrent_access_stays_consistent():
    cache = CacheStore(max_entries=50)
    errors: list[Exception] = []

    def worker(n: int) -> None:
        try:
            for i in range(500):
                key = f"player_stats:playerId:{(n * 7 + i) % 80}"
                cache.set(key, (n, i), ttl=60)
                cache.get(key)
                if i % 50 == 0:
                    cache.invalidate_pattern("playerId:1")
                if i % 30 == 0:
                    cache.delete(key)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(cache) <= 50
    for key in cache.keys():
        value = cache.get(key)
        assert value is None or isinstance(value, tuple)


class BrokenBackend(CacheBackend):
    def get(self, key):
        raise ConnectionError("backend down")

    def set(self, key, value, ttl):
        raise ConnectionError("backend down")

    def delete(self, key):
        raise ConnectionError("backend down")

    def invalidate_pattern(self, pattern):
        raise ConnectionError("backend down")


def test_failsafe_treats_backend_errors_as_miss(caplog):
    cache = FailSafeCache(BrokenBackend())
    with caplog.at_level(logging.DEBUG, logger="tennis.services.cache"):
        cache.set("k", 1, ttl=60)
        assert cache.get("k") is None
        cache.delete("k")
        assert cache.invalidate_pattern("k") == 0
    assert all(r.levelno <= logging.DEBUG for r in caplog.records)
    assert cache.stats() is None


def test_failsafe_passes_through(store_cache):
    cache = FailSafeCache(store_cache)
    cache.set("k", "v", ttl=60)
    assert cache.get("k") == "v"
    assert cache.stats().size == 1


def test_create_cache_falls_back_to_memory_with_url():
    cache = create_cache("redis://localhost:6379/0", max_entries=10)
    assert isinstance(cache.backend, CacheStore)
    assert cache.backend.max_entries == 10
    cache.set("k", "v", ttl=60)
    assert cache.get("k") == "v"


def test_create_cache_without_url():
    cache = create_cache()
    assert isinstance(cache.backend, CacheStore)
