"""
Tests for the in-memory TTL cache
"""
import asyncio

import pytest

from listhub.services.cache import TTLCache


@pytest.fixture
def cache(clock):
    return TTLCache(sweep_interval=300, clock=clock)


def test_cache_set_and_get(cache):
    """Value is returned before expiry"""
    cache.set("test_key", {"data": "test_value"}, ttl=100)

    assert cache.has("test_key") is True
    assert cache.get("test_key") == {"data": "test_value"}


def test_cache_get_nonexistent(cache):
    assert cache.get("nonexistent_key_12345") is None
    assert cache.has("nonexistent_key_12345") is False


def test_cache_expiry_is_exact(cache, clock):
    """No read returns a value at or past its expiry"""
    cache.set("ttl_key", "expires", ttl=100)

    clock.advance(99)
    assert cache.get("ttl_key") == "expires"

    clock.advance(1)
    assert cache.has("ttl_key") is False
    assert cache.get("ttl_key") is None


def test_expired_entry_is_evicted_lazily(cache, clock):
    cache.set("lazy", 1, ttl=10)
    clock.advance(11)

    assert cache.get_metrics_snapshot()["size"] == 1
    assert cache.has("lazy") is False
    assert cache.get_metrics_snapshot()["size"] == 0


@pytest.mark.parametrize("ttl", [0, -5])
def test_non_positive_ttl_is_not_stored(cache, ttl):
    cache.set("never", "value", ttl=ttl)
    assert cache.get("never") is None


def test_non_positive_ttl_drops_existing_value(cache):
    cache.set("key", "old", ttl=100)
    cache.set("key", "new", ttl=0)
    assert cache.get("key") is None


def test_delete_and_clear(cache):
    cache.set("a", 1, ttl=100)
    cache.set("b", 2, ttl=100)

    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert cache.get("b") is None


def test_sweep_removes_only_expired(cache, clock):
    cache.set("short", 1, ttl=10)
    cache.set("long", 2, ttl=1000)
    clock.advance(20)

    removed = cache.sweep()

    assert removed == 1
    assert cache.get_metrics_snapshot()["size"] == 1
    assert cache.get("long") == 2


def test_metrics_snapshot_counts_hits_and_misses(cache):
    cache.set("k", "v", ttl=100)
    cache.get("k")
    cache.get("k")
    cache.get("missing")

    metrics = cache.get_metrics_snapshot()
    assert metrics["hits"] == 2
    assert metrics["misses"] == 1
    assert metrics["sets"] == 1


@pytest.mark.asyncio
async def test_sweeper_runs_in_background(clock):
    cache = TTLCache(sweep_interval=0.01, clock=clock)
    cache.set("gone", 1, ttl=1)
    clock.advance(5)

    cache.start()
    for _ in range(50):
        await asyncio.sleep(0.01)
        if cache.get_metrics_snapshot()["sweeps"]:
            break
    await cache.stop()

    assert cache.get_metrics_snapshot()["sweeps"] >= 1
    assert cache.get_metrics_snapshot()["size"] == 0
    assert cache.task is None


@pytest.mark.asyncio
async def test_stop_without_start_is_safe(cache):
    await cache.stop()
    assert cache.running is False
