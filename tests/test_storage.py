import asyncio
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from redis.exceptions import ConnectionError as RedisConnectionError

from cleangod.cache import Cache, catalog_key, invalidate_catalog_cache
from cleangod.rate_limiter import check_rate_limit, rate_limit_dependency
from cleangod.retry import retry_read
from cleangod.storage import MemoryStore, RedisStore, build_storage


def test_memory_store_expiry(monkeypatch):
    store = MemoryStore()
    now = [1000.0]
    monkeypatch.setattr("cleangod.storage.time.time", lambda: now[0])

    store.set("k", "v", ttl=10)
    assert store.get("k") == "v"
    now[0] += 11
    assert store.get("k") is None


def test_set_if_absent_only_sets_once():
    store = MemoryStore()
    assert store.set_if_absent("lock", "1", 30) is True
    assert store.set_if_absent("lock", "2", 30) is False
    assert store.get("lock") == "1"

    store.delete("lock")
    assert store.set_if_absent("lock", "3", 30) is True


def test_incr_counts_and_delete_prefix():
    store = MemoryStore()
    assert [store.incr("hits", 60) for _ in range(3)] == [1, 2, 3]

    store.set("catalog:a", "1")
    store.set("catalog:b", "2")
    store.set("cart:x", "3")
    assert store.delete_prefix("catalog:") == 2
    assert store.get("cart:x") == "3"


def test_redis_store_uses_nx_and_expiry():
    client = MagicMock()
    client.set.return_value = None
    store = RedisStore(client)

    assert store.set_if_absent("lock", "1", 30) is False
    client.set.assert_called_once_with("lock", "1", nx=True, ex=30)

    store.set("draft", "{}", ttl=7200)
    client.setex.assert_called_once_with("draft", 7200, "{}")


def test_build_storage_rejects_unknown_backend():
    assert isinstance(build_storage("memory"), MemoryStore)
    with pytest.raises(ValueError):
        build_storage("etcd")


def test_cache_round_trip_and_invalidation():
    store = MemoryStore()
    cache = Cache(store)
    cache.set(catalog_key("services", "all"), [{"id": "s1"}], ttl=60)

    assert cache.get(catalog_key("services", "all")) == [{"id": "s1"}]
    assert invalidate_catalog_cache(cache) == 1
    assert cache.get(catalog_key("services", "all")) is None


def test_cache_failures_are_misses():
    broken = MagicMock()
    broken.get.side_effect = RedisConnectionError("down")
    assert Cache(broken).get("catalog:x") is None


def test_retry_read_retries_then_succeeds(monkeypatch):
    monkeypatch.setattr("cleangod.retry.time.sleep", lambda _: None)
    calls = {"n": 0}

    def flaky():
        calls["n"] += 1
        if calls["n"] < 3:
            raise RedisConnectionError("blip")
        return "ok"

    assert retry_read(flaky, "flaky read") == "ok"
    assert calls["n"] == 3


def test_retry_read_gives_up_after_max_attempts(monkeypatch):
    delays = []
    monkeypatch.setattr("cleangod.retry.time.sleep", delays.append)

    def always_down():
        raise RedisConnectionError("down")

    with pytest.raises(RedisConnectionError):
        retry_read(always_down, "down read", max_retries=3, retry_delay=0.2)
    assert delays == [0.2, 0.4]


def test_rate_limit_window():
    store = MemoryStore()
    results = [check_rate_limit(store, "coupon:1.2.3.4", 2, 600)[0] for _ in range(3)]
    assert results == [True, True, False]


def test_rate_limit_dependency_fails_closed():
    broken = MagicMock()
    broken.incr.side_effect = RedisConnectionError("down")
    request = MagicMock()
    request.headers = {}
    request.client.host = "1.2.3.4"
    request.app.state.storage = broken

    with pytest.raises(HTTPException) as exc:
        asyncio.run(rate_limit_dependency(request, limit=5, window_seconds=60))
    assert exc.value.status_code == 503
