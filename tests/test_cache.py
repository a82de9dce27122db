"""Tests for the response cache and the hidden-SKU registry."""
from __future__ import annotations

import json
from unittest.mock import MagicMock

import redis

from catalog_search.cache import InMemoryCache, RedisCache, create_cache
from catalog_search.config import Settings
from catalog_search.visibility import HiddenSkuRegistry, load_hidden_skus


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_in_memory_cache_expires_with_clock():
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)
    cache.set("k", {"v": 1}, ttl=10)
    assert cache.get("k") == {"v": 1}
    clock.now += 10
    assert cache.get("k") is None


def test_in_memory_cache_sweeps_expired_entries_on_set():
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)
    for idx in range(1000):
        cache.set(f"search:{idx}", {"v": idx}, ttl=1)
    assert len(cache) == 1000
    clock.now += 1
    cache.set("search:fresh", {"v": "fresh"}, ttl=1)
    assert len(cache) == 1
    assert cache.get("search:fresh") == {"v": "fresh"}


def test_in_memory_cache_invalidate():
    cache = InMemoryCache()
    cache.set("a", {"v": 1}, ttl=60)
    cache.invalidate()
    assert cache.get("a") is None


def test_redis_cache_round_trip_and_errors():
    client = MagicMock()
    client.get.return_value = json.dumps({"v": 2}).encode()
    cache = RedisCache(client)
    assert cache.get("search:x") == {"v": 2}

    cache.set("search:x", {"v": 3}, 30)
    client.setex.assert_called_once_with("search:x", 30, json.dumps({"v": 3}))

    client.get.side_effect = redis.ConnectionError("down")
    assert cache.get("search:x") is None


def test_redis_cache_invalidate_deletes_prefixed_keys():
    client = MagicMock()
    client.scan_iter.return_value = iter([b"search:1", b"search:2"])
    RedisCache(client).invalidate()
    client.scan_iter.assert_called_once_with(match="search:*")
    client.delete.assert_called_once_with(b"search:1", b"search:2")


def test_create_cache_falls_back_to_memory(monkeypatch):
    def broken_redis(*args, **kwargs):
        client = MagicMock()
        client.ping.side_effect = redis.ConnectionError("refused")
        return client

    monkeypatch.setattr("catalog_search.cache.redis.Redis", broken_redis)
    assert isinstance(create_cache(Settings()), InMemoryCache)


def test_hidden_registry_reloads_after_ttl_and_invalidate():
    clock = FakeClock()
    loads = []

    def loader():
        loads.append(clock.now)
        return frozenset({f"SKU-{len(loads)}"})

    registry = HiddenSkuRegistry(loader, ttl_seconds=60, clock=clock)
    assert registry.get() == {"SKU-1"}
    clock.now += 30
    assert registry.get() == {"SKU-1"}
    clock.now += 30
    assert registry.get() == {"SKU-2"}
    registry.invalidate()
    assert registry.get() == {"SKU-3"}


def test_load_hidden_skus_formats(tmp_path):
    listing = tmp_path / "hidden.json"
    listing.write_text(json.dumps(["A-1", " B-2 ", ""]), encoding="utf-8")
    assert load_hidden_skus(listing) == {"A-1", "B-2"}

    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"skus": ["C-3"]}), encoding="utf-8")
    assert load_hidden_skus(wrapped) == {"C-3"}

    lines = tmp_path / "hidden.txt"
    lines.write_text("D-4\n\nE-5\n", encoding="utf-8")
    assert load_hidden_skus(lines) == {"D-4", "E-5"}

    assert load_hidden_skus(tmp_path / "missing.json") == frozenset()


def test_registry_from_empty_path_hides_nothing():
    assert HiddenSkuRegistry.from_path("").get() == frozenset()


def test_registry_survives_malformed_file_on_first_load(tmp_path):
    broken = tmp_path / "hidden.json"
    broken.write_text('["A-1", ', encoding="utf-8")
    registry = HiddenSkuRegistry.from_path(str(broken))
    assert registry.get() == frozenset()


def test_registry_keeps_last_good_list_when_reload_fails():
    clock = FakeClock()
    results = [frozenset({"SKU-1"}), ValueError("bad json"), frozenset({"SKU-3"})]
    calls = []

    def loader():
        calls.append(clock.now)
        result = results[len(calls) - 1]
        if isinstance(result, Exception):
            raise result
        return result

    registry = HiddenSkuRegistry(loader, ttl_seconds=60, clock=clock)
    assert registry.get() == {"SKU-1"}
    clock.now += 60
    assert registry.get() == {"SKU-1"}
    # the failed attempt still waits a full ttl before retrying
    clock.now += 30
    assert registry.get() == {"SKU-1"}
    assert len(calls) == 2
    clock.now += 30
    assert registry.get() == {"SKU-3"}
