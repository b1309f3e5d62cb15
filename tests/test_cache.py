"""
Unit tests for the cache, cache keys and the cache-first fetcher.
"""
import asyncio
import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from conftest import FakeNetworkService, FakeRedis
from core.cache import CacheFirstDataSource, CacheRouter, RedisCacheService
from core.exceptions import FetchError

URL = "https://tx.test/api/v1/about"


class UnavailableRedis:
    """Redis client whose server is down."""

    async def get(self, key):
        raise RedisConnectionError("Connection refused")

    async def setex(self, key, ttl, value):
        raise RedisConnectionError("Connection refused")

    async def delete(self, *keys):
        raise RedisConnectionError("Connection refused")


def test_cache_key_format():
    """Test keys are entity, chain and normalized params joined by '-'."""
    key = CacheRouter.balances_key("1", "0xAbCd", True, False)
    assert key == "balances-1-0xabcd-true-false"
    assert CacheRouter.backbone_key("1") == "backbone-1"
    assert CacheRouter.key("all_transactions", "1", "0x01", None, 20) == "all_transactions-1-0x01-none-20"


def test_cache_key_escapes_delimiter():
    """Test components containing the delimiter cannot collide."""
    assert CacheRouter.key("entity", "1", "a-b") != CacheRouter.key("entity", "1", "a", "b")
    assert CacheRouter.key("entity", "1", "a%2Db") != CacheRouter.key("entity", "1", "a-b")


def test_cache_stores_json_with_ttl():
    """Test values are written as JSON text with their TTL."""
    client = FakeRedis()
    cache = RedisCacheService(client)

    asyncio.run(cache.set("key", {"items": [1, 2]}, 60))

    assert json.loads(client.store["key"]) == {"items": [1, 2]}
    assert client.ttls["key"] == 60


def test_cache_returns_fresh_copies():
    """Test mutating a read value does not affect the stored one."""
    cache = RedisCacheService(FakeRedis())
    asyncio.run(cache.set("key", {"items": [1, 2]}, 60))

    first = asyncio.run(cache.get("key"))
    first["items"].append(3)

    assert asyncio.run(cache.get("key")) == {"items": [1, 2]}


def test_cache_zero_ttl_is_not_stored():
    """Test a TTL of zero disables caching."""
    client = FakeRedis()
    asyncio.run(RedisCacheService(client).set("key", "value", 0))
    assert client.store == {}


def test_cache_unreadable_entry_is_a_miss():
    """Test an entry that is not valid JSON reads as the default."""
    client = FakeRedis()
    client.store["key"] = "{not json"

    assert asyncio.run(RedisCacheService(client).get("key", "default")) == "default"


def test_cache_delete():
    """Test delete reports whether an entry was removed."""
    client = FakeRedis()
    cache = RedisCacheService(client)
    asyncio.run(cache.set("key", "value", 60))

    assert asyncio.run(cache.delete("key")) is True
    assert asyncio.run(cache.delete("key")) is False
    assert "key" not in client.store


def test_data_source_falls_back_to_upstream_when_redis_is_down():
    """Test an unreachable cache degrades to upstream reads."""
    network = FakeNetworkService({URL: {"name": "Mainnet"}})
    data_source = CacheFirstDataSource(RedisCacheService(UnavailableRedis()), network, default_expire_seconds=60)

    assert asyncio.run(data_source.get("backbone-1", URL)) == {"name": "Mainnet"}
    assert network.calls_to(URL) == 1


def test_data_source_hit_makes_no_network_call():
    """Test a cached value is served without touching upstream."""
    network = FakeNetworkService({URL: {"name": "fresh"}})
    cache = RedisCacheService(FakeRedis())
    asyncio.run(cache.set("backbone-1", {"name": "cached"}, 60))
    data_source = CacheFirstDataSource(cache, network, default_expire_seconds=60)

    value = asyncio.run(data_source.get("backbone-1", URL))

    assert value == {"name": "cached"}
    assert network.calls == []


def test_data_source_stores_with_default_ttl():
    """Test a fetched value is cached under its key with the default TTL."""
    network = FakeNetworkService({URL: {"name": "Mainnet"}})
    client = FakeRedis()
    data_source = CacheFirstDataSource(RedisCacheService(client), network, default_expire_seconds=45)

    asyncio.run(data_source.get("backbone-1", URL))

    assert client.ttls["backbone-1"] == 45


def test_data_source_single_flight():
    """Test concurrent misses for one key share a single upstream call."""
    network = FakeNetworkService({URL: {"name": "Mainnet"}}, delay=0.01)
    data_source = CacheFirstDataSource(RedisCacheService(FakeRedis()), network, default_expire_seconds=60)

    async def run():
        return await asyncio.gather(*(data_source.get("backbone-1", URL) for _ in range(5)))

    results = asyncio.run(run())

    assert results == [{"name": "Mainnet"}] * 5
    assert network.calls_to(URL) == 1
    # Each waiter owns its copy
    assert len({id(result) for result in results}) == 5


def test_data_source_failure_is_shared_and_not_cached():
    """Test a failed fetch reaches every waiter and leaves nothing cached."""
    network = FakeNetworkService({URL: FetchError("HTTP 503", url=URL, status_code=503)}, delay=0.01)
    client = FakeRedis()
    data_source = CacheFirstDataSource(RedisCacheService(client), network, default_expire_seconds=60)

    async def run():
        return await asyncio.gather(
            data_source.get("backbone-1", URL),
            data_source.get("backbone-1", URL),
            return_exceptions=True,
        )

    results = asyncio.run(run())

    assert all(isinstance(result, FetchError) for result in results)
    assert network.calls_to(URL) == 1
    assert "backbone-1" not in client.store


def test_data_source_cancelled_waiter_keeps_fetch_alive():
    """Test cancelling one waiter does not cancel the shared fetch."""
    network = FakeNetworkService({URL: {"name": "Mainnet"}}, delay=0.02)
    client = FakeRedis()
    data_source = CacheFirstDataSource(RedisCacheService(client), network, default_expire_seconds=60)

    async def run():
        abandoned = asyncio.ensure_future(data_source.get("backbone-1", URL))
        kept = asyncio.ensure_future(data_source.get("backbone-1", URL))
        await asyncio.sleep(0)
        abandoned.cancel()
        with pytest.raises(asyncio.CancelledError):
            await abandoned
        return await kept

    assert asyncio.run(run()) == {"name": "Mainnet"}
    assert network.calls_to(URL) == 1
    assert json.loads(client.store["backbone-1"]) == {"name": "Mainnet"}


def test_data_source_invalidate():
    """Test invalidation forces the next read upstream."""
    network = FakeNetworkService({URL: {"name": "Mainnet"}})
    data_source = CacheFirstDataSource(RedisCacheService(FakeRedis()), network, default_expire_seconds=60)

    asyncio.run(data_source.get("backbone-1", URL))
    assert asyncio.run(data_source.invalidate("backbone-1")) is True
    asyncio.run(data_source.get("backbone-1", URL))

    assert network.calls_to(URL) == 2
