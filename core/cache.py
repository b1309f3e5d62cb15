"""
Cache-first access to upstream JSON.
Raw payloads live only in the cache; every read hands out a fresh copy.
"""
import asyncio
import json
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from core.logger import setup_logger

logger = setup_logger(__name__)

CACHE_KEY_DELIMITER = "-"

_MISSING = object()


class CacheRouter:
    """Builds cache keys of the form ``{entity}-{chainId}-{params...}``."""

    @staticmethod
    def _component(value: Any) -> str:
        if value is None:
            text = "none"
        elif isinstance(value, bool):
            text = "true" if value else "false"
        else:
            text = str(value)
            if text.startswith("0x"):
                text = text.lower()
        # Escape the delimiter so differing components never collide
        return text.replace("%", "%25").replace(CACHE_KEY_DELIMITER, "%2D")

    @classmethod
    def key(cls, entity: str, chain_id: str, *params: Any) -> str:
        parts = [entity, chain_id, *params]
        return CACHE_KEY_DELIMITER.join(cls._component(p) for p in parts)

    @classmethod
    def balances_key(cls, chain_id: str, safe_address: str, trusted: bool, exclude_spam: bool) -> str:
        return cls.key("balances", chain_id, safe_address, trusted, exclude_spam)

    @classmethod
    def backbone_key(cls, chain_id: str) -> str:
        return cls.key("backbone", chain_id)

    @classmethod
    def safe_key(cls, chain_id: str, safe_address: str) -> str:
        return cls.key("safe", chain_id, safe_address)

    @classmethod
    def token_key(cls, chain_id: str, token_address: str) -> str:
        return cls.key("token", chain_id, token_address)

    @classmethod
    def swap_order_key(cls, chain_id: str, order_uid: str) -> str:
        return cls.key("swap_order", chain_id, order_uid)


def create_redis_client(redis_url: str) -> redis.Redis:
    """Client for ``redis_url``; no connection is opened until the first command."""
    return redis.from_url(redis_url, decode_responses=True)


class RedisCacheService:
    """
    Key/value store over Redis with per-entry expiry.

    Values are kept as JSON text so that no caller ever holds a reference
    to the stored object. An unreachable Redis degrades to cache misses.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    async def get(self, key: str, default: Any = None) -> Any:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Unreadable cache entry {key}: {e}")
            return default

    async def set(self, key: str, value: Any, expire_seconds: float) -> None:
        ttl = int(expire_seconds)
        if ttl <= 0:
            return
        try:
            await self.client.setex(key, ttl, json.dumps(value))
        except RedisError as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self.client.delete(key))
        except RedisError as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
            return False


class CacheFirstDataSource:
    """
    Resolves a value by cache key, populating the cache from upstream on a miss.

    Concurrent misses for the same key share one upstream request. A waiter
    that gets cancelled does not cancel the shared request.
    """

    def __init__(self, cache: RedisCacheService, network, default_expire_seconds: float):
        """
        Initialize data source.

        Args:
            cache: Cache service
            network: Object exposing ``async get(url, params)``
            default_expire_seconds: TTL used when a call does not specify one
        """
        self.cache = cache
        self.network = network
        self.default_expire_seconds = default_expire_seconds
        self._in_flight: Dict[str, asyncio.Task] = {}

    async def get(
        self,
        cache_key: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        expire_seconds: Optional[float] = None,
    ) -> Any:
        """
        Get a JSON value, from cache when possible.

        Args:
            cache_key: Key fully determined by the logical request
            url: Upstream URL
            params: Query parameters
            expire_seconds: TTL for the stored value

        Returns:
            Parsed JSON value owned by the caller

        Raises:
            FetchError: If the upstream request fails
        """
        cached = await self.cache.get(cache_key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f"Cache hit: {cache_key}")
            return cached

        task = self._in_flight.get(cache_key)
        if task is None:
            logger.debug(f"Cache miss: {cache_key}")
            ttl = self.default_expire_seconds if expire_seconds is None else expire_seconds
            task = asyncio.ensure_future(self._fetch_and_store(cache_key, url, params, ttl))
            self._in_flight[cache_key] = task
            task.add_done_callback(lambda t, key=cache_key: self._release(key, t))
        else:
            logger.debug(f"Joining in-flight request: {cache_key}")

        value = await asyncio.shield(task)
        # Waiters share the task result, each gets its own copy
        return json.loads(json.dumps(value))

    async def invalidate(self, cache_key: str) -> bool:
        removed = await self.cache.delete(cache_key)
        if removed:
            logger.debug(f"Invalidated: {cache_key}")
        return removed

    async def _fetch_and_store(
        self,
        cache_key: str,
        url: str,
        params: Optional[Dict[str, Any]],
        expire_seconds: float,
    ) -> Any:
        value = await self.network.get(url, params=params)
        await self.cache.set(cache_key, value, expire_seconds)
        return value

    def _release(self, cache_key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(cache_key) is task:
            del self._in_flight[cache_key]
        # Mark the exception retrieved when every waiter went away
        if not task.cancelled():
            task.exception()
