"""
Key-value cache backends with per-entry TTL.
"""

from typing import Optional

import redis.asyncio as redis

from shared.logging import get_logger


class CacheBackend:
    """Key-value store with per-entry TTL.

    ``get`` returns ``None`` on a miss. Implementations raise on any
    backend failure; translating those failures is the adapter's job.
    """

    async def get(self, key: str) -> Optional[bytes]:  # pragma: no cover - interface
        raise NotImplementedError

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def delete(self, key: str) -> bool:  # pragma: no cover - interface
        """Remove ``key``; returns whether it existed."""
        raise NotImplementedError

    async def ping(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:
        return None


class RedisCacheBackend(CacheBackend):
    """Redis-backed cache using SETEX for TTL expiry."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.logger = get_logger("proxy.cache.redis")
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30
            )
        return self._redis

    async def get(self, key: str) -> Optional[bytes]:
        redis_client = await self._get_redis()
        return await redis_client.get(key)

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        redis_client = await self._get_redis()
        await redis_client.setex(key, ttl_seconds, value)

    async def delete(self, key: str) -> bool:
        redis_client = await self._get_redis()
        return bool(await redis_client.delete(key))

    async def ping(self) -> bool:
        redis_client = await self._get_redis()
        return bool(await redis_client.ping())

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Redis cache connection closed")
