"""
Uniform result translation over a cache backend.
"""

from dataclasses import dataclass
from typing import Optional, Union

from shared.errors import CacheBackendError
from shared.logging import get_logger
from .backend import CacheBackend


@dataclass(frozen=True)
class Hit:
    body: bytes


@dataclass(frozen=True)
class Miss:
    pass


@dataclass(frozen=True)
class BackendError:
    """Backend failure on a read; callers treat it as a miss."""

    reason: str


FetchOutcome = Union[Hit, Miss, BackendError]


class CacheAdapter:
    """Translate backend results into ``FetchOutcome`` values and shared errors.

    Every operation makes exactly one backend call. There are no retries
    at this layer.
    """

    def __init__(self, backend: CacheBackend):
        self.backend = backend
        self.logger = get_logger("proxy.cache.adapter")

    async def get(self, key: str) -> FetchOutcome:
        try:
            value: Optional[bytes] = await self.backend.get(key)
        except Exception as exc:
            self.logger.error("Error when getting value from cache", key=key, error=str(exc))
            return BackendError(reason=str(exc))

        if value is None:
            self.logger.debug("Cache miss", key=key)
            return Miss()

        self.logger.debug("Cache hit", key=key, size=len(value))
        return Hit(body=bytes(value))

    async def set(self, key: str, body: bytes, ttl_seconds: int) -> None:
        try:
            await self.backend.set(key, body, ttl_seconds)
        except Exception as exc:
            self.logger.error("Error when setting value in cache", key=key, error=str(exc))
            raise CacheBackendError(key, f"failed to set: {exc}") from exc

        self.logger.debug("Key stored", key=key, ttl=ttl_seconds)

    async def delete(self, key: str) -> None:
        """Delete ``key``. A key that is already absent counts as success."""
        try:
            existed = await self.backend.delete(key)
        except Exception as exc:
            self.logger.error("Error when deleting value from cache", key=key, error=str(exc))
            raise CacheBackendError(key, f"failed to delete: {exc}") from exc

        self.logger.debug("Key deleted", key=key, existed=existed)
