"""
Proxy caching package.

Implements stale-while-revalidate on top of a key-value cache with
per-entry TTLs: every resource is stored twice, under a short-lived
fresh key and a long-lived stale key, and refreshed in the background
whenever only the stale copy remains.
"""

from .adapter import BackendError, CacheAdapter, FetchOutcome, Hit, Miss
from .background import BackgroundTaskRunner
from .backend import CacheBackend, RedisCacheBackend
from .engine import FetchResult, StaleWhileRevalidateEngine
from .keys import ResourceKey, fresh_key, stale_key

__all__ = [
    "BackendError",
    "BackgroundTaskRunner",
    "CacheAdapter",
    "CacheBackend",
    "FetchOutcome",
    "FetchResult",
    "Hit",
    "Miss",
    "RedisCacheBackend",
    "ResourceKey",
    "StaleWhileRevalidateEngine",
    "fresh_key",
    "stale_key",
]
