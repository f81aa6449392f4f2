"""
Stale-while-revalidate engine.

Read path: fresh entry, then stale entry (served while a detached
populate refreshes both), then a blocking origin fetch whose body is
returned at once and populated in the background.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from shared.errors import CacheBackendError, OriginFetchError
from shared.logging import get_logger
from .adapter import BackendError, CacheAdapter, FetchOutcome, Hit
from .background import BackgroundTaskRunner
from .keys import ResourceKey

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.origin_client import OriginClient, OriginResponse
    from shared.metrics import MetricsCollector


DEFAULT_FRESH_TTL = 60
DEFAULT_STALE_TTL = 60 * 60


class TtlClass(str, Enum):
    FRESH = "fresh"
    STALE = "stale"


class Source(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    ORIGIN = "origin"


@dataclass(frozen=True)
class CacheEntry:
    """Snapshot written by a populate; a refresh writes a new pair."""

    key: ResourceKey
    body: bytes
    ttl_class: TtlClass


@dataclass(frozen=True)
class FetchResult:
    body: bytes
    source: Source
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


class StaleWhileRevalidateEngine:
    """Caching policy for a single origin."""

    def __init__(
        self,
        adapter: CacheAdapter,
        origin_client: "OriginClient",
        tasks: BackgroundTaskRunner,
        *,
        fresh_ttl: int = DEFAULT_FRESH_TTL,
        stale_ttl: int = DEFAULT_STALE_TTL,
        metrics: Optional["MetricsCollector"] = None,
    ):
        if fresh_ttl <= 0 or stale_ttl <= fresh_ttl:
            raise ValueError(
                f"stale_ttl ({stale_ttl}) must exceed fresh_ttl ({fresh_ttl}) and both must be positive"
            )
        self.adapter = adapter
        self.origin_client = origin_client
        self.tasks = tasks
        self.fresh_ttl = fresh_ttl
        self.stale_ttl = stale_ttl
        self.metrics = metrics
        self.logger = get_logger("proxy.engine")

    async def fetch(self, origin_url: str) -> FetchResult:
        """Serve ``origin_url`` from the freshest available source.

        Raises OriginFetchError only on a true miss whose origin fetch fails.
        """
        key = ResourceKey(origin_url)

        outcome = await self._lookup(key.fresh, TtlClass.FRESH)
        if isinstance(outcome, Hit):
            self.logger.info("Serving fresh entry", origin_url=origin_url)
            return FetchResult(body=outcome.body, source=Source.FRESH)

        outcome = await self._lookup(key.stale, TtlClass.STALE)
        if isinstance(outcome, Hit):
            self.logger.info("Fresh entry expired, serving stale entry", origin_url=origin_url)
            self._schedule_populate(origin_url)
            return FetchResult(body=outcome.body, source=Source.STALE)

        self.logger.info("True miss, fetching from origin", origin_url=origin_url)
        response = await self._fetch_origin(origin_url)
        if response.ok:
            self._schedule_populate(origin_url, response.body)
        else:
            self.logger.warning(
                "Origin returned non-success status; not caching",
                origin_url=origin_url,
                status_code=response.status_code,
            )
        return FetchResult(
            body=response.body,
            source=Source.ORIGIN,
            status_code=response.status_code,
            headers=response.passthrough_headers(),
        )

    async def populate(self, origin_url: str, body: Optional[bytes] = None) -> bool:
        """Write the stale entry then the fresh entry for ``origin_url``.

        Runs detached from any client, so failures are logged and reported
        through the return value only. When ``body`` is omitted it is
        fetched from the origin first.
        """
        key = ResourceKey(origin_url)

        if body is None:
            try:
                response = await self._fetch_origin(origin_url)
            except OriginFetchError as exc:
                self.logger.error("Populate aborted: origin fetch failed", origin_url=origin_url, error=exc.message)
                return False
            if not response.ok:
                self.logger.error(
                    "Populate aborted: origin returned non-success status",
                    origin_url=origin_url,
                    status_code=response.status_code,
                )
                return False
            body = response.body

        entries = (
            CacheEntry(key=key, body=body, ttl_class=TtlClass.STALE),
            CacheEntry(key=key, body=body, ttl_class=TtlClass.FRESH),
        )
        for entry in entries:
            try:
                await self._write(entry)
            except CacheBackendError as exc:
                self.logger.error(
                    "Populate aborted: cache write failed",
                    origin_url=origin_url,
                    ttl_class=entry.ttl_class.value,
                    error=exc.message,
                )
                return False

        self.logger.info("Populated cache entries", origin_url=origin_url, size=len(body))
        return True

    async def invalidate(self, origin_url: str) -> None:
        """Delete both entries for ``origin_url``.

        Absent entries are not an error; backend failures raise
        CacheBackendError once both deletes have been attempted.
        """
        key = ResourceKey(origin_url)
        failures = []

        for cache_key in (key.fresh, key.stale):
            try:
                await self.adapter.delete(cache_key)
            except CacheBackendError as exc:
                failures.append(exc)

        if failures:
            self._record("cache_invalidations_total", outcome="error")
            raise failures[0]

        self._record("cache_invalidations_total", outcome="success")
        self.logger.info("Invalidated cache entries", origin_url=origin_url)

    def _schedule_populate(self, origin_url: str, body: Optional[bytes] = None) -> None:
        self.tasks.spawn(self.populate(origin_url, body), name=f"populate:{origin_url}")

    async def _lookup(self, cache_key: str, tier: TtlClass) -> FetchOutcome:
        outcome = await self.adapter.get(cache_key)
        if isinstance(outcome, Hit):
            result = "hit"
        elif isinstance(outcome, BackendError):
            result = "error"
            self.logger.warning("Cache backend error treated as miss", key=cache_key, reason=outcome.reason)
        else:
            result = "miss"
        self._record("cache_lookups_total", tier=tier.value, outcome=result)
        return outcome

    async def _write(self, entry: CacheEntry) -> None:
        if entry.ttl_class is TtlClass.STALE:
            await self.adapter.set(entry.key.stale, entry.body, self.stale_ttl)
        else:
            await self.adapter.set(entry.key.fresh, entry.body, self.fresh_ttl)

    async def _fetch_origin(self, origin_url: str) -> "OriginResponse":
        start = time.perf_counter()
        try:
            response = await self.origin_client.fetch(origin_url)
        except OriginFetchError:
            self._record("origin_fetches_total", outcome="error")
            raise
        finally:
            if self.metrics:
                self.metrics.observe_histogram("origin_fetch_duration_seconds", time.perf_counter() - start)
        self._record("origin_fetches_total", outcome="success")
        return response

    def _record(self, metric_name: str, **labels) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)
