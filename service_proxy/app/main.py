"""
Stale-while-revalidate proxy service.
"""

from typing import Dict, Optional

from fastapi import Request, Response
from fastapi.responses import RedirectResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from .adapters.origin_client import OriginClient
from .caching.adapter import CacheAdapter
from .caching.background import BackgroundTaskRunner
from .caching.backend import CacheBackend, RedisCacheBackend
from .caching.engine import FetchResult, Source, StaleWhileRevalidateEngine

CACHE_STATUS_HEADER = "X-Cache"
CACHE_STATUS = {
    Source.FRESH: "HIT",
    Source.STALE: "STALE",
    Source.ORIGIN: "MISS",
}


class ProxyService(BaseService):
    """Proxy service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        backend: Optional[CacheBackend] = None,
        origin_client: Optional[OriginClient] = None,
    ):
        super().__init__("proxy", 8000, config=config)

        # Built by startup(); injected collaborators are kept as given.
        self.backend: Optional[CacheBackend] = backend
        self.origin_client: Optional[OriginClient] = origin_client
        self.tasks: Optional[BackgroundTaskRunner] = None
        self.engine: Optional[StaleWhileRevalidateEngine] = None

        self._setup_proxy_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.proxy_service = self

    def _setup_proxy_routes(self):
        """Set up proxy-specific routes."""
        cached_path = self.config.cached_path

        @self.app.get(cached_path)
        async def get_cached_resource():
            """Serve the canonical resource through the cache."""
            result = await self.engine.fetch(self.config.origin_url(cached_path))
            return self._build_response(result)

        @self.app.delete(cached_path)
        async def invalidate_cached_resource():
            """Force-delete both cache entries, then send the client back to the resource."""
            await self.engine.invalidate(self.config.origin_url(cached_path))
            return RedirectResponse(url=cached_path, status_code=303)

        @self.app.get(cached_path + "{sub_path:path}")
        async def pass_through(sub_path: str, request: Request):
            """Forward sub-resources to the origin without touching the cache."""
            if not sub_path:
                return await get_cached_resource()
            # Forward the path as the client sent it so escapes such as %2F survive.
            raw_path = request.scope.get("raw_path")
            path = raw_path.decode("latin-1").split("?", 1)[0] if raw_path else request.url.path
            response = await self.origin_client.fetch(self.config.origin_url(path))
            return Response(
                content=response.body,
                status_code=response.status_code,
                headers=response.passthrough_headers(),
            )

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "proxy",
                "message": "Stale-while-revalidate proxy",
                "version": "1.0.0",
                "origin_host": self.config.origin_host,
                "cached_path": cached_path,
            }

    def _build_response(self, result: FetchResult) -> Response:
        headers = dict(result.headers)
        headers[CACHE_STATUS_HEADER] = CACHE_STATUS[result.source]
        return Response(content=result.body, status_code=result.status_code, headers=headers)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check proxy dependencies."""
        if self.backend is None:
            return {"cache": "error"}
        try:
            cache_status = "ok" if await self.backend.ping() else "error"
        except Exception as e:
            self.logger.warning("Cache backend ping failed", error=str(e))
            cache_status = "error"
        return {"cache": cache_status}

    async def startup(self) -> None:
        """Wire the cache backend, origin client and task runner into the engine."""
        if self.backend is None:
            self.backend = RedisCacheBackend(self.config.redis_url)
        if self.origin_client is None:
            self.origin_client = OriginClient(timeout=self.config.origin_timeout_seconds)
        self.tasks = BackgroundTaskRunner(metrics=self.metrics)
        self.engine = StaleWhileRevalidateEngine(
            CacheAdapter(self.backend),
            self.origin_client,
            self.tasks,
            fresh_ttl=self.config.fresh_ttl_seconds,
            stale_ttl=self.config.stale_ttl_seconds,
            metrics=self.metrics,
        )
        self.logger.info("Proxy service started", origin_host=self.config.origin_host)

    async def shutdown(self) -> None:
        """Let in-flight populates finish, then release connections."""
        if self.tasks is not None:
            pending = self.tasks.pending
            if pending:
                self.logger.info("Draining background tasks", pending=pending)
            await self.tasks.drain()
        await self.origin_client.close()
        await self.backend.close()
        self.logger.info("Proxy service stopped")


def create_app(config: Optional[ServiceConfig] = None):
    """Create proxy service application."""
    service = ProxyService(config or get_config("proxy", 8000))
    return service.app


if __name__ == "__main__":
    service = ProxyService()
    service.run()
