"""
Stale-while-revalidate proxy service package.

The proxy fronts a single origin host, serving one canonical resource
from cache and forwarding everything beneath it untouched:
- Fresh hits are served straight from the cache backend
- Stale hits are served immediately and refreshed in the background
- True misses block on the origin and populate the cache afterwards

Structure:
- app.main: FastAPI app, routes, and lifecycle wiring.
- app.adapters: HTTP client for the origin host.
- app.caching: Cache backend, adapter, and the revalidation engine.
"""
