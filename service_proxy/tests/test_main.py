"""
Unit tests for the proxy service HTTP surface.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from shared.config import ServiceConfig
from shared.test_helpers import InMemoryCacheBackend, OriginStub, TestEnvironment
from service_proxy.app.adapters.origin_client import OriginClient
from service_proxy.app.caching.keys import fresh_key, stale_key
from service_proxy.app.main import ProxyService

ORIGIN_URL = "https://example.com/posts/"


class TestProxyService:
    """Test cases for ProxyService."""

    @pytest.fixture
    def backend(self):
        return InMemoryCacheBackend()

    @pytest.fixture
    def origin(self):
        stub = OriginStub()
        stub.respond(ORIGIN_URL, b"origin posts")
        stub.respond("https://example.com/posts/42", b"post 42")
        return stub

    @pytest.fixture
    def service(self, backend, origin):
        config = ServiceConfig("proxy", 8000, **TestEnvironment.get_mock_config())
        return ProxyService(
            config,
            backend=backend,
            origin_client=OriginClient(transport=origin.transport()),
        )

    @pytest.fixture
    def client(self, service):
        with TestClient(service.app) as client:
            yield client

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "proxy"
        assert data["cached_path"] == "/posts/"

    def test_health_endpoint(self, client):
        """Test health endpoint reports the cache dependency."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"]["cache"] == "ok"

    def test_health_endpoint_degraded(self, client, backend):
        """Test health endpoint with an unreachable cache."""
        backend.fail_all = True

        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["dependencies"]["cache"] == "error"

    def test_get_fresh_hit(self, client, backend, origin):
        """Test cached resource served from the fresh entry."""
        backend.store[fresh_key(ORIGIN_URL)] = b"cached posts"

        response = client.get("/posts/")

        assert response.status_code == 200
        assert response.content == b"cached posts"
        assert response.headers["X-Cache"] == "HIT"
        assert origin.requests == []

    def test_get_stale_hit(self, backend, origin, service):
        """Test stale entry served while the refresh runs after the response."""
        backend.store[stale_key(ORIGIN_URL)] = b"stale posts"

        with TestClient(service.app) as client:
            response = client.get("/posts/")

        assert response.content == b"stale posts"
        assert response.headers["X-Cache"] == "STALE"
        assert backend.store[fresh_key(ORIGIN_URL)] == b"origin posts"
        assert backend.store[stale_key(ORIGIN_URL)] == b"origin posts"

    def test_get_true_miss(self, backend, origin, service):
        """Test true miss returns the origin body and populates once."""
        with TestClient(service.app) as client:
            response = client.get("/posts/")

        assert response.status_code == 200
        assert response.content == b"origin posts"
        assert response.headers["X-Cache"] == "MISS"
        assert response.headers["content-type"].startswith("text/plain")
        assert origin.requests == [ORIGIN_URL]
        assert backend.ops("set") == [stale_key(ORIGIN_URL), fresh_key(ORIGIN_URL)]

    def test_get_true_miss_origin_down(self, client, origin):
        """Test failing origin on a true miss yields 502."""
        origin.fail_with = httpx.ConnectError("connection refused")

        response = client.get("/posts/")

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "ORIGIN_FETCH_ERROR"
        assert data["details"]["url"] == ORIGIN_URL

    def test_delete_invalidates_and_redirects(self, client, backend):
        """Test DELETE removes both entries and redirects to the resource."""
        backend.store[fresh_key(ORIGIN_URL)] = b"cached posts"
        backend.store[stale_key(ORIGIN_URL)] = b"cached posts"

        response = client.delete("/posts/", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/posts/"
        assert backend.store == {}

    def test_delete_on_empty_cache(self, client):
        """Test DELETE is idempotent."""
        first = client.delete("/posts/", follow_redirects=False)
        second = client.delete("/posts/", follow_redirects=False)

        assert first.status_code == 303
        assert second.status_code == 303

    def test_delete_backend_failure(self, client, backend):
        """Test DELETE reports cache backend failure."""
        backend.fail_all = True

        response = client.delete("/posts/", follow_redirects=False)

        assert response.status_code == 503
        assert response.json()["code"] == "CACHE_BACKEND_ERROR"

    def test_pass_through_sub_resource(self, client, backend, origin):
        """Test sub-resources bypass the cache entirely."""
        response = client.get("/posts/42")

        assert response.status_code == 200
        assert response.content == b"post 42"
        assert "X-Cache" not in response.headers
        assert origin.requests == ["https://example.com/posts/42"]
        assert backend.calls == []

    def test_pass_through_keeps_origin_status(self, client, origin):
        """Test origin status codes are forwarded unmodified."""
        response = client.get("/posts/does-not-exist")

        assert response.status_code == 404
        assert response.content == b"not found"

    def test_shutdown_closes_backend(self, service, backend):
        """Test lifespan shutdown releases the cache connection."""
        with TestClient(service.app):
            pass

        assert backend.closed is True

    def test_metrics_endpoint(self, client, backend):
        """Test Prometheus metrics exposition includes cache lookups."""
        backend.store[fresh_key(ORIGIN_URL)] = b"cached posts"
        client.get("/posts/")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "cache_lookups_total" in response.text

    def test_pass_through_preserves_encoded_path(self, client, origin):
        """Test percent-encoded separators reach the origin unchanged."""
        origin.respond("https://example.com/posts/a%2Fb", b"encoded")

        response = client.get("/posts/a%2Fb")

        assert response.status_code == 200
        assert response.content == b"encoded"
        assert origin.requests == ["https://example.com/posts/a%2Fb"]

    def test_request_metrics_labelled_by_route(self, client, service):
        """Test per-resource paths collapse into the route template label."""
        for i in range(25):
            client.get(f"/posts/item-{i}")

        endpoints = {
            sample.labels["endpoint"]
            for metric in service.metrics.registry.collect()
            for sample in metric.samples
            if sample.name == "http_requests_total"
        }

        assert "/posts/{sub_path:path}" in endpoints
        assert not any(endpoint.startswith("/posts/item-") for endpoint in endpoints)

    def test_startup_wires_engine(self, service, backend):
        """Test the engine is built by lifespan startup around the injected backend."""
        assert service.engine is None

        with TestClient(service.app):
            assert service.engine is not None
            assert service.engine.adapter.backend is backend
            assert service.tasks.pending == 0
