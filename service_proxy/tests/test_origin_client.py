"""
Unit tests for OriginClient.
"""

import httpx
import pytest

from shared.errors import OriginFetchError
from shared.test_helpers import OriginStub
from service_proxy.app.adapters.origin_client import OriginClient, OriginResponse


class TestOriginClient:
    """Test cases for OriginClient."""

    @pytest.fixture
    def origin(self):
        return OriginStub()

    @pytest.fixture
    def client(self, origin):
        return OriginClient(timeout=1.0, transport=origin.transport())

    @pytest.mark.asyncio
    async def test_fetch_success(self, client, origin):
        """Test body, status and headers are returned."""
        origin.respond("https://example.com/posts/", b"[1, 2, 3]")

        response = await client.fetch("https://example.com/posts/")
        await client.close()

        assert response.status_code == 200
        assert response.body == b"[1, 2, 3]"
        assert response.ok is True
        assert response.headers["content-type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_fetch_error_status_is_returned(self, client, origin):
        """Test HTTP error statuses are responses, not exceptions."""
        response = await client.fetch("https://example.com/missing")
        await client.close()

        assert response.status_code == 404
        assert response.ok is False

    @pytest.mark.asyncio
    async def test_fetch_connect_error(self, client, origin):
        """Test transport failure raises OriginFetchError."""
        origin.fail_with = httpx.ConnectError("connection refused")

        with pytest.raises(OriginFetchError) as exc_info:
            await client.fetch("https://example.com/posts/")

        assert exc_info.value.code == "ORIGIN_FETCH_ERROR"
        assert exc_info.value.url == "https://example.com/posts/"
        assert len(origin.requests) == 1

    @pytest.mark.asyncio
    async def test_fetch_timeout(self, client, origin):
        """Test timeouts raise OriginFetchError."""
        origin.fail_with = httpx.ReadTimeout("read timed out")

        with pytest.raises(OriginFetchError) as exc_info:
            await client.fetch("https://example.com/posts/")

        assert "timeout" in exc_info.value.message


def test_passthrough_headers_filters_hop_by_hop():
    response = OriginResponse(
        status_code=200,
        body=b"",
        headers={"content-type": "application/json", "connection": "keep-alive", "etag": '"abc"'},
    )

    assert response.passthrough_headers() == {"content-type": "application/json", "etag": '"abc"'}
