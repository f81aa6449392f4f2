"""
Origin client for the proxy service.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from shared.logging import get_logger
from shared.errors import OriginFetchError

# Headers worth forwarding to the client; hop-by-hop and length headers are
# recomputed by the response layer.
PASSTHROUGH_HEADERS = ("content-type", "cache-control", "etag", "last-modified")


@dataclass(frozen=True)
class OriginResponse:
    status_code: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def passthrough_headers(self) -> Dict[str, str]:
        return {name: self.headers[name] for name in PASSTHROUGH_HEADERS if name in self.headers}


class OriginClient:
    """Client for fetching resources from the origin host."""

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.logger = get_logger("proxy.origin_client")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str) -> OriginResponse:
        """GET ``url`` from the origin.

        Any HTTP status is returned as a response; only transport failures
        raise OriginFetchError.
        """
        self.logger.info("Fetching from origin", url=url)
        try:
            response = await self._get_client().get(url)
        except httpx.TimeoutException as e:
            self.logger.error("Origin timeout", url=url, error=str(e))
            raise OriginFetchError(url, "Origin timeout")
        except httpx.RequestError as e:
            self.logger.error("Origin request error", url=url, error=str(e))
            raise OriginFetchError(url, "Origin unavailable", {"error": str(e)})

        if response.is_error:
            self.logger.warning("Origin returned error status", url=url, status_code=response.status_code)

        return OriginResponse(
            status_code=response.status_code,
            body=response.content,
            headers={name.lower(): value for name, value in response.headers.items()},
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
