"""
Shared error handling for the stale-while-revalidate proxy.
"""

from typing import Dict, Any, Optional
from opentelemetry import trace
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ProxyException(Exception):
    """Base exception for proxy services."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        # Get trace ID from current span
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class CacheBackendError(ProxyException):
    """Failure reported by the cache service (network, auth, quota)."""

    status_code = 503

    def __init__(self, key: str, message: str = "Cache backend error", details: Optional[Dict[str, Any]] = None):
        self.key = key
        super().__init__("CACHE_BACKEND_ERROR", f"{key}: {message}", {"key": key, **(details or {})})


class OriginFetchError(ProxyException):
    """The upstream origin could not be reached."""

    status_code = 502

    def __init__(self, url: str, message: str = "Origin fetch failed", details: Optional[Dict[str, Any]] = None):
        self.url = url
        super().__init__("ORIGIN_FETCH_ERROR", f"{url}: {message}", {"url": url, **(details or {})})
