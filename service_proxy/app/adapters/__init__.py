"""
Adapters package for the proxy service.

Contains the HTTP client wrapper for the origin host. Adapters
encapsulate base URLs, timeouts, and error handling that maps to
shared errors. Keep them thin and side-effect free outside of
explicit calls.
"""

from .origin_client import OriginClient, OriginResponse

__all__ = ["OriginClient", "OriginResponse"]
