"""
Cache key derivation for proxied resources.

Key names are shared with existing deployments and must stay
byte-for-byte identical: ``"fresh: " + origin_url`` and
``"stale: " + origin_url``.
"""

from dataclasses import dataclass

FRESH_PREFIX = "fresh: "
STALE_PREFIX = "stale: "


@dataclass(frozen=True)
class ResourceKey:
    """Stable identifier for a cached resource, its canonical origin URL."""

    origin_url: str

    @property
    def fresh(self) -> str:
        return fresh_key(self.origin_url)

    @property
    def stale(self) -> str:
        return stale_key(self.origin_url)


def fresh_key(origin_url: str) -> str:
    return f"{FRESH_PREFIX}{origin_url}"


def stale_key(origin_url: str) -> str:
    return f"{STALE_PREFIX}{origin_url}"
