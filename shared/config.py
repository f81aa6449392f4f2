"""
Shared configuration management for the stale-while-revalidate proxy.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="SWR_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Origin
    origin_host: str = Field(default="example.com")
    origin_scheme: str = Field(default="https")
    origin_timeout_seconds: float = Field(default=10.0, gt=0)
    cached_path: str = Field(default="/posts/")

    # Cache backend
    redis_url: str = Field(default="redis://localhost:6379/0")
    fresh_ttl_seconds: int = Field(default=60)
    stale_ttl_seconds: int = Field(default=60 * 60)

    @model_validator(mode="after")
    def _check_ttl_pair(self) -> "BaseConfig":
        if self.fresh_ttl_seconds <= 0:
            raise ValueError("fresh_ttl_seconds must be positive")
        if self.stale_ttl_seconds <= self.fresh_ttl_seconds:
            raise ValueError("stale_ttl_seconds must be greater than fresh_ttl_seconds")
        return self

    @model_validator(mode="after")
    def _normalize_cached_path(self) -> "BaseConfig":
        segment = self.cached_path.strip("/")
        if not segment:
            raise ValueError("cached_path must name a path below the root")
        self.cached_path = f"/{segment}/"
        return self

    def origin_url(self, path: str) -> str:
        """Build the canonical origin URL for a request path."""
        return f"{self.origin_scheme}://{self.origin_host}{path}"


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
