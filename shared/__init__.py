"""
Shared utilities for the stale-while-revalidate proxy.

This package aggregates common building blocks consumed by services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service skeleton with health and metrics routes
- test_helpers: In-memory fakes for cache and origin

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service packages into shared/.
"""
