"""
Shared utilities for the Contact Message Service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application shell with health and metrics routes

Do not import from service_* packages into shared/.
"""
