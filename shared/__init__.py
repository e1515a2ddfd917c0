"""
Shared utilities for the Product Configurator service.

This package aggregates common building blocks consumed by services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding (health, metrics, errors)

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service packages into shared/.
"""
