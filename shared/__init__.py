"""
Shared utilities for the licensing service.

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry decorator for outbound calls
- base_service: FastAPI skeleton with health, metrics and error handlers

Do not import from service packages into shared/.
"""
