"""
Shared utilities for the Jokes read service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request and trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical user-facing error types and responses
- retry: Retry decorator and statistics
- base_service: FastAPI application scaffolding

Do not import from service_* packages into shared/.
"""
