"""
Shared utilities for the compliance gate engine.

This package aggregates common building blocks consumed by the gate
services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with batch correlation
- metrics: Prometheus counters for gate decisions and rate limiting
- errors: Canonical compliance error types and responses

Any cross-service logic should live here to avoid import cycles across
service packages. Only test_helpers may import from service_* packages.
"""
