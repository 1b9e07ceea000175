"""
Shared utilities for the PTAlts client.

This package aggregates common building blocks consumed by the client:

- config: Client configuration via pydantic-settings
- logging: Structured logging with session correlation
- metrics: Prometheus metrics for event streams
- errors: Canonical error types and responses

Do not import from the ptalts package into shared/.
"""
