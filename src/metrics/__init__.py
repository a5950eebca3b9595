# src/metrics/__init__.py
# Exports the Prometheus metrics shared across packages

from .metrics import (
    PROBE_REQUESTS_TOTAL,
    PROBE_DURATION_SECONDS,
    DB_POOL_ACQUIRE_SECONDS,
    DB_CONNECTION_ERRORS_TOTAL,
    DB_QUERIES_TOTAL,
    CORRELATION_IDS_GENERATED_TOTAL,
    CORRELATION_IDS_PROVIDED_TOTAL,
)

__all__ = [
    "PROBE_REQUESTS_TOTAL",
    "PROBE_DURATION_SECONDS",
    "DB_POOL_ACQUIRE_SECONDS",
    "DB_CONNECTION_ERRORS_TOTAL",
    "DB_QUERIES_TOTAL",
    "CORRELATION_IDS_GENERATED_TOTAL",
    "CORRELATION_IDS_PROVIDED_TOTAL",
]
