# src/tracking/__init__.py
# End-to-end request tracking with correlation IDs
# The Flask middleware lives in tracking.middleware and is imported by the
# api package directly (it depends on Flask and metrics).

from tracking.correlation import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    correlation_context,
    generate_correlation_id,
)

__all__ = [
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "correlation_context",
    "generate_correlation_id",
]
