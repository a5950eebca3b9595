# src/monitoring/middleware.py
# Flask middleware that records every API request in Prometheus
# Runs before/after each request: count by method, endpoint and status code,
# and a latency histogram by method and endpoint.

import time
from flask import request, g
from prometheus_client import Counter, Histogram
from logger import get_logger

logger = get_logger(__name__)

API_REQUESTS_TOTAL = Counter(
    "api_requests_total",
    "Total number of API requests",
    ["method", "endpoint", "status_code"]
)

# Hold probes run for tens of seconds by design, so the buckets go that far
API_REQUEST_DURATION_SECONDS = Histogram(
    "api_request_duration_seconds",
    "Duration of API requests in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60, 120, 300),
)

# Requests slower than this get a WARNING line
SLOW_REQUEST_SECONDS = 1.0


def setup_request_monitoring(app):
    """
    Register the request monitoring hooks.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def start_timer():
        g.start_time = time.monotonic()

    @app.after_request
    def record_request(response):
        start_time = getattr(g, 'start_time', None)
        if start_time is None:
            return response
        duration = time.monotonic() - start_time

        method = request.method
        # Blueprint endpoints look like "probes.hold_conn"
        # Unmatched URLs have no endpoint; fall back to the path
        endpoint = request.endpoint or request.path

        API_REQUESTS_TOTAL.labels(
            method=method,
            endpoint=endpoint,
            status_code=response.status_code
        ).inc()

        API_REQUEST_DURATION_SECONDS.labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

        # Expected for hold-tx/hold-conn; a slow ping means the pool is starved
        if duration > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request: {method} {request.path} took {duration:.2f}s"
            )

        return response

    logger.info("Request monitoring middleware enabled")
