# src/tracking/middleware.py
# Flask middleware for correlation IDs
# Takes the X-Correlation-ID header from the client (or generates one),
# makes it visible to logging for the duration of the request and echoes it
# back on the response.

from flask import request, g, has_request_context

from tracking.correlation import (
    set_correlation_id,
    clear_correlation_id,
    generate_correlation_id,
)
from metrics import CORRELATION_IDS_GENERATED_TOTAL, CORRELATION_IDS_PROVIDED_TOTAL
from logger import get_logger

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


def setup_correlation_tracking(app):
    """
    Register before/after/teardown hooks that manage the correlation ID.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def assign_correlation_id():
        correlation_id = request.headers.get(CORRELATION_ID_HEADER)

        if not correlation_id:
            correlation_id = generate_correlation_id()
            CORRELATION_IDS_GENERATED_TOTAL.inc()
            logger.debug(f"Generated new correlation ID: {correlation_id}")
        else:
            CORRELATION_IDS_PROVIDED_TOTAL.inc()
            logger.debug(f"Using correlation ID from header: {correlation_id}")

        # g is request-scoped; the context var is what logging reads
        g.correlation_id = correlation_id
        set_correlation_id(correlation_id)

    @app.after_request
    def echo_correlation_id(response):
        if has_request_context():
            correlation_id = getattr(g, 'correlation_id', None)
            if correlation_id:
                response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response

    @app.teardown_request
    def reset_correlation_id(exc):
        # Server threads are reused, so do not let the ID leak into the next request
        clear_correlation_id()

    logger.info("Correlation ID tracking middleware enabled")
