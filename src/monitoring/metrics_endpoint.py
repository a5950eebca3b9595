# src/monitoring/metrics_endpoint.py
# Exposes the Prometheus /metrics endpoint
# Prometheus scrapes it periodically; graph db_pool_in_use and
# db_pool_acquire_seconds next to each other while running hold probes.

from flask import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from logger import get_logger

logger = get_logger(__name__)


def setup_metrics_endpoint(app):
    """
    Register GET /metrics on the Flask app.

    Args:
        app: Flask application instance

    Example output:
        # HELP probe_requests_total Total number of probe executions
        # TYPE probe_requests_total counter
        probe_requests_total{probe="ping",outcome="ok"} 42.0
    """
    @app.route('/metrics', methods=['GET'])
    def metrics():
        try:
            return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
        except Exception as e:
            # A broken collector must not take the probes down with it
            logger.error(f"Error generating metrics: {e}", exc_info=True)
            return Response(
                f"Error generating metrics: {e}",
                status=500,
                mimetype='text/plain'
            )

    logger.info("Prometheus metrics endpoint registered at /metrics")
