# src/api/app.py
# Creates the Flask application for the pool probe service
# The probes themselves live in api/routes.py under /test; this file wires
# them together with health checks, error handlers and monitoring.

from flask import Flask, jsonify

from logger import get_logger
from config import settings
from db.pool import get_connection, get_pool_status
from probes import describe_error

from monitoring import (
    setup_metrics_endpoint,
    start_metrics_collector,
    setup_request_monitoring,
)
from tracking.middleware import setup_correlation_tracking

from .params import InvalidParameterError
from .routes import probe_routes

logger = get_logger(__name__)

SERVICE_NAME = "pool-probe"


def create_app(start_collector: bool = True):
    """
    Create and configure the Flask application.

    Args:
        start_collector: start the background thread that refreshes the
                         pool gauges. Tests pass False.

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    app.config['DEBUG'] = settings.app.debug
    # Keep response fields in the order the probes produce them
    app.json.sort_keys = False

    app.register_blueprint(probe_routes)
    register_routes(app)
    register_error_handlers(app)

    # Prometheus /metrics endpoint
    setup_metrics_endpoint(app)

    # Correlation IDs first, so request monitoring logs carry them
    setup_correlation_tracking(app)
    setup_request_monitoring(app)

    if start_collector and settings.app.metrics_collect_interval > 0:
        start_metrics_collector(interval=settings.app.metrics_collect_interval)

    logger.info(f"Flask application created: debug={settings.app.debug}")
    logger.info("Probe endpoints available under /test")

    return app


def register_routes(app: Flask):
    """
    Register the health check endpoints.

    Args:
        app: Flask application instance
    """

    @app.route('/health', methods=['GET'])
    def health():
        """Process is up and serving HTTP."""
        return jsonify({
            "status": "healthy",
            "service": SERVICE_NAME
        }), 200

    @app.route('/health/live', methods=['GET'])
    def liveness():
        """
        Liveness probe.

        Does not touch the database: an exhausted pool is exactly what this
        service is used to create, and must not get the container restarted.
        """
        return jsonify({
            "status": "alive",
            "service": SERVICE_NAME
        }), 200

    @app.route('/health/ready', methods=['GET'])
    def readiness():
        """
        Readiness probe.

        Ready when the pool is initialized and a SELECT 1 round trip succeeds.
        While the pool is exhausted this waits up to DB_CONNECTION_TIMEOUT
        like any other caller.

        Returns:
            200 with checks when ready, 503 otherwise
        """
        pool_status = get_pool_status()
        database = _check_database() if pool_status["initialized"] else {
            "ok": False,
            "error": "connection pool not initialized",
        }

        ready = database["ok"]
        return jsonify({
            "status": "ready" if ready else "not_ready",
            "checks": {
                "database": database,
                "pool": pool_status,
            }
        }), 200 if ready else 503


def _check_database():
    """
    SELECT 1 through the pool for the readiness check.

    Unlike /test/ping, this records nothing in the probe metrics.
    """
    try:
        with get_connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
    except Exception as e:
        logger.error(f"Readiness check failed: {describe_error(e)}")
        return {"ok": False, "error": describe_error(e)}
    return {"ok": True}


def register_error_handlers(app: Flask):
    """
    Register JSON error handlers.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(InvalidParameterError)
    def invalid_parameter(error):
        """A parameter could not be bound; the probe never ran."""
        return jsonify({
            "ok": False,
            "error": describe_error(error)
        }), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            "error": "Not found",
            "message": "The requested endpoint does not exist"
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        """
        Wrong HTTP method, e.g. GET /test/hold-conn (it only accepts POST).
        """
        return jsonify({
            "error": "Method not allowed",
            "message": "The HTTP method is not allowed for this endpoint"
        }), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify({
            "error": "Internal server error",
            "message": "An unexpected error occurred"
        }), 500
