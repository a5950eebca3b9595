# src/main.py
# Entry point of the pool probe service
# 1. Initializes the shared database connection pool
# 2. Creates the Flask API application
# 3. Starts the web server (threaded: one thread per request)
# 4. Closes the pool on shutdown

import atexit

from logger import get_logger
from config import settings
from db.pool import initialize_pool, close_pool
from api import create_app

logger = get_logger(__name__)


def create_wsgi_app():
    """
    Application factory for a WSGI server.

    Each worker process gets its own pool, closed when the worker exits:
        gunicorn --chdir src -k gthread --threads 64 -b 0.0.0.0:8000 'main:create_wsgi_app()'
    """
    initialize_pool()
    atexit.register(close_pool)
    return create_app()


def main():
    """
    Run the probe service until interrupted.

    The Flask server must be threaded: a /test/hold-conn request sleeps for
    its whole hold time, and other probes have to keep being served
    meanwhile. In production use a threaded WSGI server with
    create_wsgi_app() instead.
    """
    logger.info("=" * 60)
    logger.info("Starting Pool Probe Service")
    logger.info(f"Environment: {settings.app.environment}")
    logger.info(f"Database: {settings.db.host}:{settings.db.port}/{settings.db.name}")
    logger.info(f"Debug mode: {settings.app.debug}")
    logger.info("=" * 60)

    try:
        # The pool must exist before the first request arrives
        initialize_pool()
        logger.info("✓ Database connection pool initialized")

        app = create_app()

        logger.info(f"Starting API server on {settings.app.api_host}:{settings.app.api_port}")
        logger.info(
            "Ping: http://{}:{}/test/ping".format(settings.app.api_host, settings.app.api_port)
        )

        app.run(
            host=settings.app.api_host,
            port=settings.app.api_port,
            debug=settings.app.debug,
            threaded=True,
            # The reloader would fork a second process with its own pool
            use_reloader=False,
        )

    except KeyboardInterrupt:
        logger.info("Received shutdown signal (Ctrl+C)")

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise

    finally:
        close_pool()
        logger.info("Application shutdown complete")


if __name__ == "__main__":
    main()
