# src/logger/logging.py
# Centralized logging configuration for the probe service
# Every module calls get_logger(__name__) and inherits this setup.
# Note: the folder is named 'logger' so it does not shadow Python's 'logging'

import logging
import sys
from typing import Optional

from tracking.correlation import get_correlation_id

LOG_FORMAT = '%(asctime)s - [%(correlation_id)s] - %(name)s - %(levelname)s - %(message)s'


class CorrelationIDFilter(logging.Filter):
    """
    Logging filter that stamps the current correlation ID on each record.

    Records produced outside a request (startup, background collector)
    get "-" instead.
    """

    def filter(self, record):
        record.correlation_id = get_correlation_id() or "-"
        return True


def setup_logging(level: Optional[str] = None):
    """
    Configure the root logger for the entire application.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
               If None, uses LOG_LEVEL from the centralized config.
    """
    from config import settings
    log_level = level or settings.app.log_level

    # "INFO" -> logging.INFO
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # The filter sits on the handler so records from third-party loggers
    # (werkzeug, psycopg2) get a correlation_id too
    handler.addFilter(CorrelationIDFilter())

    logging.basicConfig(
        level=numeric_level,
        handlers=[handler],
    )


def get_logger(name: Optional[str] = None):
    """
    Get a logger instance for a specific module.

    Args:
        name: Name of the logger (usually __name__ of the caller).
              If None, returns the root logger.

    Returns:
        A logging.Logger
    """
    return logging.getLogger(name)


# Configure logging as soon as this package is imported
setup_logging()
