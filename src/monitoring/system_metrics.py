# src/monitoring/system_metrics.py
# Periodically published gauges for the connection pool
# Gauges go up and down; they show how many slots the hold probes occupy
# and how many requests are queued behind them.

import threading
import time
from prometheus_client import Gauge

from logger import get_logger
from db.pool import get_pool_status

logger = get_logger(__name__)

DB_POOL_SIZE = Gauge(
    "db_pool_size",
    "Maximum number of connections in the database pool",
)

DB_POOL_AVAILABLE = Gauge(
    "db_pool_available",
    "Number of pool slots not currently checked out",
)

DB_POOL_IN_USE = Gauge(
    "db_pool_in_use",
    "Number of connections currently checked out",
)

DB_POOL_WAITING = Gauge(
    "db_pool_waiting",
    "Number of requests blocked waiting for a pool slot",
)

APPLICATION_UPTIME_SECONDS = Gauge(
    "application_uptime_seconds",
    "Number of seconds the application has been running",
)

_start_time = time.monotonic()


def collect_system_metrics():
    """
    Refresh the pool and uptime gauges from the current pool status.

    All gauges read 0 while the pool is not initialized.
    """
    pool_status = get_pool_status()

    if pool_status.get("initialized"):
        DB_POOL_SIZE.set(pool_status["max_connections"])
        DB_POOL_AVAILABLE.set(pool_status["available"])
        DB_POOL_IN_USE.set(pool_status["in_use"])
        DB_POOL_WAITING.set(pool_status["waiting"])
    else:
        DB_POOL_SIZE.set(0)
        DB_POOL_AVAILABLE.set(0)
        DB_POOL_IN_USE.set(0)
        DB_POOL_WAITING.set(0)

    APPLICATION_UPTIME_SECONDS.set(time.monotonic() - _start_time)

    logger.debug("System metrics updated successfully")


def start_metrics_collector(interval=15):
    """
    Start a daemon thread that calls collect_system_metrics() every interval seconds.

    Args:
        interval: seconds between refreshes

    Returns:
        The started thread
    """

    def collect_loop():
        while True:
            try:
                collect_system_metrics()
            except Exception as e:
                # Keep collecting; one bad snapshot should not stop the gauges
                logger.error(f"Error in metrics collector loop: {e}")
            time.sleep(interval)

    collector_thread = threading.Thread(
        target=collect_loop,
        name="pool-metrics-collector",
        daemon=True,
    )
    collector_thread.start()

    logger.info(f"System metrics collector started (interval={interval}s)")
    return collector_thread
