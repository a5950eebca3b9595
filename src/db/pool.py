# src/db/pool.py
# Shared database connection pool for the probes
#
# psycopg2's ThreadedConnectionPool hands out connections up to maxconn and
# raises PoolError immediately once they are all checked out. The probes need
# the other behavior: a request waits for a slot, and only gives up after
# DB_CONNECTION_TIMEOUT seconds. A BoundedSemaphore with one permit per pool
# slot sits in front of the pool to provide that wait.

import threading
import time
from contextlib import contextmanager
from typing import Generator, Optional

import psycopg2
from psycopg2 import pool, extensions

from logger import get_logger
from config import settings
from metrics import DB_CONNECTION_ERRORS_TOTAL, DB_POOL_ACQUIRE_SECONDS

logger = get_logger(__name__)


class PoolNotInitializedError(RuntimeError):
    """Raised when a connection is requested before initialize_pool() or after close_pool()."""


class PoolTimeoutError(pool.PoolError):
    """
    Raised when no pool slot frees up within the configured wait.

    This is the expected outcome of /test/ping while the pool is exhausted
    by /test/hold-conn or /test/hold-tx callers.
    """


# Process-wide pool state
# Set by initialize_pool() at startup, cleared by close_pool() at shutdown
_connection_pool: Optional[pool.ThreadedConnectionPool] = None
_slots: Optional[threading.BoundedSemaphore] = None
_acquire_timeout: float = 0.0

# Number of threads currently blocked waiting for a slot
_waiting = 0
_state_lock = threading.Lock()


def _create_pool() -> pool.ThreadedConnectionPool:
    """
    Build the underlying psycopg2 pool from settings.

    Connections beyond minconn are opened lazily and closed again when
    returned, which is psycopg2's own policy.
    """
    return pool.ThreadedConnectionPool(
        minconn=settings.db.min_connections,
        maxconn=settings.db.max_connections,
        host=settings.db.host,
        port=settings.db.port,
        dbname=settings.db.name,
        user=settings.db.user,
        password=settings.db.password,
        connect_timeout=settings.db.connect_timeout,
        application_name=settings.db.application_name,
    )


def initialize_pool():
    """
    Initialize the shared connection pool.

    Call once at application startup. Opens min_connections connections
    right away, so an unreachable database fails here rather than on the
    first request.
    """
    global _connection_pool, _slots, _acquire_timeout

    if _connection_pool is not None:
        logger.warning("Connection pool already initialized")
        return

    logger.info(
        f"Initializing database connection pool: "
        f"min={settings.db.min_connections}, max={settings.db.max_connections}, "
        f"acquire_timeout={settings.db.connection_timeout}s"
    )

    try:
        _connection_pool = _create_pool()
    except Exception as e:
        logger.error(f"Failed to initialize connection pool: {e}")
        raise

    _slots = threading.BoundedSemaphore(settings.db.max_connections)
    _acquire_timeout = settings.db.connection_timeout

    logger.info("Database connection pool initialized successfully")


def close_pool():
    """
    Close the shared connection pool and every connection it holds.

    Call once when the application shuts down.
    """
    global _connection_pool, _slots

    if _connection_pool is not None:
        logger.info("Closing database connection pool")
        _connection_pool.closeall()
        _connection_pool = None
        _slots = None
        logger.info("Database connection pool closed")


def _acquire_slot(slots: threading.BoundedSemaphore, timeout: float):
    """
    Block until a pool slot is free or the timeout elapses.

    Raises:
        PoolTimeoutError: if no slot freed up in time
    """
    global _waiting

    with _state_lock:
        _waiting += 1
    start_time = time.monotonic()
    try:
        acquired = slots.acquire(timeout=timeout)
    finally:
        with _state_lock:
            _waiting -= 1
    DB_POOL_ACQUIRE_SECONDS.observe(time.monotonic() - start_time)

    if not acquired:
        raise PoolTimeoutError(
            f"no connection available within {timeout}s "
            f"(pool max={settings.db.max_connections})"
        )


@contextmanager
def get_connection() -> Generator[psycopg2.extensions.connection, None, None]:
    """
    Check a connection out of the pool for the duration of a with-block.

    The connection comes out in autocommit mode. Code that needs an explicit
    transaction switches autocommit off and commits or rolls back itself; a
    transaction still open when the block exits normally is committed, and
    one open when the block raises is rolled back. The connection is returned
    to the pool (or discarded if broken) on every exit path.

    Example:
        with get_connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")

    Raises:
        PoolNotInitializedError: if the pool is not initialized
        PoolTimeoutError: if no slot frees up within DB_CONNECTION_TIMEOUT
        psycopg2.Error: if opening a new physical connection fails
    """
    # Snapshot the globals so a concurrent close_pool() cannot swap them
    # out from under this checkout
    connection_pool, slots = _connection_pool, _slots

    if connection_pool is None or slots is None:
        raise PoolNotInitializedError("Connection pool not initialized. Call initialize_pool() first.")

    try:
        _acquire_slot(slots, _acquire_timeout)
    except PoolTimeoutError as e:
        DB_CONNECTION_ERRORS_TOTAL.inc()
        logger.error(f"Failed to get connection from pool: {e}")
        raise

    conn = None
    discard = False
    try:
        try:
            conn = connection_pool.getconn()
        except (pool.PoolError, psycopg2.Error) as e:
            DB_CONNECTION_ERRORS_TOTAL.inc()
            logger.error(f"Failed to get connection from pool: {e}")
            raise
        logger.debug("Got connection from pool")

        # Match the usual JDBC default: each statement is its own transaction
        # unless the caller explicitly opens one
        conn.autocommit = True

        yield conn

        if not conn.closed and conn.status == extensions.STATUS_IN_TRANSACTION:
            conn.commit()
            logger.debug("Committed open transaction, returning connection to pool")

    except Exception:
        if conn is not None and not conn.closed:
            try:
                conn.rollback()
                logger.debug("Rolled back transaction due to error")
            except psycopg2.Error as rollback_error:
                logger.warning(f"Rollback failed, discarding connection: {rollback_error}")
                discard = True
        raise

    finally:
        if conn is not None:
            if connection_pool.closed:
                # close_pool() ran while we held it
                conn.close()
            else:
                connection_pool.putconn(conn, close=discard or bool(conn.closed))
            logger.debug("Returned connection to pool")
        slots.release()


def get_pool_status():
    """
    Snapshot of pool usage for /test/pool and the metrics collector.

    Returns:
        Dictionary with initialized flag, bounds, in-use, available and
        waiting counts
    """
    connection_pool = _connection_pool

    if connection_pool is None:
        return {
            "initialized": False,
            "min_connections": settings.db.min_connections,
            "max_connections": settings.db.max_connections,
        }

    # _used maps key -> connection for everything currently checked out
    in_use = len(connection_pool._used)
    return {
        "initialized": True,
        "min_connections": settings.db.min_connections,
        "max_connections": connection_pool.maxconn,
        "in_use": in_use,
        "available": connection_pool.maxconn - in_use,
        "waiting": _waiting,
    }
