# src/db/__init__.py
# Exports the shared pool and the direct-connection helpers

from .connection import get_db_connection, fetch_session_states
from .pool import (
    initialize_pool,
    close_pool,
    get_connection,
    get_pool_status,
    PoolNotInitializedError,
    PoolTimeoutError,
)

__all__ = [
    "get_db_connection",        # Direct connection, outside the pool
    "fetch_session_states",     # pg_stat_activity summary for this service
    "initialize_pool",          # Call at startup
    "close_pool",               # Call at shutdown
    "get_connection",           # Scoped checkout from the pool
    "get_pool_status",          # Pool usage snapshot
    "PoolNotInitializedError",
    "PoolTimeoutError",
]
