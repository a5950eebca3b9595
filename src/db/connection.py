# src/db/connection.py
# Direct (unpooled) database connections
#
# The probes always go through db.pool. A direct connection is for looking
# at the pool from the outside: it does not take a pool slot, so it still
# works while the probes have exhausted the pool.

import psycopg2
from psycopg2.extras import RealDictCursor

from logger import get_logger
from config import settings

logger = get_logger(__name__)

# Sessions opened by this service, grouped by pg_stat_activity.state
# ("active", "idle", "idle in transaction", ...)
SQL_SESSION_STATES = """
SELECT COALESCE(state, 'unknown') AS state, COUNT(*) AS sessions
FROM pg_stat_activity
WHERE application_name = %(application_name)s
  AND pid <> pg_backend_pid()
GROUP BY state
ORDER BY state;
"""


def get_db_connection():
    """
    Create a direct database connection (not from the pool).

    The caller must close it: conn.close(), or use it as
    `with contextlib.closing(get_db_connection()) as conn:`.

    Returns:
        A psycopg2 connection in autocommit mode
    """
    logger.info("Creating direct database connection (not from pool)")

    conn = psycopg2.connect(
        host=settings.db.host,
        port=settings.db.port,
        dbname=settings.db.name,
        user=settings.db.user,
        password=settings.db.password,
        connect_timeout=settings.db.connect_timeout,
        # A distinct name keeps this observer out of its own counts
        application_name=f"{settings.db.application_name}-observer",
    )
    conn.autocommit = True

    logger.info("Direct database connection established")
    return conn


def fetch_session_states(conn, application_name=None):
    """
    Count this service's server sessions by state.

    Args:
        conn: an open psycopg2 connection (usually from get_db_connection())
        application_name: which sessions to count; defaults to the pool's
                          DB_APPLICATION_NAME

    Returns:
        Dict like {"active": 3, "idle": 2, "idle in transaction": 1}
    """
    with conn.cursor(cursor_factory=RealDictCursor) as cursor:
        cursor.execute(
            SQL_SESSION_STATES,
            {"application_name": application_name or settings.db.application_name},
        )
        return {row["state"]: row["sessions"] for row in cursor.fetchall()}
