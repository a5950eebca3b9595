# src/probes/service.py
# The four pool probes
#
# Each probe checks a connection out of the shared pool, does one fixed thing
# with it, measures how long that took and gives the connection back.
# Timing starts before acquisition, so time spent waiting for a slot shows up
# in the reported milliseconds.

import functools
import time

from logger import get_logger
from db.pool import get_connection
from metrics import PROBE_REQUESTS_TOTAL, PROBE_DURATION_SECONDS, DB_QUERIES_TOTAL
from .result import ProbeResult

logger = get_logger(__name__)

# Fixed statements
# The sleep duration is always bound as a parameter, never formatted in
SQL_SELECT_ONE = "SELECT 1"
SQL_SLEEP = "SELECT pg_sleep(%s)"


def _elapsed_ms(start_time):
    """Whole milliseconds since start_time (a time.monotonic() reading)."""
    return int((time.monotonic() - start_time) * 1000)


def probe(name):
    """
    Turn a function returning a payload dict into a probe returning ProbeResult.

    Any exception raised by the function (acquisition, execution, commit,
    rollback) is logged and converted into ProbeResult.failure(); nothing
    propagates to the caller. Outcome and duration are recorded in
    Prometheus under the probe's name.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.monotonic()
            try:
                payload = func(*args, **kwargs)
            except Exception as e:
                result = ProbeResult.failure(e)
                logger.warning(f"Probe {name} failed: {result.error}")
            else:
                result = ProbeResult.success(**payload)
            finally:
                PROBE_DURATION_SECONDS.labels(probe=name).observe(time.monotonic() - start_time)

            PROBE_REQUESTS_TOTAL.labels(probe=name, outcome="ok" if result.ok else "error").inc()
            return result
        return wrapper
    return decorator


@probe("query")
def run_query(sleep_sec=0):
    """
    Run one statement: pg_sleep(sleep_sec) if sleep_sec > 0, else SELECT 1.

    Returns:
        ProbeResult with elapsed_ms and sleepSec
    """
    logger.info(f"Query probe: sleepSec={sleep_sec}")
    start_time = time.monotonic()

    with get_connection() as conn:
        with conn.cursor() as cursor:
            if sleep_sec > 0:
                cursor.execute(SQL_SLEEP, (sleep_sec,))
            else:
                cursor.execute(SQL_SELECT_ONE)
            cursor.fetchone()
            DB_QUERIES_TOTAL.inc()

    return {"elapsed_ms": _elapsed_ms(start_time), "sleepSec": sleep_sec}


@probe("hold_tx")
def hold_transaction(hold_sec, commit=False):
    """
    Open a transaction, sleep inside it on the server, then end it.

    Autocommit is switched off so pg_sleep runs inside an explicit
    transaction; the session stays in a transaction for hold_sec seconds.
    The transaction is committed when commit is True, rolled back otherwise.
    If anything fails midway, get_connection() rolls back before the
    connection goes back to the pool.

    Returns:
        ProbeResult with held_sec, committed and elapsed_ms
    """
    logger.info(f"Transaction hold probe: holdSec={hold_sec}, commit={commit}")
    start_time = time.monotonic()

    with get_connection() as conn:
        conn.autocommit = False
        with conn.cursor() as cursor:
            cursor.execute(SQL_SLEEP, (hold_sec,))
            DB_QUERIES_TOTAL.inc()
        if commit:
            conn.commit()
        else:
            conn.rollback()

    return {
        "held_sec": hold_sec,
        "committed": commit,
        "elapsed_ms": _elapsed_ms(start_time),
    }


@probe("hold_conn")
def hold_connection(hold_sec):
    """
    Check a connection out and keep it for hold_sec seconds without using it.

    No statement is sent; the request thread just sleeps while the
    connection occupies a pool slot.

    Returns:
        ProbeResult with held_sec and elapsed_ms
    """
    logger.info(f"Connection hold probe: holdSec={hold_sec}")
    start_time = time.monotonic()

    with get_connection():
        time.sleep(hold_sec)

    return {"held_sec": hold_sec, "elapsed_ms": _elapsed_ms(start_time)}


@probe("ping")
def ping():
    """
    Acquire, SELECT 1, read the row, release.

    Returns:
        ProbeResult with acquire_and_query_ms
    """
    start_time = time.monotonic()

    with get_connection() as conn:
        with conn.cursor() as cursor:
            cursor.execute(SQL_SELECT_ONE)
            cursor.fetchone()
            DB_QUERIES_TOTAL.inc()

    return {"acquire_and_query_ms": _elapsed_ms(start_time)}
