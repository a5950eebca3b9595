# tests/test_pool.py
# Scoped acquisition, release on every exit path, and wait-or-timeout behavior
# of the shared pool.

import threading
import time

import psycopg2
import pytest
from psycopg2 import extensions
from prometheus_client import REGISTRY

from db import pool as db_pool
from db import PoolNotInitializedError, PoolTimeoutError


def _connection_errors():
    return REGISTRY.get_sample_value("db_connection_errors_total") or 0.0


def test_get_connection_requires_initialized_pool():
    with pytest.raises(PoolNotInitializedError):
        with db_pool.get_connection():
            pass


def test_initialize_pool_twice_keeps_first_pool(fake_pool):
    db_pool.initialize_pool()

    assert db_pool._connection_pool is fake_pool


def test_connection_is_autocommit_and_returned(fake_pool):
    with db_pool.get_connection() as conn:
        assert conn.autocommit is True
        assert db_pool.get_pool_status()["in_use"] == 1

    assert fake_pool.returned == [(conn, False)]
    assert db_pool.get_pool_status()["in_use"] == 0


def test_open_transaction_is_committed_on_exit(fake_pool):
    with db_pool.get_connection() as conn:
        conn.autocommit = False
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1")
        assert conn.status == extensions.STATUS_IN_TRANSACTION

    assert conn.commits == 1
    assert conn.rollbacks == 0


def test_error_rolls_back_and_still_returns_connection(fake_pool):
    with pytest.raises(ValueError):
        with db_pool.get_connection() as conn:
            conn.autocommit = False
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
            raise ValueError("boom")

    assert conn.rollbacks == 1
    assert conn.commits == 0
    assert fake_pool.returned == [(conn, False)]
    assert db_pool.get_pool_status()["in_use"] == 0


def test_closed_connection_is_discarded(fake_pool):
    with pytest.raises(psycopg2.OperationalError):
        with db_pool.get_connection() as conn:
            conn.close()
            raise psycopg2.OperationalError("server closed the connection unexpectedly")

    assert conn.rollbacks == 0
    assert fake_pool.returned == [(conn, True)]


def test_connect_failure_releases_slot(fake_pool):
    fake_pool.connect_error = psycopg2.OperationalError("could not connect to server")
    before = _connection_errors()

    for _ in range(3):
        with pytest.raises(psycopg2.OperationalError):
            with db_pool.get_connection():
                pass

    assert _connection_errors() == before + 3

    # The slots were all given back, so the pool is usable again
    fake_pool.connect_error = None
    with db_pool.get_connection():
        pass


def test_acquire_waits_for_a_free_slot(pool_factory):
    pool_factory(max_connections=1, connection_timeout=5.0)
    held = threading.Event()

    def holder():
        with db_pool.get_connection():
            held.set()
            time.sleep(0.3)

    thread = threading.Thread(target=holder)
    thread.start()
    assert held.wait(timeout=2)

    start_time = time.monotonic()
    with db_pool.get_connection():
        waited = time.monotonic() - start_time
    thread.join()

    assert waited >= 0.2


def test_acquire_times_out_when_pool_stays_exhausted(pool_factory):
    pool_factory(max_connections=1, connection_timeout=0.2)
    held = threading.Event()
    release = threading.Event()

    def holder():
        with db_pool.get_connection():
            held.set()
            release.wait(timeout=5)

    thread = threading.Thread(target=holder)
    thread.start()
    assert held.wait(timeout=2)

    try:
        before = _connection_errors()
        start_time = time.monotonic()
        with pytest.raises(PoolTimeoutError):
            with db_pool.get_connection():
                pass
        assert time.monotonic() - start_time >= 0.15
        assert _connection_errors() == before + 1
    finally:
        release.set()
        thread.join()


def test_waiting_count_is_reported(pool_factory):
    pool_factory(max_connections=1, connection_timeout=2.0)
    held = threading.Event()
    release = threading.Event()

    def holder():
        with db_pool.get_connection():
            held.set()
            release.wait(timeout=5)

    def waiter():
        with db_pool.get_connection():
            pass

    holder_thread = threading.Thread(target=holder)
    holder_thread.start()
    assert held.wait(timeout=2)
    waiter_thread = threading.Thread(target=waiter)
    waiter_thread.start()

    try:
        deadline = time.monotonic() + 1
        while db_pool.get_pool_status()["waiting"] == 0 and time.monotonic() < deadline:
            time.sleep(0.01)

        status = db_pool.get_pool_status()
        assert status["waiting"] == 1
        assert status["in_use"] == 1
        assert status["available"] == 0
    finally:
        release.set()
        holder_thread.join()
        waiter_thread.join()

    assert db_pool.get_pool_status()["waiting"] == 0


def test_pool_status_before_initialization():
    status = db_pool.get_pool_status()

    assert status["initialized"] is False
    assert "in_use" not in status


def test_close_pool_while_connection_is_checked_out(fake_pool):
    with db_pool.get_connection() as conn:
        db_pool.close_pool()

    # The pool was gone, so the connection is closed instead of returned
    assert conn.closed
    assert fake_pool.returned == []
    assert fake_pool.closed is True
