# tests/test_live.py
# Probes against a real PostgreSQL
# Run with: PROBE_LIVE_TESTS=1 DB_HOST=... DB_USER=... pytest -m live

import os
import threading
import time
from contextlib import closing

import pytest

from config import settings
from db import pool as db_pool
from db import get_db_connection, fetch_session_states
from probes import run_query, hold_transaction, hold_connection, ping

pytestmark = [
    pytest.mark.live,
    pytest.mark.skipif(
        os.getenv("PROBE_LIVE_TESTS") != "1",
        reason="set PROBE_LIVE_TESTS=1 to run against a real database",
    ),
]


@pytest.fixture
def live_pool(monkeypatch):
    monkeypatch.setattr(settings.db, "min_connections", 1)
    monkeypatch.setattr(settings.db, "max_connections", 2)
    monkeypatch.setattr(settings.db, "connection_timeout", 0.5)
    db_pool.initialize_pool()
    yield
    db_pool.close_pool()


def test_query_elapsed_covers_server_sleep(live_pool):
    result = run_query(1)

    assert result.ok is True
    assert result.payload["elapsed_ms"] >= 1000


@pytest.mark.parametrize("commit", [True, False])
def test_hold_tx_reports_commit_flag(live_pool, commit):
    result = hold_transaction(1, commit=commit)

    assert result.ok is True
    assert result.payload["committed"] is commit
    assert result.payload["elapsed_ms"] >= 1000


def test_hold_tx_session_is_visible_in_pg_stat_activity(live_pool):
    holder = threading.Thread(target=hold_transaction, args=(2,))
    holder.start()
    time.sleep(0.5)

    with closing(get_db_connection()) as observer:
        states = fetch_session_states(observer)
    holder.join()

    assert sum(states.values()) >= 1
    assert states.get("active", 0) >= 1


def test_ping_times_out_while_pool_is_exhausted(live_pool):
    holders = [threading.Thread(target=hold_connection, args=(2,)) for _ in range(2)]
    for holder in holders:
        holder.start()
    time.sleep(0.3)

    result = ping()
    for holder in holders:
        holder.join()

    assert result.ok is False
    assert result.error.startswith("PoolTimeoutError")

    assert ping().ok is True
