# tests/conftest.py
# Shared fixtures: an in-memory stand-in for psycopg2's ThreadedConnectionPool
# and a Flask test client wired to it.

import time

import psycopg2
import pytest
from psycopg2 import pool as pg_pool
from psycopg2 import extensions

from config import settings
from db import pool as db_pool
from api import create_app


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        # Like psycopg2 outside autocommit: the first statement opens a transaction
        if not self.conn.autocommit:
            self.conn.status = extensions.STATUS_IN_TRANSACTION
        if self.conn.statement_error is not None:
            raise self.conn.statement_error
        self.conn.statements.append((sql, params))
        if sql.startswith("SELECT pg_sleep"):
            # pg_sleep returns at once for zero or negative seconds
            time.sleep(max(params[0], 0))

    def fetchone(self):
        return (1,)


class FakeConnection:
    def __init__(self, statement_error=None):
        self._autocommit = False
        self.status = extensions.STATUS_READY
        self.closed = 0
        self.statements = []
        self.commits = 0
        self.rollbacks = 0
        self.statement_error = statement_error

    @property
    def autocommit(self):
        return self._autocommit

    @autocommit.setter
    def autocommit(self, value):
        if self.status == extensions.STATUS_IN_TRANSACTION:
            raise psycopg2.ProgrammingError(
                "set_session cannot be used inside a transaction"
            )
        self._autocommit = value

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1
        self.status = extensions.STATUS_READY

    def rollback(self):
        self.rollbacks += 1
        self.status = extensions.STATUS_READY

    def close(self):
        self.closed = 1


class FakePool:
    """
    Mimics the parts of ThreadedConnectionPool that db.pool uses.

    getconn() raises PoolError once maxconn connections are checked out,
    exactly like psycopg2 does.
    """

    def __init__(self, minconn, maxconn):
        self.minconn = minconn
        self.maxconn = maxconn
        self.closed = False
        self._used = {}
        self.handed_out = []
        self.returned = []
        self.connect_error = None
        self.statement_error = None

    def getconn(self):
        if self.connect_error is not None:
            raise self.connect_error
        if len(self._used) >= self.maxconn:
            raise pg_pool.PoolError("connection pool exhausted")
        conn = FakeConnection(statement_error=self.statement_error)
        self._used[id(conn)] = conn
        self.handed_out.append(conn)
        return conn

    def putconn(self, conn, key=None, close=False):
        if self.closed:
            raise pg_pool.PoolError("connection pool is closed")
        del self._used[id(conn)]
        self.returned.append((conn, close))
        if close:
            conn.close()

    def closeall(self):
        self.closed = True


@pytest.fixture
def pool_factory(monkeypatch):
    """
    Initialize db.pool over a FakePool with the given size and acquire timeout.

    Returns the FakePool; the pool is closed again after the test.
    """
    created = []

    def make(max_connections=2, connection_timeout=1.0):
        monkeypatch.setattr(settings.db, "min_connections", 0)
        monkeypatch.setattr(settings.db, "max_connections", max_connections)
        monkeypatch.setattr(settings.db, "connection_timeout", connection_timeout)

        def create_fake_pool():
            fake = FakePool(settings.db.min_connections, settings.db.max_connections)
            created.append(fake)
            return fake

        monkeypatch.setattr(db_pool, "_create_pool", create_fake_pool)
        db_pool.initialize_pool()
        return created[-1]

    yield make
    db_pool.close_pool()


@pytest.fixture
def fake_pool(pool_factory):
    return pool_factory()


@pytest.fixture
def app():
    return create_app(start_collector=False)


@pytest.fixture
def client(app):
    return app.test_client()
