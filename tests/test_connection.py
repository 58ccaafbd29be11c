import threading

import psycopg2
import pytest
from psycopg2.pool import PoolError

from app.db import connection
from app.db.connection import BlockingConnectionPool, create_pool
from app.db.invoice_store import InvoiceStore


class DummyCursor:
    closed = False

    def execute(self, query, params=None):
        pass

    def fetchone(self):
        return (0,)

    def close(self):
        self.closed = True


class DummyConnection:
    closed = 0

    def cursor(self):
        return DummyCursor()

    def commit(self):
        pass

    def rollback(self):
        pass


class DummyPool:
    """Behaves like ThreadedConnectionPool: fails fast once maxconn are out."""

    def __init__(self, maxconn):
        self.minconn = 0
        self.maxconn = maxconn
        self.out = 0
        self.closed_all = False

    def getconn(self):
        if self.out >= self.maxconn:
            raise PoolError("connection pool exhausted")
        self.out += 1
        return DummyConnection()

    def putconn(self, conn, close=False):
        self.out -= 1

    def closeall(self):
        self.closed_all = True


class BrokenPool(DummyPool):
    def getconn(self):
        raise psycopg2.OperationalError("could not connect to server")


def test_second_caller_waits_for_a_free_connection():
    db_pool = BlockingConnectionPool(DummyPool(maxconn=1), maxconn=1, timeout=5)
    store = InvoiceStore("taxplus_invoices", db_pool)
    held = db_pool.getconn()

    results = []
    done = threading.Event()

    def count_invoices():
        results.append(store.count())
        done.set()

    worker = threading.Thread(target=count_invoices)
    worker.start()

    assert not done.wait(0.2)
    db_pool.putconn(held)
    assert done.wait(5)
    worker.join(5)
    assert results == [0]


def test_waiting_gives_up_after_timeout():
    db_pool = BlockingConnectionPool(DummyPool(maxconn=1), maxconn=1, timeout=0.05)
    db_pool.getconn()

    with pytest.raises(PoolError):
        db_pool.getconn()


def test_failed_connect_releases_its_slot():
    db_pool = BlockingConnectionPool(BrokenPool(maxconn=1), maxconn=1, timeout=0.05)

    for _ in range(2):
        with pytest.raises(psycopg2.OperationalError):
            db_pool.getconn()


def test_closeall_reaches_the_inner_pool():
    inner = DummyPool(maxconn=2)
    BlockingConnectionPool(inner, maxconn=2).closeall()
    assert inner.closed_all is True


def test_create_pool_wraps_threaded_pool(monkeypatch):
    created = {}

    def fake_threaded_pool(minconn, maxconn, dsn, **kwargs):
        created.update(minconn=minconn, maxconn=maxconn, dsn=dsn, **kwargs)
        return DummyPool(maxconn)

    monkeypatch.setattr(connection, "ThreadedConnectionPool", fake_threaded_pool)

    db_pool = create_pool(dsn="postgresql://localhost/invoices", minconn=0, maxconn=3)

    assert isinstance(db_pool, BlockingConnectionPool)
    assert db_pool.maxconn == 3
    assert created["dsn"] == "postgresql://localhost/invoices"
    assert "connect_timeout" in created


def test_create_pool_requires_dsn(monkeypatch):
    monkeypatch.setattr(connection.config, "DATABASE_URI", None)
    with pytest.raises(RuntimeError):
        create_pool()
