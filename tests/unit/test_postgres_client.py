import pytest

from src.infrastructure.database.postgres_client import PostgresClient


class FakeCursor:
    def __init__(self, rows, fail=False):
        self.rows = rows
        self.fail = fail
        self.rowcount = len(rows)
        self.closed = False

    def execute(self, query, params=()):
        if self.fail:
            raise ValueError("syntax error")

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return self.rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False

    def cursor(self, cursor_factory=None):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True


class FakePool:
    def __init__(self, conn):
        self.conn = conn
        self.returned = []
        self.closed = False

    def getconn(self):
        return self.conn

    def putconn(self, conn):
        self.returned.append(conn)

    def closeall(self):
        self.closed = True


def make_client(rows, fail=False):
    client = PostgresClient()
    cursor = FakeCursor(rows, fail=fail)
    conn = FakeConnection(cursor)
    client.enabled = True
    client._pool = FakePool(conn)
    return client, conn, cursor


def test_disabled_client_refuses_connections(monkeypatch):
    monkeypatch.setenv("USE_LOCAL_DB", "0")
    client = PostgresClient()
    with pytest.raises(RuntimeError, match="not enabled"):
        client.execute_many("SELECT 1")


def test_execute_helpers_commit_and_return_connection(monkeypatch):
    monkeypatch.setenv("USE_LOCAL_DB", "0")
    client, conn, cursor = make_client([{"n": 2}, {"n": 3}])
    assert client.execute_one("SELECT n") == {"n": 2}
    assert client.execute_many("SELECT n") == [{"n": 2}, {"n": 3}]
    assert client.execute_update("DELETE FROM users") == 2
    assert conn.committed
    assert cursor.closed
    assert client._pool.returned == [conn, conn, conn]


def test_failed_query_rolls_back(monkeypatch):
    monkeypatch.setenv("USE_LOCAL_DB", "0")
    client, conn, _ = make_client([], fail=True)
    with pytest.raises(ValueError):
        client.execute_one("SELEKT")
    assert conn.rolled_back
    assert not conn.committed
    assert client._pool.returned == [conn]


def test_close_releases_pool(monkeypatch):
    monkeypatch.setenv("USE_LOCAL_DB", "0")
    client, _, _ = make_client([])
    client.close()
    assert client._pool.closed
