"""Tests for PostgresClient with the psycopg2 pool mocked."""

from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest

from clients.postgres_client import PostgresClient

DSN = "postgresql://jobs@localhost/jobs_test"


@pytest.fixture
def conn():
    """Mock connection whose cursor returns two rows."""
    conn = MagicMock()
    cursor = conn.cursor.return_value.__enter__.return_value
    cursor.description = [("id",), ("name",)]
    cursor.fetchall.return_value = [{"id": 1, "name": "Outlet"}, {"id": 2, "name": "Switch"}]
    return conn


@pytest.fixture
def db(conn):
    with patch("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool") as pool_cls:
        pool_cls.return_value.getconn.return_value = conn
        client = PostgresClient(DSN)
        yield client
        PostgresClient.close_all_pools()


def _cursor(conn):
    return conn.cursor.return_value.__enter__.return_value


class TestPostgresClientInit:
    def test_pool_shared_per_url(self):
        with patch("clients.postgres_client.psycopg2.pool.ThreadedConnectionPool") as pool_cls:
            PostgresClient(DSN)
            PostgresClient(DSN)
            assert pool_cls.call_count == 1
            PostgresClient.close_all_pools()


class TestExecuteMethods:
    def test_execute_returns_list_of_dicts(self, db, conn):
        rows = db.execute("SELECT id, name FROM items")

        assert rows == [{"id": 1, "name": "Outlet"}, {"id": 2, "name": "Switch"}]
        conn.commit.assert_called_once()

    def test_execute_without_result_returns_empty_list(self, db, conn):
        _cursor(conn).description = None

        assert db.execute("UPDATE items SET name = %s", ("x",)) == []

    def test_uuid_params_converted_to_strings(self, db, conn):
        item_id = uuid4()

        db.execute("SELECT * FROM items WHERE id = ANY(%s)", ([item_id],))

        assert _cursor(conn).execute.call_args.args[1] == ([str(item_id)],)

    def test_execute_single(self, db, conn):
        assert db.execute_single("SELECT 1") == {"id": 1, "name": "Outlet"}

        _cursor(conn).fetchall.return_value = []
        assert db.execute_single("SELECT 1 WHERE false") is None

    def test_connection_returned_to_pool(self, db, conn):
        db.execute("SELECT 1")
        pool = PostgresClient._connection_pools[DSN]
        pool.putconn.assert_called_once_with(conn)


class TestTransaction:
    def test_commits_once_on_success(self, db, conn):
        with db.transaction() as tx:
            tx.execute("DELETE FROM template_phases WHERE template_id = %s", (uuid4(),))
            tx.execute("INSERT INTO template_phases (id) VALUES (%s)", (uuid4(),))

        assert _cursor(conn).execute.call_count == 2
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()

    def test_rolls_back_and_reraises(self, db, conn):
        with pytest.raises(RuntimeError):
            with db.transaction() as tx:
                tx.execute("DELETE FROM template_phases")
                raise RuntimeError("insert failed")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
