"""Tests for ``dataquery.adapters.postgresql``: PostgreSQL adapter."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from dataquery.adapters.postgresql import PostgreSQLAdapter, translate_numbered
from dataquery.dialect import PostgreSQLDialect
from dataquery.errors import DatabaseConnectionError


class TestTranslateNumbered:
    def test_in_order(self):
        assert translate_numbered("select * from t where a = $1 and b = $2") == (
            "select * from t where a = %s and b = %s",
            [0, 1],
        )

    def test_reordered_and_repeated(self):
        sql, order = translate_numbered("select $2, $1, $2")
        assert sql == "select %s, %s, %s"
        assert order == [1, 0, 1]

    def test_escapes_percent(self):
        sql, order = translate_numbered("select * from t where name like '%a%' and x = $1 and y % 2 = 0")
        assert sql == "select * from t where name like '%%a%%' and x = %s and y %% 2 = 0"
        assert order == [0]

    def test_dollar_inside_literal_untouched(self):
        sql, order = translate_numbered("select '$1' as lit, $1")
        assert sql == "select '$1' as lit, %s"
        assert order == [0]


class TestPostgreSQLAdapterInit:
    def test_default_config(self):
        adapter = PostgreSQLAdapter()
        assert adapter.db_type.value == "postgresql"
        assert adapter.is_connected is False
        assert adapter.dialect is PostgreSQLDialect

    def test_custom_config(self):
        adapter = PostgreSQLAdapter(
            host="db.example.com",
            port=5433,
            database="mydb",
            username="admin",
            password="secret",
            max_conns=20,
        )
        assert adapter.config.effective_port == 5433
        assert adapter.config.max_conns == 20


class TestPostgreSQLAdapterPrepare:
    def test_prepare_reorders_params(self):
        adapter = PostgreSQLAdapter()
        assert adapter.prepare("select $2, $1", ("a", "b")) == ("select %s, %s", ("b", "a"))

    def test_prepare_without_params_keeps_sql(self):
        adapter = PostgreSQLAdapter()
        assert adapter.prepare("select '100%'", ()) == ("select '100%'", None)

    def test_prepare_many(self):
        adapter = PostgreSQLAdapter()
        sql, rows = adapter.prepare_many("insert into t values ($1, $2)", [(1, 2), (3, 4)])
        assert sql == "insert into t values (%s, %s)"
        assert rows == [(1, 2), (3, 4)]


class TestPostgreSQLAdapterConnect:
    @pytest.fixture(autouse=True)
    def _driver(self):
        pytest.importorskip("psycopg2")

    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_connect_success(self, mock_pool_cls):
        mock_pool_cls.return_value = MagicMock()

        adapter = PostgreSQLAdapter(host="localhost", database="app", min_conns=2, max_conns=5)
        adapter.connect()
        assert adapter.is_connected is True
        kwargs = mock_pool_cls.call_args.kwargs
        assert kwargs["minconn"] == 2
        assert kwargs["maxconn"] == 5
        assert kwargs["port"] == 5432

    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_connect_failure(self, mock_pool_cls):
        import psycopg2

        mock_pool_cls.side_effect = psycopg2.OperationalError("Connection refused")

        adapter = PostgreSQLAdapter(host="bad-host", database="app")
        with pytest.raises(DatabaseConnectionError, match="Failed to connect"):
            adapter.connect()

    @patch("psycopg2.pool.ThreadedConnectionPool")
    def test_acquire_release_use_pool(self, mock_pool_cls):
        pool = MagicMock()
        mock_pool_cls.return_value = pool

        adapter = PostgreSQLAdapter(database="app")
        conn = adapter.acquire()
        assert conn is pool.getconn.return_value
        adapter.release(conn)
        pool.putconn.assert_called_once_with(conn)
        adapter.disconnect()
        pool.closeall.assert_called_once()
        assert adapter.is_connected is False
