"""Tests for the SQLAlchemy-backed query capability."""

import pytest

from dbinsight.config import DatabaseConfig
from dbinsight.core.connection import DatabaseConnectionError, DatabaseConnectionManager


class TestDatabaseConnectionManager:
    def test_execute_returns_dict_rows(self, orders_db, connect):
        rows = connect(orders_db).execute("SELECT id, name FROM customers ORDER BY id LIMIT 2")

        assert rows == [{"id": 1, "name": "c1"}, {"id": 2, "name": "c2"}]

    def test_execute_with_parameters(self, orders_db, connect):
        rows = connect(orders_db).execute("SELECT name FROM customers WHERE id = :id", {"id": 3})

        assert rows == [{"name": "c3"}]

    def test_test_connection_and_info(self, orders_db, connect):
        manager = connect(orders_db)

        assert manager.test_connection()
        info = manager.get_database_info()
        assert info["type"] == "sqlite"
        assert info["path"] == orders_db
        assert info["version"]

    def test_sql_error_is_wrapped(self, orders_db, connect):
        with pytest.raises(DatabaseConnectionError):
            connect(orders_db).execute("SELECT * FROM no_such_table")

    def test_in_memory_database_keeps_state(self):
        with DatabaseConnectionManager(DatabaseConfig()) as manager:
            manager.execute_script([
                "CREATE TABLE t (v INTEGER)",
                "INSERT INTO t VALUES (1), (2)",
            ])
            assert manager.execute("SELECT COUNT(*) AS n FROM t") == [{"n": 2}]

    def test_statement_without_rows(self):
        with DatabaseConnectionManager(DatabaseConfig(db_path=":memory:")) as manager:
            assert manager.execute("CREATE TABLE t (v INTEGER)") == []

    def test_close_disposes_engine(self, orders_db, connect):
        manager = connect(orders_db)
        manager.execute("SELECT 1")
        manager.close()

        # A closed manager reconnects on demand
        assert manager.execute("SELECT 1 AS one") == [{"one": 1}]
