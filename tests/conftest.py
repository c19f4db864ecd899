"""Shared pytest fixtures for all tests."""

import sqlite3
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import pytest

from dbinsight.config import create_default_config
from dbinsight.core.connection import DatabaseConnectionManager


class FailingQuery:
    """Query capability that raises for statements containing a marker.

    Every other statement is delegated to the wrapped capability.
    """

    def __init__(self, inner, fail_on: Sequence[str]):
        self.inner = inner
        self.fail_on = list(fail_on)
        self.failed: List[str] = []

    def execute(self, query: str) -> List[Dict[str, Any]]:
        for marker in self.fail_on:
            if marker in query:
                self.failed.append(query)
                raise RuntimeError(f"injected failure for {marker}")
        return self.inner.execute(query)


class RecordingQuery:
    """Query capability that records every statement it runs."""

    def __init__(self, inner):
        self.inner = inner
        self.queries: List[str] = []

    def execute(self, query: str) -> List[Dict[str, Any]]:
        self.queries.append(query)
        return self.inner.execute(query)


Rows = Iterable[Tuple[Any, ...]]


@pytest.fixture
def make_db(tmp_path) -> Callable[..., str]:
    """Create a SQLite file from DDL statements and row inserts.

    Usage: make_db(["CREATE TABLE ..."], {"INSERT INTO t VALUES (?, ?)": rows})
    """
    counter = {"n": 0}

    def _make(statements: Sequence[str], inserts: Optional[Dict[str, Rows]] = None) -> str:
        counter["n"] += 1
        path = tmp_path / f"test_{counter['n']}.db"
        conn = sqlite3.connect(str(path))
        try:
            for statement in statements:
                conn.execute(statement)
            for sql, rows in (inserts or {}).items():
                conn.executemany(sql, list(rows))
            conn.commit()
        finally:
            conn.close()
        return str(path)

    return _make


@pytest.fixture
def connect() -> Callable[[str], DatabaseConnectionManager]:
    """Open connection managers that are closed after the test."""
    managers: List[DatabaseConnectionManager] = []

    def _connect(db_path: str) -> DatabaseConnectionManager:
        manager = DatabaseConnectionManager(create_default_config(db_path=db_path).database)
        managers.append(manager)
        return manager

    yield _connect

    for manager in managers:
        manager.close()


@pytest.fixture
def orders_db(make_db) -> str:
    """customers <- orders, 150 orders and no secondary index."""
    return make_db(
        [
            "CREATE TABLE customers (id INTEGER PRIMARY KEY, name TEXT NOT NULL)",
            "CREATE TABLE orders ("
            " id INTEGER PRIMARY KEY,"
            " customer_id INTEGER NOT NULL REFERENCES customers(id),"
            " amount REAL NOT NULL)",
        ],
        {
            "INSERT INTO customers VALUES (?, ?)": [(i, f"c{i}") for i in range(1, 11)],
            "INSERT INTO orders VALUES (?, ?, ?)": [
                (i, i % 10 + 1, float(i * 2)) for i in range(1, 151)
            ],
        },
    )


@pytest.fixture
def sample_db(tmp_path) -> str:
    from dbinsight.demo.sample_db import create_sample_database

    return create_sample_database(str(tmp_path / "sample.db"), seed=7)


@pytest.fixture
def failing_query() -> Callable[..., FailingQuery]:
    return FailingQuery


@pytest.fixture
def recording_query() -> Callable[..., RecordingQuery]:
    return RecordingQuery
