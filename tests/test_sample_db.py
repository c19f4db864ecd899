"""Tests for the generated sample database."""

import sqlite3

from dbinsight.demo.sample_db import (
    CUSTOMER_COUNT,
    ORDER_COUNT,
    PRODUCT_COUNT,
    REVIEW_COUNT,
    create_sample_database,
)


def _dump(path):
    conn = sqlite3.connect(path)
    try:
        return {
            table: conn.execute(f"SELECT * FROM {table} ORDER BY rowid").fetchall()
            for table in ["customers", "products", "orders", "order_items", "reviews"]
        }
    finally:
        conn.close()


class TestSampleDatabase:
    def test_row_counts(self, sample_db):
        data = _dump(sample_db)

        assert len(data["customers"]) == CUSTOMER_COUNT
        assert len(data["products"]) == PRODUCT_COUNT
        assert len(data["orders"]) == ORDER_COUNT
        assert len(data["reviews"]) == REVIEW_COUNT
        assert len(data["order_items"]) >= ORDER_COUNT

    def test_same_seed_same_content(self, tmp_path):
        a = create_sample_database(str(tmp_path / "a.db"), seed=3)
        b = create_sample_database(str(tmp_path / "b.db"), seed=3)

        assert _dump(a) == _dump(b)

    def test_recreate_replaces_tables(self, tmp_path):
        path = str(tmp_path / "again.db")
        create_sample_database(path, seed=1)
        create_sample_database(path, seed=1)

        assert len(_dump(path)["customers"]) == CUSTOMER_COUNT

    def test_foreign_keys_hold(self, sample_db):
        conn = sqlite3.connect(sample_db)
        try:
            assert conn.execute("PRAGMA foreign_key_check").fetchall() == []
        finally:
            conn.close()
