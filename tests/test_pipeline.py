"""Tests for the analysis pipeline entry points."""

from dbinsight import analyze, introspect, layout, run_full_pass, score
from dbinsight.demo.sample_db import TABLES


class TestPipeline:
    def test_full_pass_over_sample_database(self, sample_db, connect):
        result = run_full_pass(connect(sample_db))

        assert sorted(result.schema.table_names) == sorted(TABLES)
        assert [s.table for s in result.statistics] == result.schema.table_names
        assert len(result.health.checks) == 6
        assert [n.table for n in result.graph.nodes] == result.schema.table_names
        assert len(result.graph.edges) == len(result.schema.relationships) == 4

    def test_full_pass_is_idempotent(self, sample_db, connect):
        query = connect(sample_db)

        assert run_full_pass(query).to_dict() == run_full_pass(query).to_dict()

    def test_entry_points_compose(self, orders_db, connect):
        query = connect(orders_db)
        schema = introspect(query)

        stats = analyze(query, schema, "orders", ["amount"])
        assert stats.get_column("amount").row_count == 150

        assert score(schema).get_table_score("orders").score == 80
        assert layout(schema).get_node("customers") is not None

    def test_unknown_table_gives_empty_statistics(self, orders_db, connect):
        query = connect(orders_db)
        result = analyze(query, introspect(query), "missing")

        assert result.table == "missing"
        assert result.columns == []

    def test_empty_database(self, make_db, connect):
        result = run_full_pass(connect(make_db([])))

        assert result.statistics == []
        assert result.health.overall_score == 0
        assert result.graph.nodes == []

    def test_full_pass_survives_failing_queries(self, orders_db, connect, failing_query):
        query = failing_query(connect(orders_db), ['index_list("customers")', "AVG("])
        result = run_full_pass(query)

        assert result.schema.table_names == ["orders"]
        assert result.statistics[0].get_column("amount").mean is None
        assert result.statistics[0].get_column("amount").row_count == 150

    def test_recomputes_after_database_changes(self, orders_db, connect):
        import sqlite3

        query = connect(orders_db)
        before = run_full_pass(query)

        conn = sqlite3.connect(orders_db)
        conn.execute("CREATE INDEX idx_orders_customer ON orders(customer_id)")
        conn.commit()
        conn.close()

        after = run_full_pass(query)
        assert before.health.get_check("indices").score == 30
        assert after.health.get_check("indices").score == 100
