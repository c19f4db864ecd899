"""Tests for health checks and scores."""

import pytest

from dbinsight.config import AnalysisConfig, InsightConfig
from dbinsight.core.health_scorer import (
    NO_ISSUES_MESSAGE,
    RECOMMENDATIONS,
    HealthScorer,
    detect_naming_pattern,
    largest_table_share,
    round_half_up,
)
from dbinsight.core.models import (
    Column,
    ForeignKey,
    HealthStatus,
    Index,
    Schema,
    Table,
)
from dbinsight.core.schema_introspector import SchemaIntrospector


def make_table(name, rows=0, pk=True, nullable=0, plain=1, index=False, fks=()):
    columns = []
    if pk:
        columns.append(Column("id", "INTEGER", nullable=False, is_primary_key=True))
    columns += [Column(f"n{i}", "TEXT", nullable=True) for i in range(nullable)]
    columns += [Column(f"c{i}", "TEXT", nullable=False) for i in range(plain)]
    return Table(
        name=name,
        columns=tuple(columns),
        foreign_keys=tuple(fks),
        indexes=(Index(f"idx_{name}"),) if index else (),
        row_count=rows,
    )


def check(report, check_id):
    return report.get_check(check_id)


class TestScenarios:
    def test_large_unindexed_table(self, orders_db, connect):
        schema = SchemaIntrospector(connect(orders_db)).introspect()
        report = HealthScorer().score(schema)

        indices = check(report, "indices")
        assert indices.status == HealthStatus.WARNING
        assert indices.score == 30
        assert indices.details == "1 tables with many rows are missing indices: orders"
        assert report.get_table_score("orders").score == 80
        assert report.get_table_score("customers").score == 100

    def test_isolated_tables(self):
        schema = Schema((make_table("alpha", 5), make_table("beta", 5)))
        report = HealthScorer().score(schema)

        structure = check(report, "structure")
        assert structure.status == HealthStatus.WARNING
        assert structure.score == 60
        assert report.statistics.orphaned_tables == 2
        assert RECOMMENDATIONS["structure"] in report.recommendations

    def test_pascal_case_names(self):
        schema = Schema(tuple(make_table(n) for n in ["Users", "OrderItems", "Products"]))
        report = HealthScorer().score(schema)

        naming = check(report, "naming")
        assert naming.status == HealthStatus.SUCCESS
        assert naming.score == 100
        assert report.naming_pattern == "PascalCase"


class TestHealthScorer:
    def test_empty_schema(self):
        report = HealthScorer().score(Schema())

        assert report.overall_score == 0
        assert report.checks == []
        assert report.table_scores == []
        assert report.statistics.total_tables == 0

    def test_check_order_is_fixed(self):
        report = HealthScorer().score(Schema((make_table("a"),)))

        assert [c.id for c in report.checks] == [
            "structure",
            "primary_keys",
            "indices",
            "nullable",
            "naming",
            "size_distribution",
        ]

    def test_overall_is_rounded_mean_of_checks(self, sample_db, connect):
        schema = SchemaIntrospector(connect(sample_db)).introspect()
        report = HealthScorer().score(schema)

        mean = sum(c.score for c in report.checks) / len(report.checks)
        assert report.overall_score == round_half_up(mean)
        assert 0 <= report.overall_score <= 100
        assert all(0 <= c.score <= 100 for c in report.checks)
        assert all(0 <= t.score <= 100 for t in report.table_scores)

    def test_primary_key_minority_missing_is_warning(self):
        schema = Schema((make_table("a"), make_table("b", pk=False)))
        pk = check(HealthScorer().score(schema), "primary_keys")

        assert pk.status == HealthStatus.WARNING
        assert pk.score == 50
        assert pk.details == "1 tables are missing primary keys: b"

    def test_primary_key_majority_missing_is_error(self):
        schema = Schema((make_table("a"), make_table("b", pk=False), make_table("c", pk=False)))
        pk = check(HealthScorer().score(schema), "primary_keys")

        assert pk.status == HealthStatus.ERROR
        assert pk.score == 33

    def test_all_primary_keys(self):
        pk = check(HealthScorer().score(Schema((make_table("a"), make_table("b")))), "primary_keys")

        assert pk.status == HealthStatus.SUCCESS
        assert pk.score == 100

    def test_small_tables_need_no_index(self):
        report = HealthScorer().score(Schema((make_table("a", rows=100),)))

        assert check(report, "indices").score == 100

    def test_index_threshold_from_config(self):
        config = InsightConfig(analysis=AnalysisConfig(index_row_threshold=10))
        schema = Schema((make_table("a", rows=50), make_table("b", rows=50, index=True)))
        indices = check(HealthScorer(config).score(schema), "indices")

        assert indices.status == HealthStatus.WARNING
        assert indices.score == 65

    @pytest.mark.parametrize(
        "nullable,plain,status,score",
        [
            (0, 3, HealthStatus.SUCCESS, 100),
            (2, 2, HealthStatus.WARNING, 60),
            (4, 0, HealthStatus.INFO, 20),
        ],
    )
    def test_nullability(self, nullable, plain, status, score):
        schema = Schema((make_table("a", nullable=nullable, plain=plain),))
        result = check(HealthScorer().score(schema), "nullable")

        assert result.status == status
        assert result.score == score

    def test_nullability_without_columns(self):
        schema = Schema((Table(name="empty"),))
        result = check(HealthScorer().score(schema), "nullable")

        assert result.score == 100
        assert result.details == "0% of columns allow NULL values"

    def test_inconsistent_naming(self):
        schema = Schema((make_table("users"), make_table("OrderItems")))
        naming = check(HealthScorer().score(schema), "naming")

        assert naming.status == HealthStatus.INFO
        assert naming.score == 70
        assert naming.details == "Tables have inconsistent naming patterns"

    def test_size_distribution(self):
        schema = Schema((make_table("big", rows=90), make_table("small", rows=10)))
        sizes = check(HealthScorer().score(schema), "size_distribution")

        assert sizes.status == HealthStatus.INFO
        assert sizes.score == 28
        assert sizes.details == "Largest tables: big (90 rows), small (10 rows)"

    def test_single_table_is_evenly_distributed(self):
        sizes = check(HealthScorer().score(Schema((make_table("only", rows=1000),))), "size_distribution")

        assert sizes.status == HealthStatus.SUCCESS
        assert sizes.score == 100

    def test_relationships_and_statistics(self):
        parent = make_table("parent", rows=3)
        child = make_table("child", rows=9, fks=[ForeignKey("parent_id", "parent", "id")])
        report = HealthScorer().score(Schema((parent, child, make_table("other", rows=0))))

        structure = check(report, "structure")
        assert structure.status == HealthStatus.SUCCESS
        assert structure.details == "Well-structured database with 1 defined relationships"
        assert report.statistics.total_rows == 12
        assert report.statistics.avg_rows_per_table == 4
        assert report.statistics.orphaned_tables == 1
        assert report.get_table_score("child").has_foreign_key

    def test_total_indexes_counts_created_indexes_only(self, make_db, connect):
        db = make_db([
            "CREATE TABLE links (a INTEGER, b INTEGER, code TEXT UNIQUE, PRIMARY KEY (a, b))",
            "CREATE INDEX idx_links_b ON links(b)",
        ])
        schema = SchemaIntrospector(connect(db)).introspect()
        report = HealthScorer().score(schema)

        assert len(schema.get_table("links").indexes) == 3
        assert report.statistics.total_indexes == 1
        assert report.get_table_score("links").has_index

    def test_table_score_penalties(self):
        scorer = HealthScorer()

        assert scorer.score_table(make_table("t", pk=False)).score == 70
        assert scorer.score_table(make_table("t", rows=500)).score == 80
        assert scorer.score_table(make_table("t", rows=500, index=True)).score == 100
        assert scorer.score_table(make_table("t", nullable=3, plain=0)).score == 90
        assert scorer.score_table(make_table("t", pk=False, rows=500, nullable=3, plain=0)).score == 40

    def test_no_issues_message(self):
        parent = make_table("parent")
        child = make_table("child", fks=[ForeignKey("parent_id", "parent", "id")])
        report = HealthScorer().score(Schema((parent, child)))

        assert report.recommendations == [NO_ISSUES_MESSAGE]

    def test_recommendations_follow_check_order(self):
        schema = Schema((make_table("alpha", pk=False), make_table("beta", pk=False)))
        report = HealthScorer().score(schema)

        assert report.recommendations == [
            RECOMMENDATIONS["structure"],
            RECOMMENDATIONS["primary_keys"],
        ]


class TestHelpers:
    def test_round_half_up(self):
        assert round_half_up(62.5) == 63
        assert round_half_up(62.4) == 62
        assert round_half_up(0.5) == 1

    @pytest.mark.parametrize(
        "names,expected",
        [
            (["users", "order_items"], (True, "snake_case")),
            (["users", "orderItems"], (True, "camelCase")),
            (["Users", "OrderItems"], (True, "PascalCase")),
            (["users", "Orders"], (False, None)),
            (["users"], (True, None)),
            (["users2", "orders"], (False, None)),
        ],
    )
    def test_detect_naming_pattern(self, names, expected):
        assert detect_naming_pattern(names) == expected

    def test_largest_table_share(self):
        assert largest_table_share([make_table("a", rows=0), make_table("b", rows=0)]) == 0.0
        assert largest_table_share([make_table("a", rows=3), make_table("b", rows=1)]) == 0.75
