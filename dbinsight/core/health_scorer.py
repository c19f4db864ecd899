"""
Health Scorer

Runs a fixed battery of structural checks against the schema and
combines them into table-level and database-level health scores.
"""

from typing import Dict, List, Optional, Tuple
import logging
import math
import re

from dbinsight.config import InsightConfig
from dbinsight.core.models import (
    DatabaseStatistics,
    HealthCheck,
    HealthReport,
    HealthStatus,
    Schema,
    Table,
    TableHealth,
)

logger = logging.getLogger(__name__)


NAMING_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("snake_case", re.compile(r"^[a-z]+(_[a-z]+)*$")),
    ("camelCase", re.compile(r"^[a-z]+([A-Z][a-z]*)*$")),
    ("PascalCase", re.compile(r"^([A-Z][a-z]*)+$")),
]

RECOMMENDATIONS: Dict[str, str] = {
    "primary_keys": "Add primary keys to all tables to improve query performance and ensure data integrity.",
    "indices": "Create indices on frequently queried columns, especially in tables with many rows.",
    "nullable": "Consider making more columns NOT NULL to improve data quality and query performance.",
    "naming": "Standardize table and column naming conventions (e.g., use snake_case consistently).",
    "structure": "Define proper relationships between tables using foreign keys to improve data integrity.",
    "size_distribution": "Consider normalizing large tables further to distribute data more evenly.",
}

DEFAULT_RECOMMENDATION = "Review database design and apply best practices for optimal performance."

NO_ISSUES_MESSAGE = "Your database follows best practices. No critical issues found."

RECOMMENDATION_THRESHOLD = 80


def round_half_up(value: float) -> int:
    """Round .5 upwards, so 62.5 scores 63 rather than 62."""
    return int(math.floor(value + 0.5))


def detect_naming_pattern(names: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Check whether all names follow one naming convention.

    Returns (consistent, pattern). Fewer than two names are always
    consistent, with no pattern to report.
    """
    if len(names) < 2:
        return True, None

    for pattern_name, pattern in NAMING_PATTERNS:
        if all(pattern.match(name) for name in names):
            return True, pattern_name

    return False, None


def largest_table_share(tables: List[Table]) -> float:
    """Fraction of all rows held by the single largest table."""
    if len(tables) <= 1:
        return 0.0

    total_rows = sum(t.row_count for t in tables)
    if total_rows == 0:
        return 0.0

    return max(t.row_count for t in tables) / total_rows


class HealthScorer:
    """
    Scores a schema against six weighted design checks.

    Checks run in a fixed order (structure, primary keys, indexing,
    nullability, naming, size distribution) so reports are stable
    across runs. The overall score is the rounded mean of the check
    scores; every check below 80 contributes one recommendation.
    """

    def __init__(self, config: Optional[InsightConfig] = None):
        self.config = config or InsightConfig()
        self.index_row_threshold = self.config.analysis.index_row_threshold

    def score(self, schema: Schema) -> HealthReport:
        """
        Evaluate the schema.

        Args:
            schema: Introspected schema

        Returns:
            HealthReport; empty when the schema has no tables
        """
        if not schema.tables:
            logger.info("No tables to score")
            return HealthReport()

        tables = list(schema.tables)
        statistics = self.compute_statistics(schema)
        consistent, pattern = detect_naming_pattern(schema.table_names)

        checks = [
            self._check_structure(statistics),
            self._check_primary_keys(tables),
            self._check_indexes(tables),
            self._check_nullability(tables, statistics),
            self._check_naming(consistent, pattern),
            self._check_size_distribution(tables),
        ]

        overall = round_half_up(sum(c.score for c in checks) / len(checks))
        table_scores = [self.score_table(t) for t in tables]

        logger.info(f"Health score: {overall}/100 across {len(tables)} tables")

        return HealthReport(
            overall_score=overall,
            checks=checks,
            table_scores=table_scores,
            recommendations=self.recommendations(checks),
            statistics=statistics,
            naming_pattern=pattern,
        )

    def compute_statistics(self, schema: Schema) -> DatabaseStatistics:
        """Aggregate counts for the schema."""
        total_tables = len(schema)
        total_rows = schema.total_rows
        distinct_relationships = {str(rel) for rel in schema.relationships}

        return DatabaseStatistics(
            total_tables=total_tables,
            total_rows=total_rows,
            # Indexes SQLite creates for PRIMARY KEY and UNIQUE constraints are not counted
            total_indexes=sum(1 for t in schema for index in t.indexes if index.origin == "c"),
            total_columns=sum(t.column_count for t in schema),
            total_relationships=len(distinct_relationships),
            avg_rows_per_table=round_half_up(total_rows / total_tables) if total_tables else 0,
            orphaned_tables=len(schema.get_orphaned_tables()),
        )

    def score_table(self, table: Table) -> TableHealth:
        """
        Per-table score: 100, minus 30 without a primary key, minus 20
        for a large unindexed table, minus 10 when most columns are nullable.
        """
        score = 100
        if not table.has_primary_key:
            score -= 30
        if not table.has_index and table.row_count > self.index_row_threshold:
            score -= 20
        if table.nullable_column_count > table.column_count / 2:
            score -= 10

        return TableHealth(
            name=table.name,
            score=max(0, min(100, score)),
            row_count=table.row_count,
            total_columns=table.column_count,
            nullable_columns=table.nullable_column_count,
            has_primary_key=table.has_primary_key,
            has_index=table.has_index,
            has_foreign_key=table.has_foreign_key,
        )

    @staticmethod
    def recommendations(checks: List[HealthCheck]) -> List[str]:
        """One remediation per weak check, or the all-clear message."""
        weak = [c for c in checks if c.score < RECOMMENDATION_THRESHOLD]
        if not weak:
            return [NO_ISSUES_MESSAGE]
        return [RECOMMENDATIONS.get(c.id, DEFAULT_RECOMMENDATION) for c in weak]

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_structure(self, statistics: DatabaseStatistics) -> HealthCheck:
        related = statistics.total_relationships > 0
        return HealthCheck(
            id="structure",
            name="Database Structure",
            description="Evaluation of overall database schema design",
            status=HealthStatus.SUCCESS if related else HealthStatus.WARNING,
            score=100 if related else 60,
            details=(
                f"Well-structured database with {statistics.total_relationships} defined relationships"
                if related
                else "Database appears to have isolated tables with no defined relationships"
            ),
        )

    def _check_primary_keys(self, tables: List[Table]) -> HealthCheck:
        missing = [t.name for t in tables if not t.has_primary_key]

        if not missing:
            status = HealthStatus.SUCCESS
            score = 100
            details = "All tables have primary keys defined"
        else:
            status = HealthStatus.ERROR if len(missing) > len(tables) / 2 else HealthStatus.WARNING
            score = round_half_up(100 - len(missing) / len(tables) * 100)
            details = f"{len(missing)} tables are missing primary keys: {', '.join(missing)}"

        return HealthCheck(
            id="primary_keys",
            name="Primary Keys",
            description="Tables should have primary keys for better performance and data integrity",
            status=status,
            score=score,
            details=details,
        )

    def _check_indexes(self, tables: List[Table]) -> HealthCheck:
        large = [t for t in tables if t.row_count > self.index_row_threshold]
        missing = [t.name for t in large if not t.has_index]

        if not missing:
            status = HealthStatus.SUCCESS
            score = 100
            details = "All tables that need indices have them"
        else:
            status = HealthStatus.WARNING
            score = round_half_up(100 - len(missing) / len(large) * 70)
            details = (
                f"{len(missing)} tables with many rows are missing indices: {', '.join(missing)}"
            )

        return HealthCheck(
            id="indices",
            name="Indexing",
            description="Tables with many rows should have indices for better query performance",
            status=status,
            score=score,
            details=details,
        )

    def _check_nullability(self, tables: List[Table], statistics: DatabaseStatistics) -> HealthCheck:
        nullable = sum(t.nullable_column_count for t in tables)
        ratio = nullable / statistics.total_columns if statistics.total_columns else 0.0

        if ratio < 0.3:
            status = HealthStatus.SUCCESS
        elif ratio < 0.6:
            status = HealthStatus.WARNING
        else:
            status = HealthStatus.INFO

        return HealthCheck(
            id="nullable",
            name="NULL Values",
            description="Excessive nullable columns can indicate schema design issues",
            status=status,
            score=round_half_up(100 - ratio * 100),
            details=f"{round_half_up(ratio * 100)}% of columns allow NULL values",
        )

    def _check_naming(self, consistent: bool, pattern: Optional[str]) -> HealthCheck:
        if consistent:
            details = "Tables follow a consistent naming pattern"
            if pattern:
                details += f" ({pattern})"
        else:
            details = "Tables have inconsistent naming patterns"

        return HealthCheck(
            id="naming",
            name="Naming Consistency",
            description="Consistent table naming improves schema readability",
            status=HealthStatus.SUCCESS if consistent else HealthStatus.INFO,
            score=100 if consistent else 70,
            details=details,
        )

    def _check_size_distribution(self, tables: List[Table]) -> HealthCheck:
        share = largest_table_share(tables)

        if share < 0.7:
            status = HealthStatus.SUCCESS
        elif share < 0.9:
            status = HealthStatus.WARNING
        else:
            status = HealthStatus.INFO

        # Stable sort keeps introspection order among equally sized tables
        largest = sorted(tables, key=lambda t: t.row_count, reverse=True)[:3]

        return HealthCheck(
            id="size_distribution",
            name="Data Distribution",
            description="Evaluation of how data is distributed across tables",
            status=status,
            score=round_half_up(100 - share * 80),
            details="Largest tables: " + ", ".join(f"{t.name} ({t.row_count} rows)" for t in largest),
        )
