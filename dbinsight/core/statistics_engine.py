"""
Statistics Engine

Computes descriptive statistics for table columns, generates
natural-language insights and measures linear correlation between
numeric columns.
"""

from fractions import Fraction
from typing import Any, Dict, List, Optional, Sequence
import logging
import math
import re

import numpy as np

from dbinsight.config import InsightConfig
from dbinsight.core.connection import QueryCapability
from dbinsight.core.models import (
    Column,
    ColumnStatistics,
    CorrelationResult,
    Schema,
    StatisticsResult,
    Table,
    ValueCount,
)
from dbinsight.core.schema_introspector import quote_identifier

logger = logging.getLogger(__name__)

NUMERIC_TYPE_PATTERN = re.compile(r"int|real|float|double|numeric", re.IGNORECASE)

# Relative width of the band-edge zone decided with exact arithmetic
EDGE_TOLERANCE = 1e-6


def is_numeric_type(data_type: str) -> bool:
    """
    Heuristic numeric detection on a declared type string.

    SQLite type names are free text, so "INTEGER", "BIGINT" and
    "DOUBLE PRECISION" all count while "DECIMAL" does not.
    """
    return bool(NUMERIC_TYPE_PATTERN.search(data_type or ""))


def pearson_from_sums(
    n: float, sum_x: float, sum_y: float, sum_xy: float, sum_xx: float, sum_yy: float
) -> float:
    """
    Pearson's r from running sums.

    Returns NaN when either side has zero variance or there are no rows.
    """
    if not n:
        return float("nan")
    numerator = n * sum_xy - sum_x * sum_y
    spread = (n * sum_xx - sum_x * sum_x) * (n * sum_yy - sum_y * sum_y)
    if not spread > 0:
        return float("nan")
    r = numerator / math.sqrt(spread)
    if math.isnan(r):
        return r
    return max(-1.0, min(1.0, r))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_number(value: Any) -> str:
    """Render a statistic without a trailing .0 on whole numbers."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class StatisticsEngine:
    """
    Analyzes column values of one table through aggregate queries.

    This module handles:
    - NULL and distinct counts
    - Min, max, mean, population standard deviation
    - Middle value (median) and mode
    - Outlier, null and top-value insights
    - Pairwise Pearson correlation
    - Value distributions

    Nothing is cached: every call re-queries the database and keeps
    its sums and counts local to that call.
    """

    def __init__(
        self,
        query: QueryCapability,
        config: Optional[InsightConfig] = None,
    ):
        """
        Initialize the statistics engine.

        Args:
            query: Query capability
            config: Optional configuration (analysis thresholds)
        """
        self.query = query
        self.config = config or InsightConfig()
        self.analysis_config = self.config.analysis

    def analyze(
        self,
        table: Table,
        columns: Optional[Sequence[str]] = None,
    ) -> StatisticsResult:
        """
        Compute statistics, insights and correlations for selected columns.

        Args:
            table: Introspected table
            columns: Column names to analyze; all columns when omitted

        Returns:
            StatisticsResult scoped to the table and column selection
        """
        selected = self._select_columns(table, columns)
        if not selected:
            return StatisticsResult(table=table.name)

        logger.debug(f"Analyzing {table.name}: {[c.name for c in selected]}")

        column_stats = [self.column_statistics(table, column) for column in selected]

        value_distribution: List[ValueCount] = []
        if len(selected) == 1:
            value_distribution = self.top_values(
                table, selected[0].name, self.analysis_config.top_values_limit
            )

        insights = self._generate_insights(table, column_stats, value_distribution)

        numeric_columns = [c.name for c in selected if is_numeric_type(c.data_type)]
        correlations = self.correlate(table, numeric_columns)

        return StatisticsResult(
            table=table.name,
            columns=column_stats,
            insights=insights,
            correlations=correlations,
            value_distribution=value_distribution,
        )

    def profile_table(self, table: Table) -> StatisticsResult:
        """Analyze every column of a table."""
        return self.analyze(table, table.column_names)

    def profile_schema(self, schema: Schema) -> List[StatisticsResult]:
        """Analyze every column of every table, in schema order."""
        logger.info("Starting column profiling...")
        results = [self.profile_table(table) for table in schema]
        logger.info(f"Column profiling complete. Profiled {len(results)} tables.")
        return results

    def _select_columns(self, table: Table, columns: Optional[Sequence[str]]) -> List[Column]:
        if columns is None:
            return list(table.columns)

        selected = []
        seen = set()
        for name in columns:
            column = table.get_column(name)
            if column is None:
                logger.warning(f"Column {table.name}.{name} does not exist, skipping")
                continue
            if name in seen:
                continue
            seen.add(name)
            selected.append(column)
        return selected

    # ------------------------------------------------------------------
    # Column statistics
    # ------------------------------------------------------------------

    def column_statistics(self, table: Table, column: Column) -> ColumnStatistics:
        """
        Compute statistics for a single column.

        Counts come from one query. Numeric aggregates are only computed
        for numeric columns holding at least one non-null value; a failing
        aggregate query leaves its fields unset.
        """
        numeric = is_numeric_type(column.data_type)
        counts = self._get_counts(table.name, column.name)

        aggregates: Dict[str, Any] = {}
        if numeric and counts.get("not_null_count"):
            aggregates = self._get_numeric_aggregates(table.name, column.name)

        return ColumnStatistics(
            table=table.name,
            column=column.name,
            data_type=column.data_type,
            is_numeric=numeric,
            **counts,
            **aggregates,
        )

    def _get_counts(self, table_name: str, column_name: str) -> Dict[str, Any]:
        """Total, null, non-null and distinct counts."""
        t = quote_identifier(table_name)
        c = quote_identifier(column_name)
        try:
            rows = self.query.execute(f"""
                SELECT
                    COUNT(*) AS total,
                    COUNT({c}) AS not_null,
                    COUNT(DISTINCT {c}) AS distinct_count
                FROM {t}
            """)
        except Exception as e:
            logger.warning(f"Error counting values of {table_name}.{column_name}: {e}")
            return {}

        if not rows:
            return {}

        row = rows[0]
        total = int(row.get("total") or 0)
        not_null = int(row.get("not_null") or 0)
        return {
            "row_count": total,
            "null_count": total - not_null,
            "not_null_count": not_null,
            "distinct_count": int(row.get("distinct_count") or 0),
        }

    def _get_numeric_aggregates(self, table_name: str, column_name: str) -> Dict[str, Any]:
        """Min, max, mean, standard deviation, median and mode."""
        t = quote_identifier(table_name)
        c = quote_identifier(column_name)

        try:
            rows = self.query.execute(f"""
                SELECT MIN({c}) AS min_value, MAX({c}) AS max_value, AVG({c}) AS avg_value
                FROM {t}
                WHERE {c} IS NOT NULL
            """)
        except Exception as e:
            logger.warning(f"Error aggregating {table_name}.{column_name}: {e}")
            return {}

        if not rows or rows[0].get("avg_value") is None:
            return {}

        row = rows[0]
        aggregates: Dict[str, Any] = {
            "min": row.get("min_value"),
            "max": row.get("max_value"),
            "mean": float(row["avg_value"]),
        }

        # AVG over a float column can land one ulp outside [min, max]
        if all(isinstance(aggregates[k], (int, float)) for k in ("min", "max")):
            aggregates["mean"] = min(max(aggregates["mean"], aggregates["min"]), aggregates["max"])

        try:
            values = self._get_values(t, c)
            aggregates["std_dev"] = self.population_std_dev(values, aggregates["mean"])
            aggregates["outlier_count"] = self.count_outliers(
                values, self.analysis_config.outlier_std_multiplier
            )
        except Exception as e:
            logger.warning(f"Error computing standard deviation of {table_name}.{column_name}: {e}")

        try:
            aggregates["median"] = self.middle_value(t, c)
        except Exception as e:
            logger.warning(f"Error computing median of {table_name}.{column_name}: {e}")

        try:
            aggregates["mode"] = self.mode(t, c)
        except Exception as e:
            logger.warning(f"Error computing mode of {table_name}.{column_name}: {e}")

        return aggregates

    def _get_values(self, quoted_table: str, quoted_column: str) -> List[float]:
        rows = self.query.execute(
            f"SELECT {quoted_column} AS value FROM {quoted_table} WHERE {quoted_column} IS NOT NULL"
        )
        return [float(row["value"]) for row in rows]

    @staticmethod
    def population_std_dev(values: Sequence[float], mean: float) -> Optional[float]:
        """sqrt of the mean squared deviation (divides by n, not n - 1)."""
        if not values:
            return None
        deviations = np.asarray(values, dtype=float) - mean
        return float(np.sqrt(np.mean(deviations * deviations)))

    def middle_value(self, quoted_table: str, quoted_column: str) -> Any:
        """
        Median as the value at zero-based offset floor(count / 2) of the
        ascending non-null values.

        For an even count this picks one of the two middle elements
        instead of averaging them.
        """
        rows = self.query.execute(f"""
            SELECT {quoted_column} AS value
            FROM {quoted_table}
            WHERE {quoted_column} IS NOT NULL
            ORDER BY {quoted_column}
            LIMIT 1 OFFSET (
                SELECT COUNT({quoted_column}) FROM {quoted_table}
            ) / 2
        """)
        return rows[0]["value"] if rows else None

    def mode(self, quoted_table: str, quoted_column: str) -> Any:
        """
        Most frequent non-null value.

        Ties are broken by whichever group the engine returns first; the
        order among equally frequent values is not defined further.
        """
        rows = self.query.execute(f"""
            SELECT {quoted_column} AS value, COUNT(*) AS frequency
            FROM {quoted_table}
            WHERE {quoted_column} IS NOT NULL
            GROUP BY {quoted_column}
            ORDER BY frequency DESC
            LIMIT 1
        """)
        return rows[0]["value"] if rows else None

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def _generate_insights(
        self,
        table: Table,
        column_stats: List[ColumnStatistics],
        value_distribution: List[ValueCount],
    ) -> List[str]:
        """Generate insights in a fixed order: per column, top value, nulls."""
        insights: List[str] = []

        for stats in column_stats:
            # Loose typing lets text into numeric columns; MIN/MAX then return strings
            if stats.has_aggregates and _is_number(stats.min) and _is_number(stats.max):
                insights.append(
                    f"Column '{stats.column}' ranges from {format_number(stats.min)} "
                    f"to {format_number(stats.max)} with an average of {stats.mean:.2f}."
                )

            if stats.distinct_count and stats.not_null_count:
                unique_pct = stats.distinct_count / stats.not_null_count * 100
                insights.append(
                    f"{stats.column} has {stats.distinct_count} unique values "
                    f"({unique_pct:.1f}% of total)."
                )

            insight = self._outlier_insight(stats)
            if insight:
                insights.append(insight)

        if len(column_stats) == 1 and value_distribution:
            top = value_distribution[0]
            insights.append(
                f"Most common value in '{column_stats[0].column}' is '{format_number(top.value)}' "
                f"(appears {top.count} times)."
            )

        for stats in column_stats:
            if stats.null_count and stats.row_count:
                insights.append(
                    f"Column '{stats.column}' has {stats.null_count} NULL values "
                    f"({stats.null_count / stats.row_count * 100:.1f}%)."
                )

        return insights

    def _outlier_insight(self, stats: ColumnStatistics) -> Optional[str]:
        if not stats.outlier_count or stats.std_dev is None or stats.mean is None:
            return None

        spread = self.analysis_config.outlier_std_multiplier * stats.std_dev
        return (
            f"Found {stats.outlier_count} potential outliers in '{stats.column}' "
            f"(values >= {stats.mean + spread:.2f} or <= {stats.mean - spread:.2f})."
        )

    @staticmethod
    def count_outliers(values: Sequence[float], multiplier: float = 2.0) -> int:
        """
        Count values at least `multiplier` standard deviations from the mean.

        Squared deviations are compared against multiplier^2 * variance in
        floating point. Values whose comparison falls within rounding
        distance of the band edge are settled with exact rational
        arithmetic, so a value sitting on the edge always counts. A column
        with no spread has no outliers.
        """
        if not values:
            return 0

        data = np.asarray(values, dtype=float)
        if data.min() == data.max():
            return 0

        squared = (data - data.mean()) ** 2
        threshold = multiplier ** 2 * squared.mean()
        tolerance = threshold * EDGE_TOLERANCE

        count = int(np.count_nonzero(squared > threshold + tolerance))
        near_edge = np.abs(squared - threshold) <= tolerance
        if not near_edge.any():
            return count

        exact = [Fraction(v) for v in data.tolist()]
        mean = sum(exact) / len(exact)
        exact_threshold = Fraction(multiplier) ** 2 * sum((v - mean) ** 2 for v in exact) / len(exact)
        return count + sum(
            1 for v in data[near_edge].tolist() if (Fraction(v) - mean) ** 2 >= exact_threshold
        )

    # ------------------------------------------------------------------
    # Correlation
    # ------------------------------------------------------------------

    def correlate(self, table: Table, columns: Sequence[str]) -> List[CorrelationResult]:
        """Pearson correlation for every unordered pair of the given columns."""
        results: List[CorrelationResult] = []

        for i in range(len(columns)):
            for j in range(i + 1, len(columns)):
                coefficient = self.correlation(table.name, columns[i], columns[j])
                if coefficient is None or math.isnan(coefficient):
                    continue
                results.append(CorrelationResult(
                    table=table.name,
                    column_a=columns[i],
                    column_b=columns[j],
                    coefficient=coefficient,
                ))

        return results

    def correlation(self, table_name: str, column_a: str, column_b: str) -> Optional[float]:
        """
        Pearson's r over rows where both columns are non-null.

        Returns NaN for zero-variance input and None when the query fails.
        """
        t = quote_identifier(table_name)
        a = quote_identifier(column_a)
        b = quote_identifier(column_b)

        try:
            rows = self.query.execute(f"""
                SELECT
                    COUNT(*) AS n,
                    SUM({a}) AS sum_x,
                    SUM({b}) AS sum_y,
                    SUM({a} * {b}) AS sum_xy,
                    SUM({a} * {a}) AS sum_xx,
                    SUM({b} * {b}) AS sum_yy,
                    MIN({a}) = MAX({a}) AS flat_a,
                    MIN({b}) = MAX({b}) AS flat_b
                FROM {t}
                WHERE {a} IS NOT NULL AND {b} IS NOT NULL
            """)
        except Exception as e:
            logger.warning(f"Error correlating {table_name}.{column_a} and {column_b}: {e}")
            return None

        if not rows or not rows[0].get("n"):
            return float("nan")

        row = rows[0]
        # Rounding in the running sums can leave a constant column with a tiny nonzero spread
        if row.get("flat_a") or row.get("flat_b"):
            return float("nan")

        return pearson_from_sums(
            row["n"],
            row["sum_x"],
            row["sum_y"],
            row["sum_xy"],
            row["sum_xx"],
            row["sum_yy"],
        )

    # ------------------------------------------------------------------
    # Distributions
    # ------------------------------------------------------------------

    def top_values(self, table: Table, column_name: str, limit: int = 15) -> List[ValueCount]:
        """Most frequent non-null values, most frequent first."""
        t = quote_identifier(table.name)
        c = quote_identifier(column_name)
        try:
            rows = self.query.execute(f"""
                SELECT {c} AS value, COUNT(*) AS frequency
                FROM {t}
                WHERE {c} IS NOT NULL
                GROUP BY {c}
                ORDER BY frequency DESC
                LIMIT {int(limit)}
            """)
        except Exception as e:
            logger.warning(f"Error getting most common values of {table.name}.{column_name}: {e}")
            return []
        return [ValueCount(value=row["value"], count=int(row["frequency"])) for row in rows]

    def histogram(self, table: Table, column_name: str, limit: Optional[int] = None) -> List[ValueCount]:
        """Value counts in ascending value order, for charting a column."""
        limit = limit or self.analysis_config.histogram_limit
        t = quote_identifier(table.name)
        c = quote_identifier(column_name)
        try:
            rows = self.query.execute(f"""
                SELECT {c} AS value, COUNT(*) AS frequency
                FROM {t}
                WHERE {c} IS NOT NULL
                GROUP BY {c}
                ORDER BY value
                LIMIT {int(limit)}
            """)
        except Exception as e:
            logger.debug(f"Error building histogram of {table.name}.{column_name}: {e}")
            return []
        return [ValueCount(value=row["value"], count=int(row["frequency"])) for row in rows]
