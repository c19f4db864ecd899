"""
Analysis Pipeline

Explicit entry points for one analysis pass. Each function can be
called on its own; `run_full_pass` chains them.
"""

from typing import Optional, Sequence
import logging

from dbinsight.config import InsightConfig
from dbinsight.core.connection import QueryCapability
from dbinsight.core.graph_layout import GraphLayoutEngine
from dbinsight.core.health_scorer import HealthScorer
from dbinsight.core.models import (
    AnalysisResult,
    GraphLayout,
    HealthReport,
    Schema,
    StatisticsResult,
)
from dbinsight.core.schema_introspector import SchemaIntrospector
from dbinsight.core.statistics_engine import StatisticsEngine

logger = logging.getLogger(__name__)


def introspect(query: QueryCapability, config: Optional[InsightConfig] = None) -> Schema:
    """Read the schema through the query capability."""
    return SchemaIntrospector(query, config).introspect()


def analyze(
    query: QueryCapability,
    schema: Schema,
    table_name: str,
    columns: Optional[Sequence[str]] = None,
    config: Optional[InsightConfig] = None,
) -> StatisticsResult:
    """
    Statistics, insights and correlations for columns of one table.

    An unknown table yields an empty result rather than an error.
    """
    table = schema.get_table(table_name)
    if table is None:
        logger.warning(f"Table {table_name} is not in the schema")
        return StatisticsResult(table=table_name)
    return StatisticsEngine(query, config).analyze(table, columns)


def score(schema: Schema, config: Optional[InsightConfig] = None) -> HealthReport:
    """Health checks and scores for the schema."""
    return HealthScorer(config).score(schema)


def layout(schema: Schema, config: Optional[InsightConfig] = None) -> GraphLayout:
    """Graph geometry for the schema."""
    return GraphLayoutEngine(config).layout(schema)


def run_full_pass(query: QueryCapability, config: Optional[InsightConfig] = None) -> AnalysisResult:
    """
    Introspect, profile every column, score and lay out the database.

    Every call recomputes everything from the current database state.
    """
    schema = introspect(query, config)
    statistics = StatisticsEngine(query, config).profile_schema(schema)
    return AnalysisResult(
        schema=schema,
        statistics=statistics,
        health=score(schema, config),
        graph=layout(schema, config),
    )
