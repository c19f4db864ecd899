"""Core modules for DB Insight."""

from dbinsight.core.connection import DatabaseConnectionManager, DatabaseConnectionError
from dbinsight.core.schema_introspector import SchemaIntrospector, IntrospectionError
from dbinsight.core.statistics_engine import StatisticsEngine
from dbinsight.core.health_scorer import HealthScorer
from dbinsight.core.graph_layout import GraphLayoutEngine
from dbinsight.core.pipeline import introspect, analyze, score, layout, run_full_pass

__all__ = [
    "DatabaseConnectionManager",
    "DatabaseConnectionError",
    "SchemaIntrospector",
    "IntrospectionError",
    "StatisticsEngine",
    "HealthScorer",
    "GraphLayoutEngine",
    "introspect",
    "analyze",
    "score",
    "layout",
    "run_full_pass",
]
