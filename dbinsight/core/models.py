"""
Analysis Models

Value types produced by one analysis pass: the typed schema, column
statistics, health checks and the schema graph geometry. Every
structure is built once from its inputs and never mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum
import math


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ForeignKey:
    """A single-column reference from the owning table to another table."""
    from_column: str
    to_table: str
    to_column: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.from_column, "table": self.to_table, "to": self.to_column}


@dataclass(frozen=True)
class Index:
    """An index as reported by the engine."""
    name: str
    unique: bool = False
    origin: str = "c"  # "c" created, "u" unique constraint, "pk" primary key

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "unique": self.unique, "origin": self.origin}


@dataclass(frozen=True)
class Column:
    """A column of a table."""
    name: str
    data_type: str
    nullable: bool = True
    is_primary_key: bool = False
    is_foreign_key: bool = False
    default_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.data_type,
            "nullable": self.nullable,
            "primary_key": self.is_primary_key,
            "foreign_key": self.is_foreign_key,
            "default": self.default_value,
        }


@dataclass(frozen=True)
class Relationship:
    """A directed foreign-key edge between two tables."""
    from_table: str
    from_column: str
    to_table: str
    to_column: Optional[str]

    def __str__(self) -> str:
        return f"{self.from_table}.{self.from_column} -> {self.to_table}.{self.to_column}"


@dataclass(frozen=True)
class Table:
    """A table with its columns, keys, indexes and current row count."""
    name: str
    columns: Tuple[Column, ...] = ()
    foreign_keys: Tuple[ForeignKey, ...] = ()
    indexes: Tuple[Index, ...] = ()
    row_count: int = 0

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def primary_key(self) -> List[str]:
        return [c.name for c in self.columns if c.is_primary_key]

    @property
    def has_primary_key(self) -> bool:
        return any(c.is_primary_key for c in self.columns)

    @property
    def has_index(self) -> bool:
        return len(self.indexes) > 0

    @property
    def has_foreign_key(self) -> bool:
        return len(self.foreign_keys) > 0

    @property
    def nullable_column_count(self) -> int:
        return sum(1 for c in self.columns if c.nullable)

    def get_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "row_count": self.row_count,
            "columns": [c.to_dict() for c in self.columns],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "indexes": [i.to_dict() for i in self.indexes],
        }


@dataclass(frozen=True)
class Schema:
    """Ordered collection of tables, in introspection order."""
    tables: Tuple[Table, ...] = ()

    def __len__(self) -> int:
        return len(self.tables)

    def __iter__(self):
        return iter(self.tables)

    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    @property
    def total_rows(self) -> int:
        return sum(t.row_count for t in self.tables)

    def get_table(self, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    @property
    def relationships(self) -> List[Relationship]:
        """All foreign-key edges, in table then key order."""
        return [
            Relationship(
                from_table=table.name,
                from_column=fk.from_column,
                to_table=fk.to_table,
                to_column=fk.to_column,
            )
            for table in self.tables
            for fk in table.foreign_keys
        ]

    def get_orphaned_tables(self) -> List[str]:
        """Tables that take part in no foreign-key relationship."""
        related = set()
        for rel in self.relationships:
            related.add(rel.from_table)
            related.add(rel.to_table)
        return [t.name for t in self.tables if t.name not in related]

    def to_dict(self) -> Dict[str, Any]:
        return {"tables": [t.to_dict() for t in self.tables]}


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass
class ColumnStatistics:
    """
    Descriptive statistics for one column.

    Counts are None only when the counting query failed. Numeric
    aggregates are filled in for numeric columns with at least one
    non-null value.
    """
    table: str
    column: str
    data_type: str
    is_numeric: bool = False

    row_count: Optional[int] = None
    null_count: Optional[int] = None
    not_null_count: Optional[int] = None
    distinct_count: Optional[int] = None

    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    std_dev: Optional[float] = None
    median: Optional[float] = None  # see StatisticsEngine.middle_value
    mode: Optional[Any] = None
    outlier_count: Optional[int] = None  # values on or beyond mean ± k·std_dev

    @property
    def null_percentage(self) -> Optional[float]:
        if not self.row_count or self.null_count is None:
            return None
        return self.null_count / self.row_count * 100

    @property
    def has_aggregates(self) -> bool:
        return self.mean is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "column": self.column,
            "type": self.data_type,
            "numeric": self.is_numeric,
            "row_count": self.row_count,
            "null_count": self.null_count,
            "not_null_count": self.not_null_count,
            "distinct_count": self.distinct_count,
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "std_dev": self.std_dev,
            "median": self.median,
            "mode": self.mode,
            "outlier_count": self.outlier_count,
        }


@dataclass(frozen=True)
class CorrelationResult:
    """Pearson correlation between two numeric columns of one table."""
    table: str
    column_a: str
    column_b: str
    coefficient: float

    @property
    def strength(self) -> str:
        value = abs(self.coefficient)
        if value >= 0.7:
            return "strong"
        if value >= 0.4:
            return "moderate"
        if value >= 0.2:
            return "weak"
        return "negligible"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "column_a": self.column_a,
            "column_b": self.column_b,
            "coefficient": self.coefficient,
        }


@dataclass(frozen=True)
class ValueCount:
    """A value and how many rows hold it."""
    value: Any
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "count": self.count}


@dataclass
class StatisticsResult:
    """Statistics for a caller-chosen subset of one table's columns."""
    table: str
    columns: List[ColumnStatistics] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)
    correlations: List[CorrelationResult] = field(default_factory=list)
    value_distribution: List[ValueCount] = field(default_factory=list)

    def get_column(self, name: str) -> Optional[ColumnStatistics]:
        for stats in self.columns:
            if stats.column == name:
                return stats
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "columns": [c.to_dict() for c in self.columns],
            "insights": list(self.insights),
            "correlations": [c.to_dict() for c in self.correlations],
            "value_distribution": [v.to_dict() for v in self.value_distribution],
        }


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthStatus(Enum):
    """Outcome of a health check."""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class HealthCheck:
    """One scored rule evaluated against the schema."""
    id: str
    name: str
    description: str
    status: HealthStatus
    score: int
    details: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "score": self.score,
            "details": self.details,
        }


@dataclass(frozen=True)
class TableHealth:
    """Health score and the structural facts it was derived from."""
    name: str
    score: int
    row_count: int
    total_columns: int
    nullable_columns: int
    has_primary_key: bool
    has_index: bool
    has_foreign_key: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": self.score,
            "row_count": self.row_count,
            "total_columns": self.total_columns,
            "nullable_columns": self.nullable_columns,
            "has_primary_key": self.has_primary_key,
            "has_index": self.has_index,
            "has_foreign_key": self.has_foreign_key,
        }


@dataclass(frozen=True)
class DatabaseStatistics:
    """Aggregate counts shown next to the health score."""
    total_tables: int = 0
    total_rows: int = 0
    total_indexes: int = 0
    total_columns: int = 0
    total_relationships: int = 0
    avg_rows_per_table: int = 0
    orphaned_tables: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_tables": self.total_tables,
            "total_rows": self.total_rows,
            "total_indexes": self.total_indexes,
            "total_columns": self.total_columns,
            "total_relationships": self.total_relationships,
            "avg_rows_per_table": self.avg_rows_per_table,
            "orphaned_tables": self.orphaned_tables,
        }


@dataclass
class HealthReport:
    """Database-level health: overall score, checks, tables, recommendations."""
    overall_score: int = 0
    checks: List[HealthCheck] = field(default_factory=list)
    table_scores: List[TableHealth] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    statistics: DatabaseStatistics = field(default_factory=DatabaseStatistics)
    naming_pattern: Optional[str] = None

    @property
    def rating(self) -> str:
        if not self.checks:
            return "No tables to evaluate."
        if self.overall_score >= 90:
            return "Excellent database design with best practices applied."
        if self.overall_score >= 70:
            return "Good database design with some minor improvement opportunities."
        if self.overall_score >= 50:
            return "Database has several issues that should be addressed."
        return "Critical database design issues detected."

    def get_check(self, check_id: str) -> Optional[HealthCheck]:
        for check in self.checks:
            if check.id == check_id:
                return check
        return None

    def get_table_score(self, name: str) -> Optional[TableHealth]:
        for table in self.table_scores:
            if table.name == name:
                return table
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "rating": self.rating,
            "naming_pattern": self.naming_pattern,
            "checks": [c.to_dict() for c in self.checks],
            "table_scores": [t.to_dict() for t in self.table_scores],
            "recommendations": list(self.recommendations),
            "statistics": self.statistics.to_dict(),
        }


# ---------------------------------------------------------------------------
# Graph layout
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GraphColumn:
    """Column row drawn inside a table box."""
    name: str
    data_type: str
    is_primary_key: bool
    is_foreign_key: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.data_type,
            "pk": self.is_primary_key,
            "fk": self.is_foreign_key,
        }


@dataclass(frozen=True)
class SchemaGraphNode:
    """A table box. (x, y) is the top-left corner."""
    table: str
    x: float
    y: float
    width: float
    height: float
    color: str
    columns: Tuple[GraphColumn, ...] = ()

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains(self, px: float, py: float) -> bool:
        """Point-in-box test used for hover and selection."""
        return (
            self.x <= px <= self.x + self.width
            and self.y <= py <= self.y + self.height
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "color": self.color,
            "columns": [c.to_dict() for c in self.columns],
        }


@dataclass(frozen=True)
class SchemaGraphEdge:
    """Directed foreign-key arrow between two node centres."""
    from_table: str
    from_column: str
    to_table: str
    to_column: Optional[str]
    start: Tuple[float, float]
    end: Tuple[float, float]

    @property
    def label(self) -> str:
        return f"{self.from_column} → {self.to_column}"

    @property
    def label_position(self) -> Tuple[float, float]:
        return ((self.start[0] + self.end[0]) / 2, (self.start[1] + self.end[1]) / 2 - 10)

    @property
    def angle(self) -> float:
        """Direction of the arrow at its head, in radians."""
        return math.atan2(self.end[1] - self.start[1], self.end[0] - self.start[0])

    @property
    def is_self_reference(self) -> bool:
        return self.from_table == self.to_table

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_table": self.from_table,
            "from_column": self.from_column,
            "to_table": self.to_table,
            "to_column": self.to_column,
            "start": list(self.start),
            "end": list(self.end),
            "label": self.label,
        }


@dataclass
class GraphLayout:
    """Positioned nodes and edges of the schema graph."""
    nodes: List[SchemaGraphNode] = field(default_factory=list)
    edges: List[SchemaGraphEdge] = field(default_factory=list)

    def get_node(self, table: str) -> Optional[SchemaGraphNode]:
        for node in self.nodes:
            if node.table == table:
                return node
        return None

    def node_at(self, px: float, py: float) -> Optional[SchemaGraphNode]:
        """Topmost node under a point; later nodes are drawn on top."""
        for node in reversed(self.nodes):
            if node.contains(px, py):
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


# ---------------------------------------------------------------------------
# Full pass
# ---------------------------------------------------------------------------

@dataclass
class AnalysisResult:
    """Everything one full pass produces."""
    schema: Schema
    statistics: List[StatisticsResult]
    health: HealthReport
    graph: GraphLayout

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema.to_dict(),
            "statistics": [s.to_dict() for s in self.statistics],
            "health": self.health.to_dict(),
            "graph": self.graph.to_dict(),
        }
