"""
Database Summary

Builds the structured overview of a database that a chat assistant
receives as context: tables, columns, row counts, sample rows and
foreign-key relationships.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json
import logging

from dbinsight.core.connection import QueryCapability
from dbinsight.core.models import Schema
from dbinsight.core.schema_introspector import quote_identifier

logger = logging.getLogger(__name__)


@dataclass
class TableSummary:
    """What the assistant is told about one table."""
    name: str
    columns: List[str]
    row_count: int
    sample_rows: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "row_count": self.row_count,
            "sample_rows": list(self.sample_rows),
        }


@dataclass
class DatabaseSummary:
    """Structured database overview, renderable as plain text."""
    tables: List[TableSummary] = field(default_factory=list)
    relationships: List[str] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return sum(t.row_count for t in self.tables)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tables": [t.to_dict() for t in self.tables],
            "relationships": list(self.relationships),
            "total_rows": self.total_rows,
        }

    def to_text(self) -> str:
        """Plain-text overview, the form forwarded to a language model."""
        count = len(self.tables)
        lines = [
            "Database Overview:",
            "",
            f"Database contains {count} table{'s' if count != 1 else ''}",
            f"Total records: {self.total_rows}",
            "",
        ]

        for table in self.tables:
            lines.append(f"Table: {table.name}")
            lines.append(f"- Columns: {', '.join(table.columns)}")
            lines.append(f"- Total rows: {table.row_count}")
            for row in table.sample_rows:
                lines.append(f"- Sample row: {json.dumps(row, default=str)}")
            lines.append("")

        if self.relationships:
            lines.append("Relationships:")
            lines.extend(f"- {rel}" for rel in self.relationships)
            lines.append("")

        return "\n".join(lines)


def build_database_summary(
    query: QueryCapability,
    schema: Schema,
    sample_rows: int = 1,
) -> DatabaseSummary:
    """
    Summarize the schema for a chat assistant.

    Sample rows are best effort: a table whose rows cannot be read is
    summarized without them.
    """
    tables = []
    for table in schema:
        samples: List[Dict[str, Any]] = []
        if sample_rows > 0 and table.row_count > 0:
            samples = _get_sample_rows(query, table.name, sample_rows)

        tables.append(TableSummary(
            name=table.name,
            columns=table.column_names,
            row_count=table.row_count,
            sample_rows=samples,
        ))

    return DatabaseSummary(
        tables=tables,
        relationships=[str(rel) for rel in schema.relationships],
    )


def _get_sample_rows(query: QueryCapability, table_name: str, limit: int) -> List[Dict[str, Any]]:
    try:
        return [
            dict(row)
            for row in query.execute(f"SELECT * FROM {quote_identifier(table_name)} LIMIT {int(limit)}")
        ]
    except Exception as e:
        logger.debug(f"Could not sample rows from {table_name}: {e}")
        return []
