"""
Schema Introspector

Reads the catalog of a SQLite database through the query capability:
tables, columns, primary keys, foreign keys, indexes and row counts.
"""

from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence
import logging

from dbinsight.config import InsightConfig
from dbinsight.core.connection import QueryCapability
from dbinsight.core.models import Column, ForeignKey, Index, Schema, Table

logger = logging.getLogger(__name__)

SYSTEM_TABLE_PREFIX = "sqlite_"


class IntrospectionError(Exception):
    """Raised when a table's catalog metadata cannot be read."""
    pass


def quote_identifier(name: str) -> str:
    """Quote a table or column name for use inside SQL text."""
    return '"' + name.replace('"', '""') + '"'


def _field(row: Any, name: str, position: int, pragma: str) -> Any:
    """Read a pragma field by name, or by position for tuple-like rows."""
    if isinstance(row, Mapping):
        if name not in row:
            raise IntrospectionError(f"{pragma} row is missing field '{name}'")
        return row[name]
    if isinstance(row, Sequence) and not isinstance(row, (str, bytes)):
        if position >= len(row):
            raise IntrospectionError(
                f"{pragma} row has {len(row)} fields, expected at least {position + 1}"
            )
        return row[position]
    raise IntrospectionError(f"Unsupported {pragma} row type: {type(row).__name__}")


class TableInfoRow(NamedTuple):
    """One row of PRAGMA table_info."""
    cid: int
    name: str
    type: str
    notnull: bool
    default_value: Optional[str]
    pk: int

    @classmethod
    def from_row(cls, row: Any) -> "TableInfoRow":
        default = _field(row, "dflt_value", 4, "table_info")
        return cls(
            cid=int(_field(row, "cid", 0, "table_info")),
            name=str(_field(row, "name", 1, "table_info")),
            type=str(_field(row, "type", 2, "table_info") or ""),
            notnull=bool(_field(row, "notnull", 3, "table_info")),
            default_value=str(default) if default is not None else None,
            pk=int(_field(row, "pk", 5, "table_info") or 0),
        )


class ForeignKeyRow(NamedTuple):
    """One row of PRAGMA foreign_key_list."""
    id: int
    seq: int
    table: str
    from_column: str
    to_column: Optional[str]

    @classmethod
    def from_row(cls, row: Any) -> "ForeignKeyRow":
        to_column = _field(row, "to", 4, "foreign_key_list")
        return cls(
            id=int(_field(row, "id", 0, "foreign_key_list")),
            seq=int(_field(row, "seq", 1, "foreign_key_list")),
            table=str(_field(row, "table", 2, "foreign_key_list")),
            from_column=str(_field(row, "from", 3, "foreign_key_list")),
            to_column=str(to_column) if to_column is not None else None,
        )


class IndexRow(NamedTuple):
    """One row of PRAGMA index_list."""
    seq: int
    name: str
    unique: bool
    origin: str

    @classmethod
    def from_row(cls, row: Any) -> "IndexRow":
        # origin was added in SQLite 3.8.9; older engines return three fields
        if isinstance(row, Mapping):
            origin = row.get("origin", "c")
        else:
            origin = row[3] if len(row) > 3 else "c"
        return cls(
            seq=int(_field(row, "seq", 0, "index_list")),
            name=str(_field(row, "name", 1, "index_list")),
            unique=bool(_field(row, "unique", 2, "index_list")),
            origin=str(origin or "c"),
        )


class SchemaIntrospector:
    """
    Extracts schema metadata from a SQLite database.

    This module handles:
    - Table discovery (system tables excluded)
    - Column metadata extraction
    - Primary key detection
    - Foreign key detection
    - Index information
    - Row counts

    A table whose metadata cannot be read is skipped with a warning;
    the caller receives whatever tables could be introspected.
    """

    def __init__(
        self,
        query: QueryCapability,
        config: Optional[InsightConfig] = None,
    ):
        """
        Initialize the schema introspector.

        Args:
            query: Query capability to run catalog statements against
            config: Optional configuration (table filters)
        """
        self.query = query
        self.config = config or InsightConfig()

    def introspect(self) -> Schema:
        """
        Perform a complete schema scan.

        Returns:
            Schema with tables in catalog order
        """
        logger.info("Starting schema introspection...")

        try:
            table_names = self._get_filtered_tables()
        except Exception as e:
            logger.warning(f"Could not list tables: {e}")
            return Schema()

        logger.info(f"Found {len(table_names)} tables to introspect")

        tables: List[Table] = []
        for table_name in table_names:
            try:
                tables.append(self._introspect_table(table_name))
                logger.debug(f"Introspected table: {table_name}")
            except Exception as e:
                logger.warning(f"Skipping table {table_name}: {e}")

        schema = Schema(tables=tuple(self._resolve_implicit_targets(tables)))
        logger.info(f"Schema introspection complete. Introspected {len(schema)} tables.")
        return schema

    def _get_filtered_tables(self) -> List[str]:
        """Get list of tables after applying filters."""
        rows = self.query.execute(
            "SELECT name FROM sqlite_master "
            f"WHERE type='table' AND name NOT LIKE '{SYSTEM_TABLE_PREFIX}%'"
        )
        all_tables = [str(_field(row, "name", 0, "sqlite_master")) for row in rows]

        # Apply inclusion filter
        if self.config.include_tables:
            all_tables = [t for t in all_tables if t in self.config.include_tables]

        # Apply exclusion filter
        if self.config.exclude_tables:
            all_tables = [t for t in all_tables if t not in self.config.exclude_tables]

        return all_tables

    def _introspect_table(self, table_name: str) -> Table:
        """
        Read all metadata of a single table.

        Args:
            table_name: Name of the table

        Returns:
            Table with columns, keys, indexes and row count
        """
        quoted = quote_identifier(table_name)

        info_rows = [
            TableInfoRow.from_row(row)
            for row in self.query.execute(f"PRAGMA table_info({quoted})")
        ]
        fk_rows = [
            ForeignKeyRow.from_row(row)
            for row in self.query.execute(f"PRAGMA foreign_key_list({quoted})")
        ]
        index_rows = [
            IndexRow.from_row(row)
            for row in self.query.execute(f"PRAGMA index_list({quoted})")
        ]

        fk_columns = {fk.from_column for fk in fk_rows}
        columns = tuple(
            Column(
                name=info.name,
                data_type=info.type,
                nullable=not info.notnull,
                is_primary_key=info.pk > 0,
                is_foreign_key=info.name in fk_columns,
                default_value=info.default_value,
            )
            for info in sorted(info_rows, key=lambda r: r.cid)
        )

        foreign_keys = tuple(
            ForeignKey(from_column=fk.from_column, to_table=fk.table, to_column=fk.to_column)
            for fk in sorted(fk_rows, key=lambda r: (r.id, r.seq))
        )

        indexes = tuple(
            Index(name=idx.name, unique=idx.unique, origin=idx.origin)
            for idx in sorted(index_rows, key=lambda r: r.seq)
        )

        return Table(
            name=table_name,
            columns=columns,
            foreign_keys=foreign_keys,
            indexes=indexes,
            row_count=self._get_row_count(table_name),
        )

    def _get_row_count(self, table_name: str) -> int:
        """Get row count for a table."""
        rows = self.query.execute(
            f"SELECT COUNT(*) AS row_count FROM {quote_identifier(table_name)}"
        )
        if not rows:
            return 0
        return int(_field(rows[0], "row_count", 0, "row count") or 0)

    def _resolve_implicit_targets(self, tables: List[Table]) -> List[Table]:
        """
        Fill in the target column of keys declared as `REFERENCES parent`
        without a column list; SQLite then refers to the parent's primary key.
        """
        primary_keys: Dict[str, List[str]] = {t.name: t.primary_key for t in tables}

        resolved = []
        for table in tables:
            if all(fk.to_column is not None for fk in table.foreign_keys):
                resolved.append(table)
                continue

            foreign_keys = []
            for fk in table.foreign_keys:
                target_pk = primary_keys.get(fk.to_table, [])
                if fk.to_column is None and len(target_pk) == 1:
                    fk = ForeignKey(fk.from_column, fk.to_table, target_pk[0])
                foreign_keys.append(fk)

            resolved.append(Table(
                name=table.name,
                columns=table.columns,
                foreign_keys=tuple(foreign_keys),
                indexes=table.indexes,
                row_count=table.row_count,
            ))
        return resolved
