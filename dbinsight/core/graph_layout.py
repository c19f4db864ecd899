"""
Graph Layout Engine

Places tables on a circle and derives foreign-key edge geometry for
the schema graph. Pure geometry: drawing, pan/zoom and hover state
belong to whoever renders the layout.
"""

from typing import List, Optional, Tuple
import logging
import math

from dbinsight.config import InsightConfig
from dbinsight.core.models import (
    GraphColumn,
    GraphLayout,
    Schema,
    SchemaGraphEdge,
    SchemaGraphNode,
    Table,
)

logger = logging.getLogger(__name__)

# Assigned by table position, so the same table order always gets the same colours
PALETTE = [
    "#1976d2",
    "#9c27b0",
    "#2e7d32",
    "#ed6c02",
    "#0288d1",
    "#8884d8",
    "#82ca9d",
    "#ffc658",
]

MIN_NODE_WIDTH = 120
CHAR_WIDTH = 8
HEADER_HEIGHT = 40
ROW_HEIGHT = 24


def node_size(table: Table) -> Tuple[int, int]:
    """Box size estimated from the name length and the column count."""
    width = max(len(table.name) * CHAR_WIDTH, MIN_NODE_WIDTH)
    height = HEADER_HEIGHT + table.column_count * ROW_HEIGHT
    return width, height


class GraphLayoutEngine:
    """
    Deterministic circular layout of a schema.

    The i-th of N tables (in introspection order) sits at angle
    i / N * 2π on a circle of radius min(300, N * 40). Edges run
    between node centres.
    """

    def __init__(self, config: Optional[InsightConfig] = None):
        self.config = config or InsightConfig()
        self.layout_config = self.config.layout

    def layout(self, schema: Schema) -> GraphLayout:
        """
        Compute node and edge geometry.

        Args:
            schema: Introspected schema

        Returns:
            GraphLayout with one node per table and one edge per foreign key
        """
        nodes = self._place_nodes(list(schema.tables))
        edges = self._build_edges(schema, nodes)
        logger.debug(f"Laid out {len(nodes)} nodes and {len(edges)} edges")
        return GraphLayout(nodes=nodes, edges=edges)

    def radius(self, table_count: int) -> float:
        return min(self.layout_config.max_radius, table_count * self.layout_config.radius_per_table)

    def _place_nodes(self, tables: List[Table]) -> List[SchemaGraphNode]:
        if not tables:
            return []

        count = len(tables)
        radius = self.radius(count)
        cx = self.layout_config.center_x
        cy = self.layout_config.center_y

        nodes = []
        for i, table in enumerate(tables):
            angle = i / count * math.pi * 2
            width, height = node_size(table)
            fk_columns = {fk.from_column for fk in table.foreign_keys}

            nodes.append(SchemaGraphNode(
                table=table.name,
                x=cx + math.cos(angle) * radius,
                y=cy + math.sin(angle) * radius,
                width=width,
                height=height,
                color=PALETTE[i % len(PALETTE)],
                columns=tuple(
                    GraphColumn(
                        name=col.name,
                        data_type=col.data_type,
                        is_primary_key=col.is_primary_key,
                        is_foreign_key=col.name in fk_columns,
                    )
                    for col in table.columns
                ),
            ))
        return nodes

    def _build_edges(self, schema: Schema, nodes: List[SchemaGraphNode]) -> List[SchemaGraphEdge]:
        by_name = {node.table: node for node in nodes}

        edges = []
        for rel in schema.relationships:
            source = by_name.get(rel.from_table)
            target = by_name.get(rel.to_table)
            if source is None or target is None:
                logger.debug(f"Skipping edge to table outside the schema: {rel}")
                continue

            edges.append(SchemaGraphEdge(
                from_table=rel.from_table,
                from_column=rel.from_column,
                to_table=rel.to_table,
                to_column=rel.to_column,
                start=source.center,
                end=target.center,
            ))
        return edges
