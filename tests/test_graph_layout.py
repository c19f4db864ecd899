"""Tests for the schema graph layout."""

import math

import pytest

from dbinsight.config import InsightConfig, LayoutConfig
from dbinsight.core.graph_layout import PALETTE, GraphLayoutEngine, node_size
from dbinsight.core.models import Column, ForeignKey, Schema, Table


def make_table(name, columns=1, fks=()):
    return Table(
        name=name,
        columns=tuple(Column(f"c{i}", "INTEGER", is_primary_key=i == 0) for i in range(columns)),
        foreign_keys=tuple(fks),
    )


class TestNodeSize:
    def test_minimum_width(self):
        assert node_size(make_table("t", columns=2)) == (120, 88)

    def test_width_grows_with_name(self):
        width, height = node_size(make_table("a_really_long_table_name", columns=0))
        assert width == len("a_really_long_table_name") * 8
        assert height == 40


class TestGraphLayoutEngine:
    def test_empty_schema(self):
        layout = GraphLayoutEngine().layout(Schema())

        assert layout.nodes == []
        assert layout.edges == []

    def test_single_table_sits_right_of_centre(self):
        layout = GraphLayoutEngine().layout(Schema((make_table("only"),)))

        node = layout.nodes[0]
        assert node.x == pytest.approx(440)
        assert node.y == pytest.approx(300)
        assert node.color == PALETTE[0]

    def test_nodes_on_circle(self):
        tables = tuple(make_table(f"t{i}") for i in range(4))
        layout = GraphLayoutEngine().layout(Schema(tables))

        radius = 160
        expected = [(560, 300), (400, 460), (240, 300), (400, 140)]
        for node, (x, y) in zip(layout.nodes, expected):
            assert node.x == pytest.approx(x)
            assert node.y == pytest.approx(y)
            assert math.hypot(node.x - 400, node.y - 300) == pytest.approx(radius)

    def test_radius_is_capped(self):
        engine = GraphLayoutEngine()

        assert engine.radius(3) == 120
        assert engine.radius(7) == 280
        assert engine.radius(8) == 300
        assert engine.radius(50) == 300

    def test_layout_geometry_from_config(self):
        config = InsightConfig(layout=LayoutConfig(center_x=0, center_y=0, max_radius=50))
        layout = GraphLayoutEngine(config).layout(Schema((make_table("a"), make_table("b"))))

        assert layout.nodes[0].x == pytest.approx(50)
        assert layout.nodes[1].x == pytest.approx(-50)

    def test_colours_cycle(self):
        tables = tuple(make_table(f"t{i}") for i in range(10))
        layout = GraphLayoutEngine().layout(Schema(tables))

        assert [n.color for n in layout.nodes[:8]] == PALETTE
        assert layout.nodes[8].color == PALETTE[0]
        assert layout.nodes[9].color == PALETTE[1]

    def test_edges_join_node_centres(self):
        parent = make_table("parent", columns=2)
        child = make_table("child", columns=3, fks=[ForeignKey("c1", "parent", "c0")])
        layout = GraphLayoutEngine().layout(Schema((parent, child)))

        assert len(layout.edges) == 1
        edge = layout.edges[0]
        assert edge.start == layout.get_node("child").center
        assert edge.end == layout.get_node("parent").center
        assert edge.label == "c1 → c0"

        mid_x = (edge.start[0] + edge.end[0]) / 2
        mid_y = (edge.start[1] + edge.end[1]) / 2
        assert edge.label_position == pytest.approx((mid_x, mid_y - 10))

    def test_foreign_key_columns_are_marked(self):
        parent = make_table("parent", columns=2)
        child = make_table("child", columns=3, fks=[ForeignKey("c1", "parent", "c0")])
        node = GraphLayoutEngine().layout(Schema((parent, child))).get_node("child")

        flags = {c.name: (c.is_primary_key, c.is_foreign_key) for c in node.columns}
        assert flags == {"c0": (True, False), "c1": (False, True), "c2": (False, False)}

    def test_self_reference(self):
        table = make_table("employees", columns=2, fks=[ForeignKey("c1", "employees", "c0")])
        edge = GraphLayoutEngine().layout(Schema((table,))).edges[0]

        assert edge.is_self_reference
        assert edge.start == edge.end

    def test_edge_to_missing_table_is_dropped(self):
        table = make_table("orphan", fks=[ForeignKey("c0", "elsewhere", "id")])
        layout = GraphLayoutEngine().layout(Schema((table,)))

        assert layout.edges == []

    def test_layout_is_deterministic(self, sample_db, connect):
        from dbinsight.core.schema_introspector import SchemaIntrospector

        schema = SchemaIntrospector(connect(sample_db)).introspect()
        engine = GraphLayoutEngine()

        assert engine.layout(schema).to_dict() == engine.layout(schema).to_dict()

    def test_node_hit_testing(self):
        layout = GraphLayoutEngine().layout(Schema((make_table("only"),)))
        node = layout.nodes[0]

        assert layout.node_at(node.x + 1, node.y + 1) is node
        assert layout.node_at(node.x - 1, node.y) is None
