"""Tests for the diagram models and graph derivation helpers."""

import pytest
from pydantic import ValidationError

from flowchart_core import (
    Connection,
    Diagram,
    InvalidDiagramError,
    LayoutDirection,
    LayoutOptions,
    Shape,
    ShapeType,
    coerce_diagram,
)
from flowchart_core.graph import (
    build_adjacency,
    hierarchy_levels,
    in_degrees,
    leaf_ids,
    root_ids,
    undirected_adjacency,
    valid_connections,
)

from tests.helpers import make_diagram


class TestShape:
    """Tests for the Shape model."""

    def test_defaults(self):
        shape = Shape(id="A")
        assert shape.type == ShapeType.PROCESS
        assert shape.position is None
        assert shape.is_positioned is False
        assert shape.size.width == 120
        assert shape.size.height == 60

    def test_generated_id(self):
        assert Shape().id != Shape().id

    def test_move_to_marks_positioned(self):
        shape = Shape(id="A")
        shape.move_to(0, 0)
        assert shape.is_positioned is True
        assert (shape.position.x, shape.position.y) == (0, 0)

    def test_type_from_string(self):
        assert Shape(id="A", type="diamond").type == ShapeType.DIAMOND

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Shape(id="A", type="blob")


class TestConnection:
    """Tests for the Connection model."""

    def test_source_target(self):
        conn = Connection(source="A", target="B", label="yes")
        assert (conn.source, conn.target, conn.label) == ("A", "B", "yes")

    def test_legacy_from_to(self):
        conn = Connection.model_validate({"from": "A", "to": "B"})
        assert conn.source == "A"
        assert conn.target == "B"

    def test_self_loop(self):
        assert Connection(source="A", target="A").is_self_loop is True
        assert Connection(source="A", target="B").is_self_loop is False


class TestDiagram:
    """Tests for the Diagram model."""

    def test_get_shape(self, linear_diagram):
        assert linear_diagram.get_shape("B").id == "B"
        assert linear_diagram.get_shape("missing") is None

    def test_shape_ids_in_order(self, linear_diagram):
        assert linear_diagram.shape_ids == ["A", "B", "C"]

    def test_from_json_dict_accepts_nodes_and_edges(self):
        diagram = Diagram.from_json_dict({
            "name": "legacy",
            "nodes": [{"id": "A"}, {"id": "B", "type": "decision"}],
            "edges": [{"from": "A", "to": "B"}],
        })
        assert diagram.name == "legacy"
        assert diagram.shape_ids == ["A", "B"]
        assert diagram.connections[0].target == "B"

    def test_json_round_trip_keeps_unpositioned(self, linear_diagram):
        data = linear_diagram.to_json_dict()
        assert "position" not in data["shapes"][0]
        restored = Diagram.from_json_dict(data)
        assert restored.shape_ids == linear_diagram.shape_ids
        assert all(not s.is_positioned for s in restored.shapes)


class TestCoerceDiagram:
    """Tests for coerce_diagram."""

    def test_passes_diagram_through(self, linear_diagram):
        assert coerce_diagram(linear_diagram) is linear_diagram

    def test_accepts_dict(self):
        diagram = coerce_diagram({"shapes": [{"id": "A"}], "connections": []})
        assert diagram.shape_ids == ["A"]

    def test_none_rejected(self):
        with pytest.raises(InvalidDiagramError):
            coerce_diagram(None)

    def test_invalid_dict_rejected(self):
        with pytest.raises(InvalidDiagramError):
            coerce_diagram({"shapes": [{"id": "A", "type": "blob"}]})


class TestLayoutOptions:
    """Tests for LayoutOptions."""

    def test_camel_case_keys(self):
        options = LayoutOptions.model_validate({"levelSeparation": 50, "centerX": 10})
        assert options.level_separation == 50
        assert options.center_x == 10

    def test_set_values_only_includes_given(self):
        options = LayoutOptions(direction="left-right", columns=4)
        assert options.set_values() == {
            "direction": LayoutDirection.LEFT_RIGHT,
            "columns": 4,
        }

    def test_negative_iterations_rejected(self):
        with pytest.raises(ValidationError):
            LayoutOptions(iterations=-1)


class TestGraphHelpers:
    """Tests for adjacency derivation."""

    def test_adjacency_ignores_dangling(self):
        diagram = make_diagram([("A", "B")])
        diagram.connections.append(Connection(source="A", target="ghost"))
        diagram.connections.append(Connection(source="ghost", target="B"))

        adjacency = build_adjacency(diagram.shapes, diagram.connections)
        assert adjacency == {"A": ["B"], "B": []}
        assert len(valid_connections(diagram.shapes, diagram.connections)) == 1

    def test_adjacency_keeps_multi_edges(self):
        diagram = make_diagram([("A", "B"), ("A", "B")])
        adjacency = build_adjacency(diagram.shapes, diagram.connections)
        assert adjacency["A"] == ["B", "B"]
        assert in_degrees(adjacency)["B"] == 2

    def test_roots_and_leaves(self, diamond_diagram):
        adjacency = build_adjacency(diamond_diagram.shapes, diamond_diagram.connections)
        assert root_ids(adjacency) == ["A"]
        assert leaf_ids(adjacency) == ["D"]

    def test_undirected_adjacency(self):
        adjacency = undirected_adjacency({"A": ["B", "B"], "B": [], "C": []})
        assert adjacency == {"A": ["B"], "B": ["A"], "C": []}

    def test_hierarchy_levels(self, diamond_diagram):
        adjacency = build_adjacency(diamond_diagram.shapes, diamond_diagram.connections)
        assert hierarchy_levels(adjacency) == [["A"], ["B", "C"], ["D"]]

    def test_hierarchy_levels_terminate_on_cycles(self):
        diagram = make_diagram([("R", "A"), ("A", "B"), ("B", "A")])
        adjacency = build_adjacency(diagram.shapes, diagram.connections)
        assert hierarchy_levels(adjacency) == [["R"], ["A"], ["B"]]

    def test_rootless_cycle_has_no_levels(self, cyclic_diagram):
        adjacency = build_adjacency(cyclic_diagram.shapes, cyclic_diagram.connections)
        assert hierarchy_levels(adjacency) == []
