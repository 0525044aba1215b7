"""Unit tests for the node-state reconciler."""

import pytest
from pydantic import ValidationError

from modgraph.core.types import Dimensions, LiveNode, NodeKind, Position
from modgraph.graph.reconciler import (
    DimensionsChange,
    PositionChange,
    RemoveChange,
    SelectChange,
    apply_node_changes,
    parse_node_changes,
)


@pytest.fixture
def nodes():
    return [
        LiveNode(id="a", type=NodeKind.MODULE, position=Position(x=1, y=2)),
        LiveNode(id="b", type=NodeKind.MODULE),
        LiveNode(id="g", type=NodeKind.GROUP),
    ]


def _by_id(nodes):
    return {node.id: node for node in nodes}


class TestApplyNodeChanges:
    def test_dimensions_set_width_height_and_measured(self, nodes):
        changes = [DimensionsChange(id="a", dimensions=Dimensions(width=320, height=180))]
        node = _by_id(apply_node_changes(changes, nodes))["a"]

        assert node.width == 320
        assert node.height == 180
        assert node.dimensions == Dimensions(width=320, height=180)
        assert node.measured == Dimensions(width=320, height=180)

    def test_measured_override(self, nodes):
        changes = [DimensionsChange(
            id="a",
            dimensions=Dimensions(width=320, height=180),
            measured=Dimensions(width=300, height=160),
        )]
        node = _by_id(apply_node_changes(changes, nodes))["a"]
        assert node.width == 320
        assert node.measured == Dimensions(width=300, height=160)

    def test_removal_discards_earlier_updates(self, nodes):
        changes = [
            PositionChange(id="a", position=Position(x=10, y=10)),
            RemoveChange(id="a"),
        ]
        assert "a" not in _by_id(apply_node_changes(changes, nodes))

    def test_removal_wins_over_later_updates(self, nodes):
        changes = [RemoveChange(id="a"), SelectChange(id="a", selected=True)]
        assert "a" not in _by_id(apply_node_changes(changes, nodes))

    def test_several_kinds_merge_per_node(self, nodes):
        changes = [
            PositionChange(id="b", position=Position(x=5, y=6)),
            DimensionsChange(id="b", dimensions=Dimensions(width=10, height=20)),
            SelectChange(id="b", selected=True),
        ]
        node = _by_id(apply_node_changes(changes, nodes))["b"]
        assert node.position == Position(x=5, y=6)
        assert node.width == 10
        assert node.selected is True

    def test_partial_position_keeps_other_axis(self, nodes):
        changes = parse_node_changes([{"type": "position", "id": "a", "position": {"x": 7}}])
        node = _by_id(apply_node_changes(changes, nodes))["a"]
        assert node.position == Position(x=7, y=2)

    def test_untouched_nodes_are_same_objects(self, nodes):
        result = apply_node_changes([SelectChange(id="a", selected=True)], nodes)
        assert result[1] is nodes[1]
        assert [n.id for n in result] == ["a", "b", "g"]

    def test_unknown_ids_ignored(self, nodes):
        result = apply_node_changes([RemoveChange(id="zzz")], nodes)
        assert len(result) == 3


class TestParseNodeChanges:
    def test_discriminated_by_type(self):
        changes = parse_node_changes([
            {"type": "remove", "id": "a"},
            {"type": "select", "id": "b", "selected": True},
            {"type": "dimensions", "id": "c", "dimensions": {"width": 1, "height": 2}},
        ])
        assert [type(c) for c in changes] == [RemoveChange, SelectChange, DimensionsChange]

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_node_changes([{"type": "teleport", "id": "a"}])
