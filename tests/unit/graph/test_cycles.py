"""Unit tests for import cycle detection."""

from modgraph.core.graph import build_canonical_graph
from modgraph.core.types import EdgeKind, NodeKind, VisualEdge, VisualNode
from modgraph.graph.cycles import collapse_cycles, cycle_id, find_cycles, find_visual_cycles


def _modules(*ids):
    return [VisualNode(id=node_id, type=NodeKind.MODULE) for node_id in ids]


class TestFindCycles:
    def test_three_cycle(self, cycle_rows):
        cycles = find_cycles(build_canonical_graph(*cycle_rows))

        assert len(cycles) == 1
        assert cycles[0].member_ids == ("a", "b", "c")
        assert cycles[0].id == "scc:a,b,c"
        assert cycles[0].size == 3

    def test_acyclic(self, layered_graph):
        assert find_cycles(layered_graph) == []

    def test_largest_first(self, module_row, import_row):
        graph = build_canonical_graph(
            [module_row(m, f"{m}.ts") for m in ("a", "b", "c", "d", "e")],
            [
                import_row("a", "./b"), import_row("b", "./a"),
                import_row("c", "./d"), import_row("d", "./e"), import_row("e", "./c"),
            ],
        )
        assert [c.size for c in find_cycles(graph)] == [3, 2]

    def test_cycle_id_is_order_independent(self):
        assert cycle_id(["c", "a", "b"]) == cycle_id(["a", "b", "c"])


class TestVisualCycles:
    def test_ignores_non_import_kinds(self):
        edges = [
            VisualEdge.create("a", "b", EdgeKind.IMPORT),
            VisualEdge.create("b", "a", EdgeKind.EXTENDS),
        ]
        assert find_visual_cycles(_modules("a", "b"), edges) == []

    def test_collapse_cycles(self):
        nodes = _modules("a", "b", "c", "d")
        edges = [
            VisualEdge.create("a", "b", EdgeKind.IMPORT),
            VisualEdge.create("b", "c", EdgeKind.IMPORT),
            VisualEdge.create("c", "a", EdgeKind.IMPORT),
            VisualEdge.create("d", "a", EdgeKind.IMPORT),
            VisualEdge.create("d", "b", EdgeKind.IMPORT),
        ]
        result = collapse_cycles(nodes, edges)

        group = next(n for n in result.nodes if n.type == NodeKind.GROUP)
        assert group.data["label"] == "Cycle (3)"
        assert group.data["is_cycle"] is True
        assert group.is_collapsed
        assert {n.id for n in result.nodes} == {group.id, "d"}
        assert [(e.source, e.target) for e in result.edges] == [("d", group.id)]
        assert result.collapsed_meta[group.id].lifted_edge_count == 2

    def test_no_cycles_is_noop(self):
        nodes = _modules("a", "b")
        edges = [VisualEdge.create("a", "b", EdgeKind.IMPORT)]
        result = collapse_cycles(nodes, edges)
        assert result.nodes == nodes
        assert result.edges == edges
