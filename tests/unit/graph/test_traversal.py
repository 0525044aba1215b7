"""Unit tests for the traversal engine."""

import pytest

from modgraph.config import GraphSettings
from modgraph.core.exceptions import NodeNotFoundError
from modgraph.core.graph import build_canonical_graph
from modgraph.core.types import EdgeKind, NodeKind, VisualEdge, VisualNode
from modgraph.graph.pipeline import canonical_parent_map
from modgraph.graph.traversal import (
    focus,
    isolate,
    resolve_visual_neighbors,
    selection_adjacency,
    traverse,
)


@pytest.fixture
def chain_graph(module_row, import_row):
    """a -> b -> c"""
    return build_canonical_graph(
        [module_row("a", "src/a.ts"), module_row("b", "src/b.ts"), module_row("c", "src/c.ts")],
        [import_row("a", "./b"), import_row("b", "./c")],
    )


class TestTraverse:
    def test_depth_two_reaches_transitive_import(self, chain_graph):
        result = traverse("a", chain_graph, max_depth=2)

        assert result.outbound == {"b", "c"}
        assert result.inbound == set()
        assert result.node_ids == {"a", "b", "c"}
        assert result.depth_map == {"a": 0, "b": 1, "c": 2}
        assert result.edges == [("a", "b"), ("b", "c")]

    def test_depth_one(self, chain_graph):
        result = traverse("a", chain_graph, max_depth=1)
        assert result.outbound == {"b"}
        assert result.node_ids == {"a", "b"}
        assert result.edges == [("a", "b")]

    def test_both_directions(self, chain_graph):
        result = traverse("b", chain_graph)
        assert result.inbound == {"a"}
        assert result.outbound == {"c"}
        assert result.connected == {"a", "c"}

    def test_unknown_start_is_empty(self, chain_graph):
        result = traverse("nope", chain_graph)
        assert result.node_ids == set()
        assert result.edges == []

    def test_edge_filter_without_imports(self, chain_graph):
        result = traverse("a", chain_graph, edge_filter=[EdgeKind.EXTENDS])
        assert result.node_ids == {"a"}
        assert result.outbound == set()

    def test_containing_folders(self, layered_graph):
        result = traverse("main", layered_graph, parent_map=canonical_parent_map(layered_graph))
        assert result.containing_folders == {"dir:pkg:src/app", "dir:pkg:src/lib", "dir:pkg:src"}

    def test_start_excluded_from_directions_in_cycle(self, cycle_rows):
        graph = build_canonical_graph(*cycle_rows)
        result = traverse("a", graph, max_depth=3)
        assert "a" not in result.outbound
        assert "a" not in result.inbound
        assert result.outbound == {"b", "c"}


class TestFocus:
    def test_direct_neighbors(self, layered_graph):
        assert focus("b", layered_graph) == frozenset({"main", "a", "util"})

    def test_unknown_node(self, layered_graph):
        assert focus("missing", layered_graph) == frozenset()


class TestResolveVisualNeighbors:
    def _hub_chain(self, hub_count):
        hubs = [f"h{i}" for i in range(hub_count)]
        nodes = [VisualNode(id="a", type=NodeKind.MODULE), VisualNode(id="b", type=NodeKind.MODULE)]
        nodes += [VisualNode(id=h, type=NodeKind.HUB) for h in hubs]
        path = ["a"] + hubs + ["b"]
        edges = [VisualEdge.create(s, t, EdgeKind.IMPORT) for s, t in zip(path, path[1:])]
        return nodes, edges

    def test_sees_through_hubs(self):
        nodes, edges = self._hub_chain(1)
        result = resolve_visual_neighbors("a", nodes, edges)
        assert result.outbound == {"b"}
        assert result.hub_ids == {"h0"}

        reverse = resolve_visual_neighbors("b", nodes, edges)
        assert reverse.inbound == {"a"}

    def test_hub_depth_limit(self):
        nodes, edges = self._hub_chain(3)
        assert resolve_visual_neighbors("a", nodes, edges, max_hub_depth=3).outbound == {"b"}

        nodes, edges = self._hub_chain(4)
        assert resolve_visual_neighbors("a", nodes, edges, max_hub_depth=3).outbound == set()

    def test_highway_hub_follows_only_the_walked_flow(self):
        nodes = [VisualNode(id=n, type=NodeKind.MODULE) for n in ("a", "x", "b", "c")]
        nodes += [
            VisualNode(id=h, type=NodeKind.HUB)
            for h in ("highway-out:Fa", "highway-in:Fb", "highway-in:Fc")
        ]

        def segment(source, target, kind, flow):
            return VisualEdge(
                id=f"{kind}:{source}|{target}|{flow}", source=source, target=target,
                data={"relation_kind": "import", "highway_segment": kind, "highway_group_id": flow},
            )

        edges = [
            segment("a", "highway-out:Fa", "exit", "Fa|Fb"),
            segment("x", "highway-out:Fa", "exit", "Fa|Fc"),
            segment("highway-out:Fa", "highway-in:Fb", "trunk", "Fa|Fb"),
            segment("highway-out:Fa", "highway-in:Fc", "trunk", "Fa|Fc"),
            segment("highway-in:Fb", "b", "entry", "Fa|Fb"),
            segment("highway-in:Fc", "c", "entry", "Fa|Fc"),
        ]

        assert resolve_visual_neighbors("a", nodes, edges).outbound == {"b"}
        assert resolve_visual_neighbors("x", nodes, edges).outbound == {"c"}
        assert resolve_visual_neighbors("c", nodes, edges).inbound == {"x"}

    def test_direct_neighbors_without_hubs(self):
        nodes = [VisualNode(id=n, type=NodeKind.MODULE) for n in ("a", "b", "c")]
        edges = [VisualEdge.create("a", "b", "import"), VisualEdge.create("c", "a", "import")]
        result = resolve_visual_neighbors("a", nodes, edges)
        assert result.outbound == {"b"}
        assert result.inbound == {"c"}
        assert result.node_ids == {"b", "c"}


class TestSelectionAdjacency:
    def test_group_aggregates_descendants(self):
        nodes = [
            VisualNode(id="g", type=NodeKind.GROUP),
            VisualNode(id="x", type=NodeKind.MODULE, parent_id="g"),
            VisualNode(id="y", type=NodeKind.MODULE, parent_id="g"),
            VisualNode(id="z", type=NodeKind.MODULE),
        ]
        edges = [VisualEdge.create("x", "z", "import"), VisualEdge.create("x", "y", "import")]
        adjacency = selection_adjacency(nodes, edges)
        assert adjacency["g"] == {"z"}
        assert adjacency["x"] == {"y", "z"}

    def test_hidden_edges_ignored(self):
        nodes = [VisualNode(id=n, type=NodeKind.MODULE) for n in ("a", "b")]
        edge = VisualEdge.create("a", "b", "import").model_copy(update={"hidden": True})
        assert selection_adjacency(nodes, [edge])["a"] == set()


class TestIsolate:
    def test_one_hop_neighborhood(self, layered_graph):
        result = isolate("a", layered_graph)

        assert result.inbound_only == ["main", "view"]
        assert result.outbound_only == ["b"]
        assert result.bidirectional == []
        modules = {n.id for n in result.view.nodes_of_kind(NodeKind.MODULE)}
        assert modules == {"main", "view", "a", "b"}

    def test_expands_collapsed_containing_folders(self, layered_graph):
        settings = GraphSettings(collapsed_folder_ids=frozenset({"dir:pkg:src/lib"}))
        result = isolate("a", layered_graph, settings)
        assert result.view.node("a") is not None

    def test_same_answer_under_any_collapse(self, layered_graph):
        plain = isolate("a", layered_graph)
        collapsed = isolate("a", layered_graph, GraphSettings(
            collapsed_folder_ids=frozenset({"dir:pkg:src/app", "dir:pkg:src/lib"}),
        ))
        assert plain.traversal.node_ids == collapsed.traversal.node_ids
        assert plain.traversal.outbound == collapsed.traversal.outbound

    def test_bidirectional(self, cycle_rows, import_row):
        modules, imports = cycle_rows
        graph = build_canonical_graph(modules, imports + [import_row("b", "./a")])
        result = isolate("a", graph)
        assert result.bidirectional == ["b"]
        assert result.inbound_only == ["c"]

    def test_unknown_node_raises(self, layered_graph):
        with pytest.raises(NodeNotFoundError):
            isolate("missing", layered_graph)
