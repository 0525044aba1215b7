"""Unit tests for fan-in hubs and parallel-edge bundling."""

from modgraph.core.types import EdgeKind, NodeKind, VisualEdge, VisualNode
from modgraph.graph.hubs import aggregate_high_fan_in, bundle_parallel_edges, hub_id_for


def _nodes(*ids, kind=NodeKind.MODULE):
    return [VisualNode(id=node_id, type=kind) for node_id in ids]


def _fan_in(count, target="t"):
    sources = [f"s{i}" for i in range(count)]
    nodes = _nodes(target, *sources)
    edges = [VisualEdge.create(s, target, EdgeKind.IMPORT) for s in sources]
    return nodes, edges


class TestAggregateHighFanIn:
    def test_hub_inserted_above_threshold(self):
        nodes, edges = _fan_in(9)
        result = aggregate_high_fan_in(nodes, edges, threshold=8)

        hub = hub_id_for("t")
        assert hub in {n.id for n in result.nodes}
        assert result.hub_meta[hub].original_edge_count == 9
        assert sorted(result.hub_meta[hub].source_ids) == sorted(f"s{i}" for i in range(9))

        into_target = [e for e in result.edges if e.target == "t"]
        assert len(into_target) == 1
        assert into_target[0].id == "hub:t-t-aggregated"
        assert into_target[0].data["aggregated_count"] == 9
        assert into_target[0].data["hub_aggregated"] is True
        assert sum(1 for e in result.edges if e.target == hub) == 9

    def test_threshold_is_exclusive(self):
        nodes, edges = _fan_in(8)
        result = aggregate_high_fan_in(nodes, edges, threshold=8)
        assert result.edges == edges
        assert result.hub_meta == {}

    def test_hub_sources_do_not_count(self):
        nodes, edges = _fan_in(3)
        nodes += _nodes("h1", "h2", kind=NodeKind.HUB)
        edges += [VisualEdge.create(h, "t", EdgeKind.IMPORT) for h in ("h1", "h2")]
        result = aggregate_high_fan_in(nodes, edges, threshold=3)
        assert result.hub_meta == {}

    def test_groups_are_never_aggregated(self):
        sources = [f"s{i}" for i in range(5)]
        nodes = _nodes(*sources) + _nodes("g", kind=NodeKind.GROUP)
        edges = [VisualEdge.create(s, "g", EdgeKind.IMPORT) for s in sources]
        result = aggregate_high_fan_in(nodes, edges, threshold=2)
        assert result.hub_meta == {}

    def test_hidden_edges_do_not_count(self):
        nodes, edges = _fan_in(4)
        edges = [e.model_copy(update={"hidden": True}) for e in edges]
        result = aggregate_high_fan_in(nodes, edges, threshold=2)
        assert result.hub_meta == {}
        assert result.edges == edges

    def test_hub_is_top_level(self):
        nodes, edges = _fan_in(4)
        result = aggregate_high_fan_in(nodes, edges, threshold=2)
        hub = next(n for n in result.nodes if n.type == NodeKind.HUB)
        assert hub.parent_id is None


class TestBundleParallelEdges:
    def test_highest_priority_kind_represents_bundle(self):
        edges = [
            VisualEdge.create("a", "b", EdgeKind.IMPORT),
            VisualEdge.create("a", "b", EdgeKind.EXTENDS),
            VisualEdge.create("a", "b", EdgeKind.DEPENDENCY),
        ]
        bundled = bundle_parallel_edges(edges)

        assert len(bundled) == 1
        assert bundled[0].relation_kind == "extends"
        assert bundled[0].data["bundled_count"] == 3
        assert bundled[0].data["bundled_types"] == ["dependency", "extends", "import"]

    def test_single_edges_untouched(self):
        edges = [VisualEdge.create("a", "b", "import"), VisualEdge.create("b", "c", "import")]
        assert bundle_parallel_edges(edges) == edges

    def test_exit_and_entry_segments_preserved(self):
        segments = [
            VisualEdge(id=f"exit-{i}", source="m", target="highway-out:f",
                       data={"relation_kind": "import", "highway_segment": "exit"})
            for i in range(3)
        ] + [
            VisualEdge(id=f"entry-{i}", source="highway-in:f", target="m",
                       data={"relation_kind": "import", "highway_segment": "entry"})
            for i in range(2)
        ]
        assert bundle_parallel_edges(segments) == segments

    def test_below_min_edges_returned_as_is(self):
        edges = [VisualEdge.create("a", "b", "import"), VisualEdge.create("a", "b", "extends")]
        assert bundle_parallel_edges(edges, min_edges=50) == edges

    def test_visible_edge_represents_partly_hidden_bundle(self):
        edges = [
            VisualEdge.create("a", "b", EdgeKind.EXTENDS).model_copy(update={"hidden": True}),
            VisualEdge.create("a", "b", EdgeKind.IMPLEMENTS),
        ]
        bundled = bundle_parallel_edges(edges)

        assert len(bundled) == 1
        assert bundled[0].relation_kind == "implements"
        assert bundled[0].hidden is False
        assert bundled[0].data["bundled_types"] == ["extends", "implements"]

    def test_fully_hidden_bundle_stays_hidden(self):
        edges = [
            VisualEdge.create("a", "b", kind).model_copy(update={"hidden": True})
            for kind in (EdgeKind.IMPORT, EdgeKind.EXTENDS)
        ]
        bundled = bundle_parallel_edges(edges)
        assert bundled[0].hidden is True
        assert bundled[0].relation_kind == "extends"

    def test_first_edge_wins_priority_tie(self):
        edges = [
            VisualEdge.create("a", "b", EdgeKind.IMPLEMENTS),
            VisualEdge.create("a", "b", EdgeKind.EXTENDS),
        ]
        assert bundle_parallel_edges(edges)[0].relation_kind == "implements"
