"""Unit tests for the canonical import graph."""

import pytest

from modgraph.core.graph import CanonicalGraph, CanonicalGraphBuilder, build_canonical_graph
from modgraph.core.types import ImportRecord, ModuleMeta


class TestBuildCanonicalGraph:
    def test_three_cycle(self, cycle_rows):
        graph = build_canonical_graph(*cycle_rows)

        assert graph.node_ids == {"a", "b", "c"}
        for node_id in graph.node_ids:
            assert len(graph.successors(node_id)) == 1
            assert len(graph.predecessors(node_id)) == 1
        assert graph.successors("a") == {"b"}
        assert graph.predecessors("a") == {"c"}

    def test_adjacency_is_transpose_of_reverse(self, layered_graph):
        for source, targets in layered_graph.adjacency.items():
            for target in targets:
                assert source in layered_graph.reverse_adjacency[target]
        for target, sources in layered_graph.reverse_adjacency.items():
            for source in sources:
                assert target in layered_graph.adjacency[source]

    def test_every_module_has_entries(self, layered_graph):
        for node_id in layered_graph.node_ids:
            assert node_id in layered_graph.adjacency
            assert node_id in layered_graph.reverse_adjacency
        # util imports nothing but is still a node
        assert layered_graph.successors("util") == frozenset()

    def test_external_import_adds_no_edge(self, module_row, import_row):
        graph = build_canonical_graph(
            [module_row("a", "src/a.ts")],
            [import_row("a", "lodash"), import_row("a", "react/jsx-runtime")],
        )
        assert graph.edge_count == 0
        assert len(graph) == 1

    def test_self_import_is_dropped(self, module_row, import_row):
        graph = build_canonical_graph(
            [module_row("a", "src/a.ts")],
            [import_row("a", "./a")],
        )
        assert graph.edge_count == 0

    def test_duplicate_imports_collapse(self, module_row, import_row):
        graph = build_canonical_graph(
            [module_row("a", "src/a.ts"), module_row("b", "src/b.ts")],
            [import_row("a", "./b"), import_row("a", "./b.ts"), import_row("a", "@/b")],
        )
        assert list(graph.iter_edges()) == [("a", "b")]

    def test_build_is_idempotent(self, cycle_rows):
        first = build_canonical_graph(*cycle_rows)
        second = build_canonical_graph(*cycle_rows)
        assert first.structurally_equal(second)

    def test_package_filter(self, module_row, import_row):
        modules = [
            module_row("web-a", "src/a.ts", "web"),
            module_row("web-b", "src/b.ts", "web"),
            module_row("api-a", "src/a.ts", "api"),
        ]
        imports = [import_row("web-a", "./b"), import_row("api-a", "./b")]

        graph = build_canonical_graph(modules, imports, package_id="web")

        assert graph.node_ids == {"web-a", "web-b"}
        assert list(graph.iter_edges()) == [("web-a", "web-b")]

    def test_unknown_importer_is_skipped(self, module_row, import_row):
        graph = build_canonical_graph(
            [module_row("a", "src/a.ts")],
            [import_row("ghost", "./a")],
        )
        assert graph.edge_count == 0


class TestCanonicalGraph:
    def test_mappings_are_read_only(self, layered_graph):
        with pytest.raises(TypeError):
            layered_graph.adjacency["x"] = frozenset()
        with pytest.raises(TypeError):
            layered_graph.reverse_adjacency["x"] = frozenset()

    def test_neighbor_sets_are_frozen(self, layered_graph):
        assert isinstance(layered_graph.successors("main"), frozenset)

    def test_from_edges_ignores_unknown_endpoints(self):
        modules = [ModuleMeta(id="a", package_id="p", name="a", relative_path="a.ts")]
        graph = CanonicalGraph.from_edges(modules, [("a", "missing"), ("a", "a")])
        assert graph.edge_count == 0

    def test_subgraph_leaves_original_untouched(self, layered_graph):
        before = dict(layered_graph.adjacency)
        sub = layered_graph.subgraph({"main", "a", "unknown"})

        assert sub.node_ids == {"main", "a"}
        assert list(sub.iter_edges()) == [("main", "a")]
        assert dict(layered_graph.adjacency) == before

    def test_structural_equality_detects_difference(self, layered_graph):
        assert not layered_graph.structurally_equal(layered_graph.subgraph({"main", "a"}))

    def test_resolve_node_id_accepts_path(self, layered_graph):
        assert layered_graph.resolve_node_id("main") == "main"
        assert layered_graph.resolve_node_id("src/lib/a.ts") == "a"
        assert layered_graph.resolve_node_id("src/nope.ts") is None


class TestCanonicalGraphBuilder:
    def test_resolve_import(self):
        modules = [
            ModuleMeta(id="a", package_id="p", name="a.ts", relative_path="src/a.ts"),
            ModuleMeta(id="u", package_id="p", name="index.ts", relative_path="src/utils/index.ts"),
        ]
        builder = CanonicalGraphBuilder(modules)

        record = ImportRecord(id="i1", module_id="a", specifier="./utils")
        assert builder.resolve_import(record) == ("a", "u")

        external = ImportRecord(id="i2", module_id="a", specifier="react")
        assert builder.resolve_import(external) is None
