"""
Visual graph pipeline.

`rebuild_visual_graph` projects a canonical graph into a render-ready
visual graph. It is a pure function of its inputs and is re-run from the
canonical graph on every settings change; nothing is patched in place.

Stages:
    1. base nodes (packages, modules, symbols) and edges (imports,
       package dependencies, symbol inheritance)
    2. node filters (test files, node kinds)
    3. folder clustering, collapse and highways; or cycle collapse when
       clustering is off
    4. edge visibility by relation kind
    5. fan-in hubs over visible edges, then parallel-edge bundling
    6. endpoint validation, orphan diagnostics
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..config import GraphSettings, is_test_file_path
from ..core.exceptions import GraphInvariantError
from ..core.graph import CanonicalGraph
from ..core.types import (
    EdgeKind,
    HighwaySegment,
    NodeKind,
    SymbolRecord,
    VisualEdge,
    VisualNode,
)
from .cycles import collapse_cycles
from .folders import CollapseMeta, build_parent_map, cluster_by_folder, collapse_folders
from .highways import apply_highways
from .hubs import HubMeta, aggregate_high_fan_in, bundle_parallel_edges

logger = logging.getLogger(__name__)

PACKAGE_PREFIX = "package:"


def package_node_id(package_id: str) -> str:
    return f"{PACKAGE_PREFIX}{package_id}"


@dataclass
class VisualGraph:
    """
    Output of the pipeline, consumed by the layout layer.

    Attributes:
        nodes: Visible nodes, containers before their children.
        edges: Edges whose endpoints are all in `nodes`.
        parent_map: node id -> parent id.
        hub_meta: Fan-in hub id -> what it aggregates.
        collapsed_meta: Collapsed folder id -> hidden children.
    """

    nodes: List[VisualNode] = field(default_factory=list)
    edges: List[VisualEdge] = field(default_factory=list)
    parent_map: Dict[str, str] = field(default_factory=dict)
    hub_meta: Dict[str, HubMeta] = field(default_factory=dict)
    collapsed_meta: Dict[str, CollapseMeta] = field(default_factory=dict)

    def node(self, node_id: str) -> Optional[VisualNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def nodes_of_kind(self, kind: NodeKind) -> List[VisualNode]:
        return [node for node in self.nodes if node.type == kind]

    def edges_of_segment(self, segment: HighwaySegment) -> List[VisualEdge]:
        return [edge for edge in self.edges if edge.highway_segment == segment]

    def stats(self) -> Dict[str, Any]:
        by_kind: Dict[str, int] = {}
        for node in self.nodes:
            by_kind[node.type.value] = by_kind.get(node.type.value, 0) + 1
        return {
            "nodes": len(self.nodes),
            "edges": len(self.edges),
            "hidden_edges": sum(1 for e in self.edges if e.hidden),
            "nodes_by_kind": by_kind,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [node.model_dump(mode="json") for node in self.nodes],
            "edges": [edge.model_dump(mode="json") for edge in self.edges],
            "stats": self.stats(),
        }


def module_nodes(graph: CanonicalGraph) -> List[VisualNode]:
    nodes = []
    for module_id in sorted(graph.node_ids):
        module = graph.modules[module_id]
        nodes.append(VisualNode(
            id=module.id,
            type=NodeKind.MODULE,
            data={
                "label": module.name,
                "package_id": module.package_id,
                "relative_path": module.relative_path,
                "directory": module.directory,
                "is_barrel": module.is_barrel,
                "line_count": module.line_count,
            },
        ))
    return nodes


def canonical_parent_map(graph: CanonicalGraph) -> Dict[str, str]:
    """Folder parent of every module, as clustering would assign it."""
    return cluster_by_folder(module_nodes(graph), []).parent_map


def _base_graph(
    graph: CanonicalGraph,
    symbols: Iterable[SymbolRecord],
) -> Tuple[List[VisualNode], List[VisualEdge]]:
    nodes: List[VisualNode] = []
    edges: List[VisualEdge] = []

    package_ids = sorted({m.package_id for m in graph.modules.values()})
    for package_id in package_ids:
        nodes.append(VisualNode(
            id=package_node_id(package_id),
            type=NodeKind.PACKAGE,
            data={"label": package_id, "package_id": package_id},
        ))
    nodes.extend(module_nodes(graph))

    package_pairs: Set[Tuple[str, str]] = set()
    for source, target in graph.iter_edges():
        edges.append(VisualEdge.create(source, target, EdgeKind.IMPORT))
        source_pkg = graph.modules[source].package_id
        target_pkg = graph.modules[target].package_id
        if source_pkg != target_pkg:
            package_pairs.add((source_pkg, target_pkg))

    for source_pkg, target_pkg in sorted(package_pairs):
        edges.append(VisualEdge.create(
            package_node_id(source_pkg), package_node_id(target_pkg), EdgeKind.DEPENDENCY,
        ))

    symbol_ids: Set[str] = set()
    symbol_list = [s for s in symbols if s.module_id in graph.node_ids]
    for symbol in symbol_list:
        module = graph.modules[symbol.module_id]
        symbol_ids.add(symbol.id)
        nodes.append(VisualNode(
            id=symbol.id,
            type=symbol.kind,
            data={
                "label": symbol.name,
                "module_id": module.id,
                "package_id": module.package_id,
                "relative_path": module.relative_path,
            },
        ))
    for symbol in symbol_list:
        for parent in symbol.extends:
            if parent in symbol_ids and parent != symbol.id:
                edges.append(VisualEdge.create(symbol.id, parent, EdgeKind.EXTENDS))
        for interface in symbol.implements:
            if interface in symbol_ids and interface != symbol.id:
                edges.append(VisualEdge.create(symbol.id, interface, EdgeKind.IMPLEMENTS))

    return nodes, edges


def _filter_nodes(
    nodes: List[VisualNode],
    edges: List[VisualEdge],
    settings: GraphSettings,
) -> Tuple[List[VisualNode], List[VisualEdge]]:
    def keep(node: VisualNode) -> bool:
        if node.type not in settings.enabled_node_kinds:
            return False
        if settings.hide_test_files and is_test_file_path(node.data.get("relative_path")):
            return False
        return True

    kept = [node for node in nodes if keep(node)]
    ids = {node.id for node in kept}
    return kept, [e for e in edges if e.source in ids and e.target in ids]


def _apply_edge_visibility(edges: List[VisualEdge], enabled: Iterable[str]) -> List[VisualEdge]:
    enabled = {str(kind) for kind in enabled}
    output = []
    for edge in edges:
        kinds = edge.data.get("highway_types") or [edge.relation_kind]
        hidden = not any(kind in enabled for kind in kinds)
        output.append(edge if edge.hidden == hidden else edge.model_copy(update={"hidden": hidden}))
    return output


def finalize_edges(
    nodes: Iterable[VisualNode],
    edges: Iterable[VisualEdge],
    strict: bool = False,
) -> List[VisualEdge]:
    """
    Drop edges whose endpoints are not in the node set.

    Raises:
        GraphInvariantError: In strict (dev) mode, on the first such edge.
    """
    ids = {node.id for node in nodes}
    valid = []
    for edge in edges:
        missing = next((end for end in (edge.source, edge.target) if end not in ids), None)
        if missing is None:
            valid.append(edge)
            continue
        if strict:
            raise GraphInvariantError(edge.id, missing)
        logger.warning(f"Dropping edge {edge.id}: unknown endpoint {missing}")
    return valid


def _annotate_orphans(
    nodes: List[VisualNode],
    edges: List[VisualEdge],
    semantic_connected: Set[str],
) -> List[VisualNode]:
    connected = set()
    for edge in edges:
        if not edge.hidden:
            connected.add(edge.source)
            connected.add(edge.target)

    output = []
    for node in nodes:
        if node.type in (NodeKind.GROUP, NodeKind.HUB) or node.id in connected:
            output.append(node)
            continue
        diagnostics = {
            "orphan_current": True,
            "orphan_global": node.id not in semantic_connected,
        }
        output.append(node.model_copy(update={"data": {**node.data, "diagnostics": diagnostics}}))
    return output


def rebuild_visual_graph(
    graph: CanonicalGraph,
    settings: Optional[GraphSettings] = None,
    symbols: Iterable[SymbolRecord] = (),
) -> VisualGraph:
    """
    Run the full transform pipeline over a canonical graph.

    The canonical graph is only read. Every call builds a fresh VisualGraph.

    Args:
        graph: The canonical import graph.
        settings: Pipeline options; defaults when omitted.
        symbols: Optional class/interface/member records to include.
    """
    settings = settings or GraphSettings()

    nodes, edges = _base_graph(graph, symbols)
    nodes, edges = _filter_nodes(nodes, edges, settings)

    semantic_connected = {e.source for e in edges} | {e.target for e in edges}
    collapsed_meta: Dict[str, CollapseMeta] = {}

    if settings.cluster_by_folder:
        clustered = cluster_by_folder(nodes, edges)
        collapsed = collapse_folders(clustered.nodes, clustered.edges, settings.collapsed_folder_ids)
        nodes, edges, collapsed_meta = collapsed.nodes, collapsed.edges, collapsed.collapsed_meta
        if settings.enable_highways:
            routed = apply_highways(nodes, edges, settings.direction)
            nodes, edges = routed.nodes, routed.edges
    elif settings.collapse_cycles:
        collapsed = collapse_cycles(nodes, edges)
        nodes, edges, collapsed_meta = collapsed.nodes, collapsed.edges, collapsed.collapsed_meta

    edges = _apply_edge_visibility(edges, settings.enabled_edge_kinds)

    hub_meta: Dict[str, HubMeta] = {}
    if settings.enable_hubs:
        hubbed = aggregate_high_fan_in(nodes, edges, settings.fan_in_threshold)
        nodes, edges, hub_meta = hubbed.nodes, hubbed.edges, hubbed.hub_meta

    edges = bundle_parallel_edges(edges, settings.bundle_min_edges)
    edges = finalize_edges(nodes, edges, strict=settings.dev_mode)
    nodes = _annotate_orphans(nodes, edges, semantic_connected)

    logger.debug(f"Visual graph: {len(nodes)} nodes, {len(edges)} edges")
    return VisualGraph(
        nodes=nodes,
        edges=edges,
        parent_map=build_parent_map(nodes),
        hub_meta=hub_meta,
        collapsed_meta=collapsed_meta,
    )
