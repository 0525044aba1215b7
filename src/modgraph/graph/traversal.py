"""
Traversal engine.

Neighborhood queries always run over the canonical graph, never over the
visual graph, so isolate and focus give the same answer whatever folders
are collapsed or routed through highways. The one exception is
`resolve_visual_neighbors`, which answers "what does this rendered node
really connect to" by walking through synthetic hub nodes.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

from ..config import HUB_RESOLUTION_DEPTH, GraphSettings
from ..core.exceptions import NodeNotFoundError
from ..core.graph import CanonicalGraph
from ..core.types import EdgeKind, NodeKind, ResolvedEdge, VisualEdge, VisualNode
from .edge_kinds import DEFAULT_TRAVERSAL_KINDS
from .folders import build_parent_map, get_ancestor_folders
from .pipeline import VisualGraph, canonical_parent_map, rebuild_visual_graph

logger = logging.getLogger(__name__)

# Every canonical edge is an import
CANONICAL_EDGE_KIND = EdgeKind.IMPORT


@dataclass
class TraversalResult:
    """
    Neighborhood of a start node in the canonical graph.

    Attributes:
        node_ids: Start node plus everything within max_depth, either direction.
        edges: Canonical edges with both endpoints in node_ids.
        inbound: Nodes reaching the start node along import edges.
        outbound: Nodes the start node reaches along import edges.
        containing_folders: Ancestor folders of every node in node_ids.
        depth_map: BFS distance from the start node.
    """

    node_ids: Set[str] = field(default_factory=set)
    edges: List[ResolvedEdge] = field(default_factory=list)
    inbound: Set[str] = field(default_factory=set)
    outbound: Set[str] = field(default_factory=set)
    containing_folders: Set[str] = field(default_factory=set)
    depth_map: Dict[str, int] = field(default_factory=dict)

    @property
    def connected(self) -> Set[str]:
        return self.inbound | self.outbound


def _edges_allowed(edge_filter: Optional[Iterable[str]]) -> bool:
    kinds = set(edge_filter) if edge_filter else set(DEFAULT_TRAVERSAL_KINDS)
    return CANONICAL_EDGE_KIND in kinds


def _directed_reach(start: str, step, max_depth: int) -> Set[str]:
    """Nodes reachable from `start` within max_depth hops of `step`, start excluded."""
    depths = {start: 0}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if depths[current] >= max_depth:
            continue
        for neighbor in step(current):
            if neighbor not in depths:
                depths[neighbor] = depths[current] + 1
                queue.append(neighbor)
    return set(depths) - {start}


def traverse(
    start_node_id: str,
    graph: CanonicalGraph,
    max_depth: int = 1,
    edge_filter: Optional[Iterable[str]] = None,
    parent_map: Optional[Mapping[str, str]] = None,
) -> TraversalResult:
    """
    Breadth-first neighborhood search over the canonical graph.

    The neighborhood itself is undirected: a node two hops away through an
    importer and then an import is still within max_depth=2. Direction is
    tracked separately: `outbound` only grows along forward edges from the
    start or from other outbound nodes, `inbound` only along reverse edges.

    Args:
        start_node_id: Module id to start from.
        graph: The canonical graph.
        max_depth: Maximum BFS distance.
        edge_filter: Allowed edge kinds. Empty or None means the default
            relational kinds.
        parent_map: node id -> parent folder id, for containing_folders.

    Returns:
        A TraversalResult. Empty when the start node is unknown.
    """
    result = TraversalResult()
    if not graph.has_node(start_node_id):
        return result

    parent_map = parent_map or {}

    def visit(node_id: str, depth: int) -> None:
        result.node_ids.add(node_id)
        result.depth_map[node_id] = depth
        result.containing_folders.update(get_ancestor_folders(node_id, parent_map))

    visit(start_node_id, 0)
    if not _edges_allowed(edge_filter):
        return result

    queue = deque([start_node_id])
    while queue:
        current = queue.popleft()
        depth = result.depth_map[current]
        if depth >= max_depth:
            continue
        neighbors = graph.successors(current) | graph.predecessors(current)
        for neighbor in sorted(neighbors):
            if neighbor not in result.depth_map:
                visit(neighbor, depth + 1)
                queue.append(neighbor)

    result.outbound = _directed_reach(start_node_id, graph.successors, max_depth)
    result.inbound = _directed_reach(start_node_id, graph.predecessors, max_depth)

    result.edges = [
        (source, target)
        for source, target in graph.iter_edges()
        if source in result.node_ids and target in result.node_ids
    ]
    return result


def focus(
    node_id: str,
    graph: CanonicalGraph,
    parent_map: Optional[Mapping[str, str]] = None,
) -> FrozenSet[str]:
    """Ids directly connected to `node_id`, for selection highlighting."""
    result = traverse(node_id, graph, max_depth=1, parent_map=parent_map)
    return frozenset(result.connected)


@dataclass
class NeighborResolution:
    """
    Real neighbors of a rendered node.

    Attributes:
        node_ids: Non-hub nodes connected to the start node, directly or
            through hubs.
        inbound: Subset of node_ids reached against edge direction.
        outbound: Subset of node_ids reached along edge direction.
        edge_ids: Visual edges walked to reach them.
        hub_ids: Hubs passed through.
    """

    node_ids: Set[str] = field(default_factory=set)
    inbound: Set[str] = field(default_factory=set)
    outbound: Set[str] = field(default_factory=set)
    edge_ids: Set[str] = field(default_factory=set)
    hub_ids: Set[str] = field(default_factory=set)


def resolve_visual_neighbors(
    node_id: str,
    nodes: Iterable[VisualNode],
    edges: Iterable[VisualEdge],
    max_hub_depth: int = HUB_RESOLUTION_DEPTH,
) -> NeighborResolution:
    """
    Resolve a node's visual neighbors, seeing through hub nodes.

    Starting from the direct neighbors, every hub neighbor is expanded to
    its own neighbors in the same direction, up to `max_hub_depth` rounds.
    The walk stops once only non-hub nodes remain at the frontier.

    Highway segments of one routed flow share a `highway_group_id`. Once the
    walk enters a flow it only follows segments of that flow, so a boundary
    hub does not leak into trunks toward other folders.
    """
    kinds = {node.id: node.type for node in nodes}
    forward: Dict[str, List[VisualEdge]] = {}
    backward: Dict[str, List[VisualEdge]] = {}
    for edge in edges:
        forward.setdefault(edge.source, []).append(edge)
        backward.setdefault(edge.target, []).append(edge)

    result = NeighborResolution()

    for outgoing, found in ((True, result.outbound), (False, result.inbound)):
        table = forward if outgoing else backward
        visited: Set[Tuple[str, Optional[str]]] = {(node_id, None)}
        frontier: List[Tuple[str, Optional[str]]] = [(node_id, None)]
        depth = 0
        while frontier and depth <= max_hub_depth:
            hubs: List[Tuple[str, Optional[str]]] = []
            for current, flow in frontier:
                for edge in table.get(current, []):
                    edge_flow = edge.data.get("highway_group_id")
                    if flow is not None and edge_flow not in (None, flow):
                        continue
                    neighbor = edge.target if outgoing else edge.source
                    state = (neighbor, edge_flow or flow)
                    if neighbor == node_id or state in visited:
                        continue
                    visited.add(state)
                    result.edge_ids.add(edge.id)
                    if kinds.get(neighbor) == NodeKind.HUB:
                        hubs.append(state)
                    else:
                        found.add(neighbor)
            result.hub_ids.update(hub for hub, _ in hubs)
            frontier = hubs
            depth += 1

    result.node_ids = result.inbound | result.outbound
    return result


def selection_adjacency(
    nodes: Iterable[VisualNode],
    edges: Iterable[VisualEdge],
) -> Dict[str, Set[str]]:
    """
    Undirected visual adjacency for selection highlighting.

    A group node's neighbors are the union of its own and its descendants'
    neighbors, excluding the descendants themselves.
    """
    nodes = list(nodes)
    adjacency: Dict[str, Set[str]] = {node.id: set() for node in nodes}
    for edge in edges:
        if edge.hidden:
            continue
        adjacency.setdefault(edge.source, set()).add(edge.target)
        adjacency.setdefault(edge.target, set()).add(edge.source)

    parent_map = build_parent_map(nodes)
    descendants: Dict[str, Set[str]] = {}
    for node in nodes:
        for folder in get_ancestor_folders(node.id, parent_map):
            descendants.setdefault(folder, set()).add(node.id)

    for folder, members in descendants.items():
        merged = set(adjacency.get(folder, set()))
        for member in members:
            merged |= adjacency.get(member, set())
        adjacency[folder] = merged - members - {folder}
    return adjacency


@dataclass
class IsolateResult:
    """
    A visual graph restricted to one node's 1-hop neighborhood.

    Attributes:
        view: The rebuilt visual graph.
        traversal: The canonical traversal it was derived from.
        inbound_only: Neighbors that only import the node.
        outbound_only: Neighbors the node only imports.
        bidirectional: Neighbors on both sides.
    """

    view: VisualGraph
    traversal: TraversalResult
    inbound_only: List[str] = field(default_factory=list)
    outbound_only: List[str] = field(default_factory=list)
    bidirectional: List[str] = field(default_factory=list)


def isolate(
    node_id: str,
    graph: CanonicalGraph,
    settings: Optional[GraphSettings] = None,
) -> IsolateResult:
    """
    Restrict the view to a node's 1-hop neighborhood plus its folders.

    The containing folders are expanded even if the current settings
    collapse them, so the neighborhood is always visible.

    Raises:
        NodeNotFoundError: If `node_id` is not a module of the graph.
    """
    if not graph.has_node(node_id):
        raise NodeNotFoundError(node_id)

    settings = settings or GraphSettings()
    parent_map = canonical_parent_map(graph)
    traversal = traverse(node_id, graph, max_depth=1, parent_map=parent_map)

    subgraph = graph.subgraph(traversal.node_ids)
    isolated_settings = settings.model_copy(update={
        "collapsed_folder_ids": frozenset(settings.collapsed_folder_ids - traversal.containing_folders),
    })
    view = rebuild_visual_graph(subgraph, isolated_settings)

    logger.debug(
        f"Isolated {node_id}: {len(traversal.inbound)} inbound, "
        f"{len(traversal.outbound)} outbound"
    )
    return IsolateResult(
        view=view,
        traversal=traversal,
        inbound_only=sorted(traversal.inbound - traversal.outbound),
        outbound_only=sorted(traversal.outbound - traversal.inbound),
        bidirectional=sorted(traversal.inbound & traversal.outbound),
    )
