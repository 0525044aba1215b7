"""
Import cycle detection backed by rustworkx.

Strongly connected components of the canonical graph are the import cycles.
`collapse_cycles` folds each multi-module component of a visual graph into
a single `Cycle (n)` group node, using the same lift-and-dedup rewrite as
folder collapse.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

import rustworkx as rx

from ..core.graph import CanonicalGraph
from ..core.types import EdgeKind, NodeKind, VisualEdge, VisualNode
from .folders import CollapseResult, collapse_folders

logger = logging.getLogger(__name__)

CYCLE_EDGE_KINDS = frozenset({EdgeKind.IMPORT, EdgeKind.EXPORT, EdgeKind.DEPENDENCY})


@dataclass(frozen=True)
class ImportCycle:
    """A strongly connected component with more than one module."""

    id: str
    member_ids: tuple

    @property
    def size(self) -> int:
        return len(self.member_ids)


def cycle_id(member_ids: Iterable[str]) -> str:
    return f"scc:{','.join(sorted(member_ids))}"


def _components(node_ids: Sequence[str], edges: Iterable[tuple]) -> List[ImportCycle]:
    graph = rx.PyDiGraph()
    id_to_idx: Dict[str, int] = {}
    for node_id in node_ids:
        id_to_idx[node_id] = graph.add_node(node_id)
    for source, target in edges:
        if source in id_to_idx and target in id_to_idx:
            graph.add_edge(id_to_idx[source], id_to_idx[target], None)

    cycles = []
    for component in rx.strongly_connected_components(graph):
        if len(component) < 2:
            continue
        members = tuple(sorted(graph[idx] for idx in component))
        cycles.append(ImportCycle(id=cycle_id(members), member_ids=members))
    cycles.sort(key=lambda c: (-c.size, c.id))
    return cycles


def find_cycles(graph: CanonicalGraph) -> List[ImportCycle]:
    """All import cycles of the canonical graph, largest first."""
    return _components(sorted(graph.node_ids), graph.iter_edges())


def find_visual_cycles(nodes: Iterable[VisualNode], edges: Iterable[VisualEdge]) -> List[ImportCycle]:
    """Cycles among module nodes of a visual graph, over import-like edges only."""
    module_ids = sorted(node.id for node in nodes if node.type == NodeKind.MODULE)
    pairs = [
        (edge.source, edge.target) for edge in edges
        if edge.relation_kind in CYCLE_EDGE_KINDS
    ]
    return _components(module_ids, pairs)


def collapse_cycles(nodes: Iterable[VisualNode], edges: Iterable[VisualEdge]) -> CollapseResult:
    """Replace every import cycle among module nodes with one collapsed group node."""
    nodes = list(nodes)
    edges = list(edges)
    cycles = find_visual_cycles(nodes, edges)
    if not cycles:
        return CollapseResult(nodes=nodes, edges=edges)

    owner = {member: cycle.id for cycle in cycles for member in cycle.member_ids}
    groups = [
        VisualNode(
            id=cycle.id,
            type=NodeKind.GROUP,
            data={"label": f"Cycle ({cycle.size})", "is_cycle": True, "is_collapsed": False},
        )
        for cycle in cycles
    ]
    regrouped = groups + [
        node.model_copy(update={"parent_id": owner[node.id]}) if node.id in owner else node
        for node in nodes
    ]
    logger.debug(f"Collapsing {len(cycles)} import cycles")
    return collapse_folders(regrouped, edges, owner.values())
