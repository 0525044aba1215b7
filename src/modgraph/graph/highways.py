"""
Highway aggregation for expanded folders.

Cross-folder edges are rewritten into exit -> trunk -> entry routes through
synthetic boundary hubs, so that every edge between two folders, whatever
its relation kind, travels along one weighted trunk:

    A --exit--> highway-out:Fa --trunk--> highway-in:Fb --entry--> B

Boundary hubs are always top-level nodes. Nesting them inside the folder
they serve would make layout treat them as folder content.

For nested folders the folders shared by both endpoints are not
boundaries. The exit chain walks outward one boundary at a time, the trunk
joins the outermost pair and the entry chain walks back inward.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..core.types import HighwaySegment, LayoutDirection, NodeKind, VisualEdge, VisualNode
from .edge_kinds import is_valid_edge_connection, pick_primary_kind
from .folders import build_parent_map, get_ancestor_folders
from .handles import assign_segment_handles

logger = logging.getLogger(__name__)

HIGHWAY_OUT_PREFIX = "highway-out:"
HIGHWAY_IN_PREFIX = "highway-in:"


def highway_out_id(folder_id: str) -> str:
    return f"{HIGHWAY_OUT_PREFIX}{folder_id}"


def highway_in_id(folder_id: str) -> str:
    return f"{HIGHWAY_IN_PREFIX}{folder_id}"


def is_highway_hub(node_id: str) -> bool:
    return node_id.startswith(HIGHWAY_OUT_PREFIX) or node_id.startswith(HIGHWAY_IN_PREFIX)


@dataclass
class _Accumulator:
    """Running totals for one synthesized segment."""

    source: str
    target: str
    segment: HighwaySegment
    group_id: str
    breakdown: Counter = field(default_factory=Counter)

    def add(self, kind: str) -> None:
        self.breakdown[kind] += 1

    @property
    def count(self) -> int:
        return sum(self.breakdown.values())

    def to_edge(self, edge_id: str) -> VisualEdge:
        data = {
            "relation_kind": pick_primary_kind(self.breakdown),
            "highway_segment": self.segment.value,
            "highway_count": self.count,
            "highway_type_breakdown": dict(sorted(self.breakdown.items())),
            "highway_group_id": self.group_id,
        }
        if self.segment == HighwaySegment.TRUNK:
            data["highway_types"] = sorted(self.breakdown)
        return VisualEdge(id=edge_id, source=self.source, target=self.target, data=data)


@dataclass
class HighwayResult:
    nodes: List[VisualNode]
    edges: List[VisualEdge]
    hub_ids: List[str] = field(default_factory=list)


def _boundaries(chain: List[str], shared: Set[str]) -> List[str]:
    """Folders of `chain` not shared with the other endpoint, nearest first."""
    crossed = [folder for folder in chain if folder not in shared]
    return crossed or chain[:1]


def apply_highways(
    nodes: Iterable[VisualNode],
    edges: Iterable[VisualEdge],
    direction: LayoutDirection = LayoutDirection.LR,
) -> HighwayResult:
    """
    Route cross-folder edges through per-folder boundary hubs.

    Edges are kept unchanged when they are intra-folder, when either
    endpoint has no folder parent, when either endpoint is a folder or hub
    node (collapsed folders never take part), when they already are highway
    segments, or when their relation kind is not valid for the endpoint
    node kinds.
    """
    nodes = list(nodes)
    edges = list(edges)
    node_by_id: Dict[str, VisualNode] = {node.id: node for node in nodes}
    parent_map = build_parent_map(nodes)
    chains: Dict[str, List[str]] = {}

    def folder_chain(node_id: str) -> List[str]:
        if node_id not in chains:
            chains[node_id] = get_ancestor_folders(node_id, parent_map, node_by_id)
        return chains[node_id]

    kept: List[VisualEdge] = []
    segments: Dict[Tuple[str, ...], _Accumulator] = {}
    order: List[Tuple[str, ...]] = []
    folders: Set[str] = set()
    projected = 0

    def accumulate(key: Tuple[str, ...], source: str, target: str,
                   segment: HighwaySegment, group_id: str, kind: str) -> None:
        acc = segments.get(key)
        if acc is None:
            acc = _Accumulator(source, target, segment, group_id)
            segments[key] = acc
            order.append(key)
        acc.add(kind)

    for edge in edges:
        source = node_by_id.get(edge.source)
        target = node_by_id.get(edge.target)
        if (
            source is None or target is None
            or edge.highway_segment is not None
            or source.type in (NodeKind.GROUP, NodeKind.HUB)
            or target.type in (NodeKind.GROUP, NodeKind.HUB)
        ):
            kept.append(edge)
            continue

        chain_a = folder_chain(source.id)
        chain_b = folder_chain(target.id)
        if not chain_a or not chain_b or chain_a[0] == chain_b[0]:
            kept.append(edge)
            continue

        kind = edge.relation_kind
        if not is_valid_edge_connection(kind, source.type, target.type):
            kept.append(edge)
            continue

        shared = set(chain_a) & set(chain_b)
        bounds_a = _boundaries(chain_a, shared)
        bounds_b = _boundaries(chain_b, shared)
        outer_a, outer_b = bounds_a[-1], bounds_b[-1]
        group_id = f"{outer_a}|{outer_b}"
        folders.update(bounds_a)
        folders.update(bounds_b)
        projected += 1

        # exit chain, innermost boundary first
        previous = source.id
        for folder in bounds_a:
            hub = highway_out_id(folder)
            accumulate(("exit", previous, hub, group_id), previous, hub,
                       HighwaySegment.EXIT, group_id, kind)
            previous = hub

        accumulate(("trunk", group_id), highway_out_id(outer_a), highway_in_id(outer_b),
                   HighwaySegment.TRUNK, group_id, kind)

        # entry chain, outermost boundary first
        previous = highway_in_id(outer_b)
        for folder in reversed(bounds_b[:-1]):
            hub = highway_in_id(folder)
            accumulate(("entry", previous, hub, group_id), previous, hub,
                       HighwaySegment.ENTRY, group_id, kind)
            previous = hub
        accumulate(("entry", previous, target.id, group_id), previous, target.id,
                   HighwaySegment.ENTRY, group_id, kind)

    if not folders:
        return HighwayResult(nodes=nodes, edges=edges)

    hubs: List[VisualNode] = []
    for folder in sorted(folders):
        label = node_by_id[folder].data.get("label", folder)
        for hub_id, flow in ((highway_out_id(folder), "out"), (highway_in_id(folder), "in")):
            hubs.append(VisualNode(
                id=hub_id,
                type=NodeKind.HUB,
                parent_id=None,
                data={"label": "", "is_highway_hub": True, "highway_folder_id": folder,
                      "highway_flow": flow, "folder_label": label},
            ))

    highway_edges: List[VisualEdge] = []
    for key in order:
        acc = segments[key]
        if acc.segment == HighwaySegment.TRUNK:
            segment_id = f"highway-trunk:{acc.group_id}"
        else:
            segment_id = f"highway-{acc.segment.value}:{acc.source}|{acc.target}|{acc.group_id}"
        highway_edges.append(assign_segment_handles(acc.to_edge(segment_id), direction))

    logger.debug(
        f"Highways: {projected} cross-folder edges -> {len(highway_edges)} segments "
        f"through {len(hubs)} hubs"
    )
    return HighwayResult(
        nodes=nodes + hubs,
        edges=kept + highway_edges,
        hub_ids=[hub.id for hub in hubs],
    )


def trunk_edges(edges: Iterable[VisualEdge]) -> List[VisualEdge]:
    return [edge for edge in edges if edge.highway_segment == HighwaySegment.TRUNK]


def trunk_for(edges: Iterable[VisualEdge], source_folder: str, target_folder: str) -> Optional[VisualEdge]:
    """The trunk carrying traffic from one folder to another, if any."""
    group_id = f"{source_folder}|{target_folder}"
    for edge in trunk_edges(edges):
        if edge.data.get("highway_group_id") == group_id:
            return edge
    return None
