"""
Fan-in hub aggregation and parallel-edge bundling.

Both passes run after highways and edge visibility. Hub aggregation
reroutes the visible incoming edges of a heavily imported node through a
synthetic hub; bundling keeps one representative per (source, target)
pair. Highway exit and entry segments are never bundled: each one stands
for a distinct real endpoint.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from ..config import DEFAULT_FAN_IN_THRESHOLD
from ..core.types import HighwaySegment, NodeKind, VisualEdge, VisualNode, edge_id
from .edge_kinds import edge_priority, pick_primary_kind

logger = logging.getLogger(__name__)

HUB_PREFIX = "hub:"
AGGREGATED_KIND = "aggregated"

_UNBUNDLED_SEGMENTS = frozenset({HighwaySegment.EXIT.value, HighwaySegment.ENTRY.value})


def hub_id_for(target_id: str) -> str:
    return f"{HUB_PREFIX}{target_id}"


@dataclass
class HubMeta:
    """
    What a fan-in hub stands for.

    Attributes:
        target_id: The node whose incoming edges were aggregated.
        source_ids: Sources rerouted through the hub.
        original_edge_count: Number of edges rerouted.
    """

    target_id: str
    source_ids: List[str] = field(default_factory=list)
    original_edge_count: int = 0


@dataclass
class HubResult:
    nodes: List[VisualNode]
    edges: List[VisualEdge]
    hub_meta: Dict[str, HubMeta] = field(default_factory=dict)


def aggregate_high_fan_in(
    nodes: Iterable[VisualNode],
    edges: Iterable[VisualEdge],
    threshold: int = DEFAULT_FAN_IN_THRESHOLD,
) -> HubResult:
    """
    Insert a hub in front of every node whose fan-in exceeds `threshold`.

    Only visible edges from non-hub sources count toward fan-in, and hub or
    folder nodes are never aggregated, so hubs do not chain into each other
    here. Hidden edges pass through untouched.
    """
    nodes = list(nodes)
    edges = list(edges)
    kind_by_id = {node.id: node.type for node in nodes}

    def counts_toward_fan_in(edge: VisualEdge) -> bool:
        if edge.hidden or edge.highway_segment is not None:
            return False
        if kind_by_id.get(edge.source) in (None, NodeKind.HUB):
            return False
        return kind_by_id.get(edge.target) not in (None, NodeKind.HUB, NodeKind.GROUP)

    in_degree: Counter = Counter(e.target for e in edges if counts_toward_fan_in(e))
    targets = {target for target, degree in in_degree.items() if degree > threshold}
    if not targets:
        return HubResult(nodes=nodes, edges=edges)

    meta: Dict[str, HubMeta] = {hub_id_for(t): HubMeta(target_id=t) for t in sorted(targets)}
    kinds: Dict[str, Counter] = {hub_id: Counter() for hub_id in meta}
    output: Dict[str, VisualEdge] = {}

    for edge in edges:
        if edge.target not in targets or not counts_toward_fan_in(edge):
            output.setdefault(edge.id, edge)
            continue
        hub_id = hub_id_for(edge.target)
        hub = meta[hub_id]
        hub.source_ids.append(edge.source)
        hub.original_edge_count += 1
        kinds[hub_id][edge.relation_kind] += 1
        rerouted_id = edge_id(edge.source, hub_id, edge.relation_kind)
        output.setdefault(rerouted_id, edge.model_copy(update={
            "id": rerouted_id,
            "target": hub_id,
            "target_handle_id": None,
        }))

    hub_nodes: List[VisualNode] = []
    for hub_id, hub in meta.items():
        hub_nodes.append(VisualNode(
            id=hub_id,
            type=NodeKind.HUB,
            parent_id=None,
            data={"label": "", "is_hub": True, "aggregated_target": hub.target_id},
        ))
        aggregated = VisualEdge(
            id=edge_id(hub_id, hub.target_id, AGGREGATED_KIND),
            source=hub_id,
            target=hub.target_id,
            data={
                "relation_kind": pick_primary_kind(kinds[hub_id]),
                "hub_aggregated": True,
                "aggregated_count": hub.original_edge_count,
            },
        )
        output[aggregated.id] = aggregated

    logger.debug(f"Fan-in hubs: {len(hub_nodes)} hubs over threshold {threshold}")
    return HubResult(nodes=nodes + hub_nodes, edges=list(output.values()), hub_meta=meta)


def bundle_parallel_edges(edges: Iterable[VisualEdge], min_edges: int = 0) -> List[VisualEdge]:
    """
    Keep one edge per (source, target), preferring a visible edge and then
    the highest-priority kind.

    The representative records `bundled_count` and `bundled_types`, and is
    hidden only when every edge in its group is hidden. Exit and
    entry highway segments pass through untouched. Lists shorter than
    `min_edges` are returned as they are.
    """
    edges = list(edges)
    if len(edges) < min_edges:
        return edges

    groups: Dict[Tuple[str, str], List[VisualEdge]] = {}
    for edge in edges:
        if edge.highway_segment in _UNBUNDLED_SEGMENTS:
            continue
        groups.setdefault((edge.source, edge.target), []).append(edge)

    output: List[VisualEdge] = []
    emitted = set()
    for edge in edges:
        if edge.highway_segment in _UNBUNDLED_SEGMENTS:
            output.append(edge)
            continue
        key = (edge.source, edge.target)
        if key in emitted:
            continue
        emitted.add(key)
        group = groups[key]
        if len(group) == 1:
            output.append(edge)
            continue
        representative = max(group, key=lambda e: (not e.hidden, edge_priority(e.relation_kind)))
        output.append(representative.model_copy(update={
            "hidden": all(e.hidden for e in group),
            "data": {
                **representative.data,
                "bundled_count": len(group),
                "bundled_types": sorted({e.relation_kind for e in group}),
            },
        }))

    if len(output) != len(edges):
        logger.debug(f"Bundled {len(edges)} edges into {len(output)}")
    return output
