"""
Edge kind priority and registry.

The registry declares which node kinds each relation kind may connect and
whether the relation is structural (containment) or relational. Priority
decides which kind represents a bundle of parallel edges and which kind a
highway trunk is labelled with.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from ..core.types import EdgeKind, NodeKind

EDGE_KIND_PRIORITY: Dict[str, int] = {
    EdgeKind.CONTAINS: 5,
    EdgeKind.USES: 5,
    EdgeKind.INHERITANCE: 4,
    EdgeKind.IMPLEMENTS: 3,
    EdgeKind.EXTENDS: 3,
    EdgeKind.DEPENDENCY: 2,
    EdgeKind.IMPORT: 1,
    EdgeKind.DEV_DEPENDENCY: 0,
    EdgeKind.PEER_DEPENDENCY: 0,
    EdgeKind.EXPORT: 0,
}

HANDLE_STRUCTURAL = "structural"
HANDLE_RELATIONAL = "relational"

# Kinds traversed by default when following semantic neighbors
DEFAULT_TRAVERSAL_KINDS: FrozenSet[EdgeKind] = frozenset(
    kind for kind in EdgeKind if kind not in (EdgeKind.CONTAINS, EdgeKind.USES)
)

_PACKAGE_LIKE = frozenset({NodeKind.PACKAGE, NodeKind.GROUP})
_MODULE_LIKE = frozenset({NodeKind.MODULE, NodeKind.GROUP})
_TYPE_LIKE = frozenset({NodeKind.CLASS, NodeKind.INTERFACE, NodeKind.GROUP})
_MEMBER_OWNERS = frozenset({NodeKind.CLASS, NodeKind.INTERFACE, NodeKind.MODULE})
_MEMBERS = frozenset({NodeKind.PROPERTY, NodeKind.METHOD})


@dataclass(frozen=True)
class EdgeKindSpec:
    """
    Connection rules for one relation kind.

    Attributes:
        valid_sources: Node kinds allowed at the edge's source.
        valid_targets: Node kinds allowed at the edge's target.
        handle_category: "structural" or "relational".
    """

    valid_sources: FrozenSet[NodeKind]
    valid_targets: FrozenSet[NodeKind]
    handle_category: str = HANDLE_RELATIONAL


EDGE_TYPE_REGISTRY: Mapping[str, EdgeKindSpec] = {
    EdgeKind.DEPENDENCY: EdgeKindSpec(_PACKAGE_LIKE, _PACKAGE_LIKE),
    EdgeKind.DEV_DEPENDENCY: EdgeKindSpec(_PACKAGE_LIKE, _PACKAGE_LIKE),
    EdgeKind.PEER_DEPENDENCY: EdgeKindSpec(_PACKAGE_LIKE, _PACKAGE_LIKE),
    EdgeKind.IMPORT: EdgeKindSpec(_MODULE_LIKE, _MODULE_LIKE),
    EdgeKind.EXPORT: EdgeKindSpec(_MODULE_LIKE, _MODULE_LIKE),
    EdgeKind.INHERITANCE: EdgeKindSpec(_TYPE_LIKE, _TYPE_LIKE),
    EdgeKind.IMPLEMENTS: EdgeKindSpec(_TYPE_LIKE, _TYPE_LIKE),
    EdgeKind.EXTENDS: EdgeKindSpec(_TYPE_LIKE, _TYPE_LIKE),
    EdgeKind.CONTAINS: EdgeKindSpec(
        _MEMBER_OWNERS | _PACKAGE_LIKE, _MEMBERS | _TYPE_LIKE | _MODULE_LIKE, HANDLE_STRUCTURAL
    ),
    EdgeKind.USES: EdgeKindSpec(_MEMBERS | _TYPE_LIKE, _MEMBERS | _TYPE_LIKE),
}


def to_edge_kind(value: Optional[str]) -> EdgeKind:
    """Map any string onto a known EdgeKind, falling back to dependency."""
    try:
        return EdgeKind(value)
    except ValueError:
        return EdgeKind.DEPENDENCY


def edge_priority(kind: Optional[str]) -> int:
    return EDGE_KIND_PRIORITY.get(to_edge_kind(kind), 0)


def pick_primary_kind(counts: Mapping[str, int]) -> str:
    """
    The kind with the highest count; ties go to the higher priority kind,
    then alphabetical order so the choice is stable.
    """
    if not counts:
        return EdgeKind.DEPENDENCY.value
    return min(counts, key=lambda kind: (-counts[kind], -edge_priority(kind), kind))


def highest_priority_kind(kinds: Iterable[str]) -> str:
    kinds = sorted(set(kinds))
    if not kinds:
        return EdgeKind.DEPENDENCY.value
    return max(kinds, key=edge_priority)


def is_valid_edge_connection(kind: str, source_kind: Optional[str], target_kind: Optional[str]) -> bool:
    """True when the registry allows `kind` between nodes of the given kinds."""
    spec = EDGE_TYPE_REGISTRY.get(to_edge_kind(kind))
    if spec is None or source_kind is None or target_kind is None:
        return False
    return NodeKind(source_kind) in spec.valid_sources and NodeKind(target_kind) in spec.valid_targets


def handle_category(kind: str) -> str:
    spec = EDGE_TYPE_REGISTRY.get(to_edge_kind(kind))
    return spec.handle_category if spec else HANDLE_RELATIONAL
