"""
Canonical import graph.

The canonical graph is the unmodified directed graph of internal module
imports, built once per data load and frozen. Every visual transform reads
from it and none writes to it; a consumer that needs a different view
derives a new graph (see `CanonicalGraph.subgraph`).

Storage:
    - adjacency: module id -> frozenset of imported module ids
    - reverse_adjacency: module id -> frozenset of importer ids
    Both are read-only mappings and exact transposes of each other.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Set

from .resolver import PathLookup, resolve
from .rows import ImportRow, ModuleRow, normalize_rows
from .types import ImportRecord, ModuleMeta, ResolvedEdge

logger = logging.getLogger(__name__)

_EMPTY: FrozenSet[str] = frozenset()


def _freeze(table: Mapping[str, Iterable[str]]) -> Mapping[str, FrozenSet[str]]:
    return MappingProxyType({key: frozenset(values) for key, values in table.items()})


@dataclass(frozen=True)
class CanonicalGraph:
    """
    Immutable directed graph over internal module ids.

    Invariants:
        - every id in adjacency/reverse_adjacency is in node_ids
        - every node id has an entry (possibly empty) in both tables
        - t in adjacency[s]  <=>  s in reverse_adjacency[t]
        - no self-edges
    """
    node_ids: FrozenSet[str]
    adjacency: Mapping[str, FrozenSet[str]]
    reverse_adjacency: Mapping[str, FrozenSet[str]]
    modules: Mapping[str, ModuleMeta] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_edges(
        cls,
        modules: Iterable[ModuleMeta],
        edges: Iterable[ResolvedEdge],
    ) -> "CanonicalGraph":
        """Build a graph from modules and resolved edges, enforcing the invariants."""
        module_map: Dict[str, ModuleMeta] = {m.id: m for m in modules}
        adjacency: Dict[str, Set[str]] = {mid: set() for mid in module_map}
        reverse: Dict[str, Set[str]] = {mid: set() for mid in module_map}

        for source, target in edges:
            if source == target:
                continue
            if source not in module_map or target not in module_map:
                continue
            adjacency[source].add(target)
            reverse[target].add(source)

        return cls(
            node_ids=frozenset(module_map),
            adjacency=_freeze(adjacency),
            reverse_adjacency=_freeze(reverse),
            modules=MappingProxyType(module_map),
        )

    def successors(self, node_id: str) -> FrozenSet[str]:
        return self.adjacency.get(node_id, _EMPTY)

    def predecessors(self, node_id: str) -> FrozenSet[str]:
        return self.reverse_adjacency.get(node_id, _EMPTY)

    def has_node(self, node_id: str) -> bool:
        return node_id in self.node_ids

    def iter_edges(self) -> Iterator[ResolvedEdge]:
        """Yield every (source, target) pair in sorted order."""
        for source in sorted(self.adjacency):
            for target in sorted(self.adjacency[source]):
                yield source, target

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self.adjacency.values())

    def __len__(self) -> int:
        return len(self.node_ids)

    def subgraph(self, node_ids: Iterable[str]) -> "CanonicalGraph":
        """Derive a new graph restricted to `node_ids`. This graph is untouched."""
        keep = set(node_ids) & self.node_ids
        return CanonicalGraph.from_edges(
            (self.modules[mid] for mid in keep),
            ((s, t) for s, t in self.iter_edges() if s in keep and t in keep),
        )

    def structurally_equal(self, other: "CanonicalGraph") -> bool:
        return (
            self.node_ids == other.node_ids
            and dict(self.adjacency) == dict(other.adjacency)
            and dict(self.reverse_adjacency) == dict(other.reverse_adjacency)
        )

    def find_by_path(self, path: str) -> Optional[str]:
        """Return the id of the first module whose relative_path equals `path`."""
        for module_id in sorted(self.modules):
            if self.modules[module_id].relative_path == path:
                return module_id
        return None

    def resolve_node_id(self, key: str) -> Optional[str]:
        """Accept either a module id or a relative path."""
        if key in self.node_ids:
            return key
        return self.find_by_path(key)


class CanonicalGraphBuilder:
    """
    Builds a CanonicalGraph from normalized modules and imports.

    The path lookup tables are built once before any import is resolved.

    Example:
        builder = CanonicalGraphBuilder(modules)
        graph = builder.build(imports)
    """

    def __init__(self, modules: Iterable[ModuleMeta]):
        self.modules: List[ModuleMeta] = list(modules)
        self._by_id: Dict[str, ModuleMeta] = {m.id: m for m in self.modules}
        self.lookup = PathLookup(self.modules)

    def resolve_import(self, record: ImportRecord) -> Optional[ResolvedEdge]:
        importer = self._by_id.get(record.module_id)
        if importer is None:
            logger.debug(f"Skipping import {record.id}: unknown importer {record.module_id}")
            return None
        target = resolve(importer.relative_path, record.specifier, importer.package_id, self.lookup)
        if target is None or target == importer.id:
            return None
        return importer.id, target

    def build(self, imports: Iterable[ImportRecord]) -> CanonicalGraph:
        edges: Set[ResolvedEdge] = set()
        unresolved = 0
        for record in imports:
            edge = self.resolve_import(record)
            if edge is None:
                unresolved += 1
                continue
            edges.add(edge)

        graph = CanonicalGraph.from_edges(self.modules, edges)
        logger.debug(
            f"Canonical graph: {len(graph)} modules, {graph.edge_count} edges, "
            f"{unresolved} imports unresolved or external"
        )
        return graph


def build_canonical_graph(
    module_rows: Iterable[ModuleRow],
    import_rows: Iterable[ImportRow],
    package_id: Optional[str] = None,
) -> CanonicalGraph:
    """
    Normalize raw rows and build the canonical graph.

    Args:
        module_rows: Raw module rows.
        import_rows: Raw import rows.
        package_id: When given, only that package's modules and imports are used.
    """
    modules, imports = normalize_rows(module_rows, import_rows, package_id)
    return CanonicalGraphBuilder(modules).build(imports)
