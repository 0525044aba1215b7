"""
Folder clustering and collapse.

Clustering groups module and symbol nodes into folder (`group`) nodes, one
per directory that directly holds a node, nested under the nearest ancestor
directory that also has a folder. Collapsing a folder hides its descendants
and lifts their edges onto the folder ("lift-and-dedup").

The membership helpers here are pure lookups over `parent_id` and are reused
by the highway transform and by traversal's containing-folder computation.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set

from ..core.types import NodeKind, VisualEdge, VisualNode, edge_id

logger = logging.getLogger(__name__)

ROOT_DIRECTORY_LABEL = "root"

CLUSTERABLE_KINDS = frozenset({
    NodeKind.MODULE, NodeKind.CLASS, NodeKind.INTERFACE, NodeKind.PROPERTY, NodeKind.METHOD,
})


def folder_id(package_id: str, directory: str) -> str:
    return f"dir:{package_id}:{directory or ROOT_DIRECTORY_LABEL}"


@dataclass
class ClusterResult:
    """
    Output of cluster_by_folder.

    Attributes:
        nodes: Folder nodes followed by the re-parented input nodes.
        edges: The input edges, unchanged.
        parent_map: node id -> parent folder id, for every node with a parent.
    """

    nodes: List[VisualNode]
    edges: List[VisualEdge]
    parent_map: Dict[str, str] = field(default_factory=dict)


@dataclass
class CollapseMeta:
    child_ids: List[str] = field(default_factory=list)
    lifted_edge_count: int = 0


@dataclass
class CollapseResult:
    nodes: List[VisualNode]
    edges: List[VisualEdge]
    collapsed_meta: Dict[str, CollapseMeta] = field(default_factory=dict)


def build_parent_map(nodes: Iterable[VisualNode]) -> Dict[str, str]:
    """node id -> immediate parent id."""
    return {node.id: node.parent_id for node in nodes if node.parent_id}


def find_collapsed_ancestor(
    node_id: str,
    parent_map: Mapping[str, str],
    collapsed_ids: Set[str],
) -> Optional[str]:
    """The outermost collapsed ancestor of a node, if any."""
    found = None
    seen = {node_id}
    parent = parent_map.get(node_id)
    while parent is not None and parent not in seen:
        if parent in collapsed_ids:
            found = parent
        seen.add(parent)
        parent = parent_map.get(parent)
    return found


def build_child_to_folder_map(
    nodes: Iterable[VisualNode],
    collapsed_folder_ids: Set[str],
) -> Dict[str, str]:
    """node id -> outermost collapsed ancestor folder, for hidden nodes only."""
    nodes = list(nodes)
    parent_map = build_parent_map(nodes)
    child_to_folder: Dict[str, str] = {}
    for node in nodes:
        ancestor = find_collapsed_ancestor(node.id, parent_map, collapsed_folder_ids)
        if ancestor is not None:
            child_to_folder[node.id] = ancestor
    return child_to_folder


def get_ancestor_folders(
    node_id: str,
    parent_map: Mapping[str, str],
    node_by_id: Optional[Mapping[str, VisualNode]] = None,
) -> List[str]:
    """
    All ancestor folders of a node, nearest first.

    Without `node_by_id` every ancestor in `parent_map` is treated as a
    folder; with it, only ancestors of type `group` are returned.
    """
    folders: List[str] = []
    seen = {node_id}
    parent = parent_map.get(node_id)
    while parent is not None and parent not in seen:
        seen.add(parent)
        parent_node = node_by_id.get(parent) if node_by_id is not None else None
        if node_by_id is None or (parent_node is not None and parent_node.type == NodeKind.GROUP):
            folders.append(parent)
        parent = parent_map.get(parent)
    return folders


def build_node_to_folder_map(nodes: Iterable[VisualNode]) -> Dict[str, str]:
    """node id -> nearest ancestor of type `group`."""
    nodes = list(nodes)
    parent_map = build_parent_map(nodes)
    node_by_id = {node.id: node for node in nodes}
    node_to_folder: Dict[str, str] = {}
    for node in nodes:
        folders = get_ancestor_folders(node.id, parent_map, node_by_id)
        if folders:
            node_to_folder[node.id] = folders[0]
    return node_to_folder


def _node_directory(node: VisualNode) -> Optional[tuple]:
    package_id = node.data.get("package_id")
    path = node.data.get("relative_path")
    if not package_id or path is None:
        return None
    normalized = str(path).replace("\\", "/")
    return str(package_id), posixpath.dirname(normalized)


def _nearest_existing_ancestor(package_id: str, directory: str, known: Set[tuple]) -> Optional[str]:
    current = directory
    while current:
        current = posixpath.dirname(current)
        if (package_id, current) in known:
            return current
    return None


def cluster_by_folder(nodes: Iterable[VisualNode], edges: Iterable[VisualEdge]) -> ClusterResult:
    """
    Assign every module/symbol node to a folder derived from its path.

    Nodes without `package_id`/`relative_path` data, packages and hubs are
    left untouched.
    """
    nodes = list(nodes)
    edges = list(edges)

    directories: Set[tuple] = set()
    for node in nodes:
        if node.type in CLUSTERABLE_KINDS:
            location = _node_directory(node)
            if location is not None:
                directories.add(location)

    if not directories:
        return ClusterResult(nodes=nodes, edges=edges, parent_map=build_parent_map(nodes))

    folders: List[VisualNode] = []
    for package_id, directory in sorted(directories):
        if directory:
            parent_dir = _nearest_existing_ancestor(package_id, directory, directories)
        else:
            parent_dir = None
        folders.append(VisualNode(
            id=folder_id(package_id, directory),
            type=NodeKind.GROUP,
            parent_id=folder_id(package_id, parent_dir) if parent_dir is not None else None,
            data={
                "label": f"{package_id}/{directory or ROOT_DIRECTORY_LABEL}",
                "package_id": package_id,
                "directory": directory,
                "is_collapsed": False,
            },
        ))

    remapped: List[VisualNode] = []
    for node in nodes:
        location = _node_directory(node) if node.type in CLUSTERABLE_KINDS else None
        if location is None:
            remapped.append(node)
            continue
        remapped.append(node.model_copy(update={"parent_id": folder_id(*location)}))

    clustered = folders + remapped
    logger.debug(f"Clustered {len(remapped)} nodes into {len(folders)} folders")
    return ClusterResult(nodes=clustered, edges=edges, parent_map=build_parent_map(clustered))


def collapse_folders(
    nodes: Iterable[VisualNode],
    edges: Iterable[VisualEdge],
    collapsed_folder_ids: Iterable[str],
) -> CollapseResult:
    """
    Hide the descendants of each collapsed folder and lift their edges.

    Every edge endpoint inside a collapsed folder is rewritten to the
    outermost collapsed ancestor. Edges that end up inside a single folder
    are dropped, the rest are deduplicated by (source, target, relation kind).
    """
    nodes = list(nodes)
    edges = list(edges)
    folder_ids = {node.id for node in nodes if node.type == NodeKind.GROUP}
    collapsed = set(collapsed_folder_ids) & folder_ids
    if not collapsed:
        return CollapseResult(nodes=nodes, edges=edges)

    child_to_folder = build_child_to_folder_map(nodes, collapsed)
    meta: Dict[str, CollapseMeta] = {}
    for child, folder in child_to_folder.items():
        meta.setdefault(folder, CollapseMeta()).child_ids.append(child)

    output_nodes: List[VisualNode] = []
    for node in nodes:
        if node.id in child_to_folder:
            continue
        if node.id in collapsed:
            folder_meta = meta.setdefault(node.id, CollapseMeta())
            output_nodes.append(node.model_copy(update={"data": {
                **node.data,
                "is_collapsed": True,
                "child_count": len(folder_meta.child_ids),
            }}))
        else:
            output_nodes.append(node)

    lifted: Dict[str, VisualEdge] = {}
    for edge in edges:
        source = child_to_folder.get(edge.source, edge.source)
        target = child_to_folder.get(edge.target, edge.target)
        remapped = source != edge.source or target != edge.target

        if remapped and edge.highway_segment in ("exit", "entry"):
            continue
        if source == target:
            continue

        kind = edge.relation_kind
        key = edge_id(source, target, kind)
        if remapped:
            for folder in {source, target} & collapsed:
                meta.setdefault(folder, CollapseMeta()).lifted_edge_count += 1
        if key in lifted:
            continue
        if not remapped:
            lifted[key] = edge
            continue
        lifted[key] = edge.model_copy(update={
            "id": key,
            "source": source,
            "target": target,
            "source_handle_id": edge.source_handle_id if source == edge.source else None,
            "target_handle_id": edge.target_handle_id if target == edge.target else None,
            "hidden": False,
        })

    logger.debug(
        f"Collapsed {len(collapsed)} folders: {len(child_to_folder)} nodes hidden, "
        f"{len(edges)} -> {len(lifted)} edges"
    )
    return CollapseResult(nodes=output_nodes, edges=list(lifted.values()), collapsed_meta=meta)
