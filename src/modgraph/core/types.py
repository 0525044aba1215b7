"""
Core type definitions for modgraph.

Records handed in by the persistence layer (modules, imports, symbols) and
the visual node/edge models produced by the transform pipeline.
"""

from enum import StrEnum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class NodeKind(StrEnum):
    """Categories of nodes in the visual graph."""
    PACKAGE = "package"
    MODULE = "module"
    CLASS = "class"
    INTERFACE = "interface"
    GROUP = "group"
    HUB = "hub"
    PROPERTY = "property"
    METHOD = "method"


class EdgeKind(StrEnum):
    """Relation kinds an edge can carry."""
    IMPORT = "import"
    EXPORT = "export"
    DEPENDENCY = "dependency"
    DEV_DEPENDENCY = "devDependency"
    PEER_DEPENDENCY = "peerDependency"
    INHERITANCE = "inheritance"
    IMPLEMENTS = "implements"
    EXTENDS = "extends"
    CONTAINS = "contains"
    USES = "uses"


class HighwaySegment(StrEnum):
    """Role of an edge in an exit -> trunk -> entry highway route."""
    EXIT = "exit"
    TRUNK = "trunk"
    ENTRY = "entry"


class LayoutDirection(StrEnum):
    """Cardinal flow direction of the downstream layout."""
    LR = "LR"
    RL = "RL"
    TB = "TB"
    BT = "BT"


# Ordered (source, target) pair of module ids
ResolvedEdge = Tuple[str, str]


class ModuleMeta(BaseModel):
    """A source module as stored by the persistence layer. Read-only."""
    model_config = ConfigDict(frozen=True)

    id: str
    package_id: str
    name: str
    directory: str = ""
    relative_path: str
    is_barrel: bool = False
    line_count: int = 0


class ImportRecord(BaseModel):
    """One import statement of a module."""
    model_config = ConfigDict(frozen=True)

    id: str
    module_id: str
    specifier: str
    is_type_only: bool = False
    package_id: Optional[str] = None


class SymbolRecord(BaseModel):
    """
    A class, interface or member declared in a module.

    `extends` and `implements` hold ids of other symbols.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    module_id: str
    name: str
    kind: NodeKind = NodeKind.CLASS
    extends: Tuple[str, ...] = ()
    implements: Tuple[str, ...] = ()


def edge_id(source: str, target: str, kind: str) -> str:
    """Deterministic edge id so rebuilding a graph yields identical ids."""
    return f"{source}-{target}-{kind}"


class VisualNode(BaseModel):
    """
    A render-ready node. Carries structure and semantics only, never
    pixel coordinates; parent_id expresses containment, not adjacency.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    type: NodeKind
    parent_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_collapsed(self) -> bool:
        return bool(self.data.get("is_collapsed", False))


class VisualEdge(BaseModel):
    """A render-ready edge between two VisualNodes."""
    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    target: str
    source_handle_id: Optional[str] = None
    target_handle_id: Optional[str] = None
    hidden: bool = False
    data: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def create(cls, source: str, target: str, kind: str, **data: Any) -> "VisualEdge":
        """Build an edge with the deterministic id for (source, target, kind)."""
        return cls(
            id=edge_id(source, target, kind),
            source=source,
            target=target,
            data={"relation_kind": str(kind), **data},
        )

    @property
    def relation_kind(self) -> str:
        return self.data.get("relation_kind", EdgeKind.DEPENDENCY.value)

    @property
    def highway_segment(self) -> Optional[str]:
        return self.data.get("highway_segment")


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class Dimensions(BaseModel):
    width: float
    height: float


class LiveNode(BaseModel):
    """
    A VisualNode as held by the rendering layer, with the geometry and
    selection state the reconciler patches.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    type: NodeKind
    parent_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    position: Position = Field(default_factory=Position)
    width: Optional[float] = None
    height: Optional[float] = None
    dimensions: Optional[Dimensions] = None
    measured: Optional[Dimensions] = None
    selected: bool = False

    @classmethod
    def from_visual(cls, node: VisualNode) -> "LiveNode":
        return cls(id=node.id, type=node.type, parent_id=node.parent_id, data=dict(node.data))
