"""
Node-state reconciler.

Applies a batch of incremental changes coming back from the rendering
layer (removals, positions, measured dimensions, selection) to the live
node collection.

Ordering contract:
    1. removals are recorded first and discard pending updates for that id
    2. every other change is aggregated per node id
    3. one pass over the node collection builds the new collection
This keeps the cost at O(changes + nodes) and gives one merged state per
node even when several change kinds target it in the same batch.
"""

from typing import Annotated, Dict, Iterable, List, Literal, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ..core.types import Dimensions, LiveNode, Position


class RemoveChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["remove"] = "remove"
    id: str


class PositionChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["position"] = "position"
    id: str
    position: Optional[Position] = None


class DimensionsChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["dimensions"] = "dimensions"
    id: str
    dimensions: Optional[Dimensions] = None
    measured: Optional[Dimensions] = None


class SelectChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["select"] = "select"
    id: str
    selected: bool


NodeChange = Annotated[
    Union[RemoveChange, PositionChange, DimensionsChange, SelectChange],
    Field(discriminator="type"),
]

_change_list = TypeAdapter(List[NodeChange])


def parse_node_changes(raw: Iterable[dict]) -> List[NodeChange]:
    """Validate a batch of change dicts into typed changes."""
    return _change_list.validate_python(list(raw))


class _PendingUpdate:
    __slots__ = ("position", "width", "height", "measured", "selected")

    def __init__(self) -> None:
        self.position: Optional[Dict[str, float]] = None
        self.width: Optional[float] = None
        self.height: Optional[float] = None
        self.measured: Optional[Dimensions] = None
        self.selected: Optional[bool] = None


def apply_node_changes(changes: Iterable[NodeChange], nodes: Iterable[LiveNode]) -> List[LiveNode]:
    """
    Apply a batch of node changes and return a new node list.

    A dimensions change sets width, height and `dimensions`; `measured`
    takes the explicit override when one was supplied in the batch and
    the raw dimensions otherwise.
    """
    removed: Set[str] = set()
    updates: Dict[str, _PendingUpdate] = {}

    for change in changes:
        if isinstance(change, RemoveChange):
            removed.add(change.id)
            updates.pop(change.id, None)
            continue

        if isinstance(change, PositionChange):
            if change.position is None:
                continue
            pending = updates.setdefault(change.id, _PendingUpdate())
            merged = dict(pending.position or {})
            merged.update(change.position.model_dump(exclude_unset=True))
            pending.position = merged
        elif isinstance(change, DimensionsChange):
            pending = updates.setdefault(change.id, _PendingUpdate())
            if change.dimensions is not None:
                pending.width = change.dimensions.width
                pending.height = change.dimensions.height
            if change.measured is not None:
                pending.measured = change.measured
        elif isinstance(change, SelectChange):
            updates.setdefault(change.id, _PendingUpdate()).selected = change.selected

    result: List[LiveNode] = []
    for node in nodes:
        if node.id in removed:
            continue
        pending = updates.get(node.id)
        if pending is None:
            result.append(node)
            continue

        patch: Dict[str, object] = {}
        if pending.position is not None:
            position = node.position.model_dump()
            position.update(pending.position)
            patch["position"] = Position(**position)
        if pending.width is not None:
            patch["width"] = pending.width
        if pending.height is not None:
            patch["height"] = pending.height

        dimensions = None
        if pending.width is not None and pending.height is not None:
            dimensions = Dimensions(width=pending.width, height=pending.height)
            patch["dimensions"] = dimensions
        measured = pending.measured or dimensions
        if measured is not None:
            patch["measured"] = measured
        if pending.selected is not None:
            patch["selected"] = pending.selected

        result.append(node.model_copy(update=patch))
    return result
