"""
Folder boundary handle selection.

Every folder exposes one "in" and one "out" handle per side. For a given
layout direction incoming traffic always attaches to the upstream side and
outgoing traffic to the downstream side, so edges entering and leaving a
folder never cross through the same boundary point.
"""

from typing import Dict, Tuple

from ..core.types import HighwaySegment, LayoutDirection, VisualEdge

INCOMING = "incoming"
OUTGOING = "outgoing"

FOLDER_HANDLE_IDS: Dict[str, str] = {
    "top_in": "folder-top-in",
    "top_out": "folder-top-out",
    "right_in": "folder-right-in",
    "right_out": "folder-right-out",
    "bottom_in": "folder-bottom-in",
    "bottom_out": "folder-bottom-out",
    "left_in": "folder-left-in",
    "left_out": "folder-left-out",
}

# direction -> (incoming side, outgoing side)
_SIDES: Dict[LayoutDirection, Tuple[str, str]] = {
    LayoutDirection.LR: ("left", "right"),
    LayoutDirection.RL: ("right", "left"),
    LayoutDirection.TB: ("top", "bottom"),
    LayoutDirection.BT: ("bottom", "top"),
}


def select_folder_handle(direction: LayoutDirection, role: str) -> str:
    """
    Handle id for traffic with the given role.

    Args:
        direction: Layout flow direction.
        role: INCOMING or OUTGOING.
    """
    incoming_side, outgoing_side = _SIDES[LayoutDirection(direction)]
    if role == INCOMING:
        return FOLDER_HANDLE_IDS[f"{incoming_side}_in"]
    if role == OUTGOING:
        return FOLDER_HANDLE_IDS[f"{outgoing_side}_out"]
    raise ValueError(f"Unknown handle role: {role}")


def assign_segment_handles(edge: VisualEdge, direction: LayoutDirection) -> VisualEdge:
    """
    Attach boundary handles to a highway segment.

    exit:  target = out handle
    trunk: source = out handle, target = in handle
    entry: source = in handle
    Non-highway edges are returned unchanged.
    """
    segment = edge.highway_segment
    outgoing = select_folder_handle(direction, OUTGOING)
    incoming = select_folder_handle(direction, INCOMING)

    if segment == HighwaySegment.EXIT:
        return edge.model_copy(update={"target_handle_id": outgoing})
    if segment == HighwaySegment.TRUNK:
        return edge.model_copy(update={"source_handle_id": outgoing, "target_handle_id": incoming})
    if segment == HighwaySegment.ENTRY:
        return edge.model_copy(update={"source_handle_id": incoming})
    return edge
