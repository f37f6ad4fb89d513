"""
Phaser Layout Editor - Edge Attachment Layout (legacy flow)

Containers carrying a RelativePosition are placed by putting one of their
edges against an edge of the device frame ('SCREEN') or of another
container, offset by a gap in pixels or percent of the device dimension.

Containers are processed in topological order (Kahn) so a reference is
placed before anything attached to it. Containers on a cycle, with a
missing reference, or whose two edges lie on different axes keep their
stored box.
"""

import logging
from collections import deque
from typing import Callable, Dict, List, Optional

from models.transform import Box, RelativePosition

logger = logging.getLogger('RelativeLayout')

SCREEN = 'SCREEN'

_HORIZONTAL_EDGES = ('left', 'right')
_VERTICAL_EDGES = ('top', 'bottom')


def _edge_value(box: Box, edge: str) -> float:
    return getattr(box, edge)


def _same_axis(a: str, b: str) -> bool:
    return (a in _HORIZONTAL_EDGES) == (b in _HORIZONTAL_EDGES)


def place_against(box: Box, reference: Box, relative: RelativePosition, frame: Box) -> Optional[Box]:
    """Box moved along one axis so its target edge sits against the reference edge

    The gap points from the reference edge into the target. Returns None
    when the edges lie on different axes.
    """
    if not _same_axis(relative.target_edge, relative.reference_edge):
        return None

    horizontal = relative.target_edge in _HORIZONTAL_EDGES
    gap = relative.gap
    if relative.gap_unit == 'percent':
        gap = gap / 100.0 * (frame.width if horizontal else frame.height)

    anchor = _edge_value(reference, relative.reference_edge)
    if relative.target_edge in ('left', 'top'):
        edge = anchor + gap
    else:
        edge = anchor - gap

    if horizontal:
        half = box.width / 2.0
        x = edge + half if relative.target_edge == 'left' else edge - half
        return Box(x, box.y, box.width, box.height)

    half = box.height / 2.0
    y = edge + half if relative.target_edge == 'top' else edge - half
    return Box(box.x, y, box.width, box.height)


def relative_layout_order(layout) -> List[str]:
    """Attached container ids, references first (cycle members omitted)"""
    attached = {
        c.id: c.relative_position for c in
        (layout.get_container(cid) for cid in layout.get_all_container_ids())
        if c.relative_position is not None
    }

    dependents: Dict[str, List[str]] = {}
    in_degree = {cid: 0 for cid in attached}
    for cid, relative in attached.items():
        if relative.reference_id in attached:
            dependents.setdefault(relative.reference_id, []).append(cid)
            in_degree[cid] += 1

    queue = deque(cid for cid, degree in in_degree.items() if degree == 0)
    order = []
    while queue:
        current = queue.popleft()
        order.append(current)
        for dependent in dependents.get(current, []):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    cyclic = [cid for cid in attached if cid not in order]
    if cyclic:
        logger.warning(f"Relative positions form a cycle, keeping stored boxes for {cyclic}")
    return order


def _resolve_one(layout, container_id: str, orientation: str,
                 lookup: Callable[[str], Optional[Box]]) -> Optional[Box]:
    container = layout.get_container(container_id)
    relative = container.relative_position
    frame = layout.device.frame_box(orientation)

    if relative.reference_id == SCREEN:
        reference = frame
    else:
        reference = lookup(relative.reference_id)
        if reference is None:
            logger.debug(f"Container {container_id} references missing {relative.reference_id}")
            return None

    return place_against(container.position(orientation).to_box(), reference, relative, frame)


def resolve_relative_layout(layout, orientation: str) -> Dict[str, Box]:
    """Box of every container after applying edge attachments (read-only)"""
    boxes = {
        cid: layout.get_container_position(cid, orientation).to_box()
        for cid in layout.get_all_container_ids()
    }
    for container_id in relative_layout_order(layout):
        placed = _resolve_one(layout, container_id, orientation, boxes.get)
        if placed is not None:
            boxes[container_id] = placed
    return boxes


def apply_relative_layout(editor, orientation: str) -> List[str]:
    """Write attachment results through the editor as one undo step

    Moves cascade to descendants like any other container move.

    Returns:
        Ids of the containers that moved
    """
    layout = editor.layout

    def live_box(container_id: str) -> Optional[Box]:
        if not layout.has_container(container_id):
            return None
        return layout.get_container_position(container_id, orientation).to_box()

    moved = []
    editor.begin_gesture("Apply relative layout")
    try:
        for container_id in relative_layout_order(layout):
            placed = _resolve_one(layout, container_id, orientation, live_box)
            if placed is None:
                continue
            current = live_box(container_id)
            if (placed.x, placed.y) == (current.x, current.y):
                continue
            if editor.set_container_position(container_id, placed.x, placed.y, orientation):
                moved.append(container_id)
    finally:
        editor.end_gesture()
    return moved
