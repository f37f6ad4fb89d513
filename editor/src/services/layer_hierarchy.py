"""
Phaser Layout Editor - Layer Hierarchy & Drag Reordering

Projects the flat container/asset store into the ordered layer tree shown
in the layers panel, and models drag-and-drop reparenting as an explicit
state machine:

    IDLE --start_drag--> DRAGGING --update_target(valid)--> HOVERING
    HOVERING --update_target(invalid)--> DRAGGING
    DRAGGING/HOVERING --drop/cancel--> IDLE

Validity rules (cycle prevention, assets never at root, locks) are checked
when a target is offered, so an invalid intent is never recorded and drop
becomes a no-op.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Set

from constants import DEPTH_STEP

logger = logging.getLogger('LayerHierarchy')

NODE_CONTAINER = 'container'
NODE_ASSET = 'asset'

DROP_BEFORE = 'before'
DROP_INSIDE = 'inside'
DROP_AFTER = 'after'
DROP_POSITIONS = (DROP_BEFORE, DROP_INSIDE, DROP_AFTER)


@dataclass
class LayerNode:
    """One row of the layer tree"""
    id: str
    name: str
    type: str
    depth: float
    parent_id: Optional[str]
    level: int
    is_locked: bool = False
    is_visible: bool = True
    is_expanded: bool = False
    children: List['LayerNode'] = field(default_factory=list)

    @property
    def is_container(self) -> bool:
        return self.type == NODE_CONTAINER


def build_layer_hierarchy(layout, expanded: Optional[Set[str]] = None) -> List[LayerNode]:
    """Build the ordered layer tree

    Root containers come first ordered by descending depth. Inside each
    container, child containers are listed before assets, each group by
    descending depth. Asset lock state is the effective lock.
    """
    expanded = expanded or set()

    def build_container(container, level: int) -> LayerNode:
        node = LayerNode(
            id=container.id,
            name=container.name,
            type=NODE_CONTAINER,
            depth=container.depth,
            parent_id=container.parent_id,
            level=level,
            is_locked=container.is_locked,
            is_visible=container.is_visible,
            is_expanded=container.id in expanded,
        )

        children = [layout.get_container(cid) for cid in layout.get_child_container_ids(container.id)]
        for child in sorted(children, key=lambda c: c.depth, reverse=True):
            node.children.append(build_container(child, level + 1))

        for asset in sorted(container.assets.values(), key=lambda a: a.depth, reverse=True):
            node.children.append(LayerNode(
                id=asset.id,
                name=asset.name,
                type=NODE_ASSET,
                depth=asset.depth,
                parent_id=container.id,
                level=level + 1,
                is_locked=asset.is_locked or container.is_locked,
                is_visible=asset.portrait.visible,
            ))
        return node

    roots = [layout.get_container(cid) for cid in layout.get_root_container_ids()]
    return [build_container(root, 0) for root in sorted(roots, key=lambda c: c.depth, reverse=True)]


def find_node(nodes: Iterable[LayerNode], node_id: str) -> Optional[LayerNode]:
    """Depth-first search of a built tree"""
    for node in nodes:
        if node.id == node_id:
            return node
        found = find_node(node.children, node_id)
        if found:
            return found
    return None


def flatten_hierarchy(nodes: Iterable[LayerNode], expanded_only: bool = False) -> List[LayerNode]:
    """Rows in display order (optionally hiding children of collapsed containers)"""
    rows = []
    for node in nodes:
        rows.append(node)
        if node.children and (node.is_expanded or not expanded_only):
            rows.extend(flatten_hierarchy(node.children, expanded_only))
    return rows


def drop_position_for(cursor_y: float, row_top: float, row_height: float) -> str:
    """Drop intent from the cursor's position within a row (thirds)

    Raises:
        ValueError: If row_height is not positive
    """
    if row_height <= 0:
        raise ValueError(f"row_height must be positive, got {row_height}")
    relative = (cursor_y - row_top) / row_height
    if relative < 1.0 / 3.0:
        return DROP_BEFORE
    if relative > 2.0 / 3.0:
        return DROP_AFTER
    return DROP_INSIDE


def drop_depth(target_depth: float, sibling_depths: Iterable[float], position: str) -> float:
    """Depth placing an element directly before (above) or after (below) a target

    The result lies strictly between the target and its neighbour on that
    side, or one DEPTH_STEP beyond the target when there is no neighbour.
    """
    depths = list(sibling_depths)
    if position == DROP_BEFORE:
        higher = [d for d in depths if d > target_depth]
        return (target_depth + min(higher)) / 2.0 if higher else target_depth + DEPTH_STEP
    if position == DROP_AFTER:
        lower = [d for d in depths if d < target_depth]
        return (target_depth + max(lower)) / 2.0 if lower else target_depth - DEPTH_STEP
    raise ValueError(f"drop_depth needs '{DROP_BEFORE}' or '{DROP_AFTER}', got {position!r}")


class DragState(Enum):
    IDLE = 'idle'
    DRAGGING = 'dragging'
    HOVERING = 'hovering'


class DragController:
    """Layer-panel drag-and-drop state machine

    Args:
        editor: LayoutEditor performing the final move (one history entry)
    """

    def __init__(self, editor):
        self.editor = editor
        self._reset()

    def _reset(self):
        self.state = DragState.IDLE
        self.dragging_id: Optional[str] = None
        self.target_id: Optional[str] = None
        self.position: Optional[str] = None

    @property
    def layout(self):
        return self.editor.layout

    # ========================================
    # Transitions
    # ========================================

    def start_drag(self, item_id: str) -> bool:
        """IDLE -> DRAGGING. Locked or unknown items cannot be dragged."""
        if self._is_locked(item_id):
            logger.warning(f"Cannot drag {item_id}: missing or locked")
            return False
        self._reset()
        self.state = DragState.DRAGGING
        self.dragging_id = item_id
        logger.debug(f"Start drag {item_id}")
        return True

    def update_target(self, target_id: Optional[str], position: Optional[str]) -> bool:
        """Offer a drop target; records the intent only when it is valid

        target_id None with position 'after' means the tree root.
        """
        if self.state == DragState.IDLE:
            return False

        if position in DROP_POSITIONS and self.can_drop(self.dragging_id, target_id, position):
            self.state = DragState.HOVERING
            self.target_id = target_id
            self.position = position
            return True

        self.state = DragState.DRAGGING
        self.target_id = None
        self.position = None
        return False

    def drop(self) -> bool:
        """Apply the recorded intent; a no-op without one"""
        if self.state != DragState.HOVERING:
            self._reset()
            return False
        item_id, target_id, position = self.dragging_id, self.target_id, self.position
        self._reset()
        return self.editor.move_layer(item_id, target_id, position)

    def cancel(self):
        self._reset()

    # ========================================
    # Guards
    # ========================================

    def can_drop(self, item_id: Optional[str], target_id: Optional[str], position: str) -> bool:
        return can_drop(self.layout, item_id, target_id, position)

    def _is_locked(self, item_id: str) -> bool:
        layout = self.layout
        if layout.has_container(item_id):
            return layout.is_container_locked(item_id)
        owner = layout.find_asset_container(item_id)
        if owner is None:
            return True
        return layout.is_asset_locked(owner, item_id)


def can_drop(layout, item_id: Optional[str], target_id: Optional[str], position: str) -> bool:
    """Whether dropping item_id at (target_id, position) is allowed

    target_id None with position 'after' means the tree root.
    """
    if item_id is None or item_id == target_id or position not in DROP_POSITIONS:
        return False

    item_is_container = layout.has_container(item_id)
    if not item_is_container and layout.find_asset_container(item_id) is None:
        return False

    # Tree root: containers only
    if target_id is None:
        return item_is_container and position == DROP_AFTER

    target_is_container = layout.has_container(target_id)
    target_owner = None if target_is_container else layout.find_asset_container(target_id)
    if not target_is_container and target_owner is None:
        return False

    if position == DROP_INSIDE:
        if not target_is_container or layout.is_container_locked(target_id):
            return False
        # Already owned: nothing would change
        if not item_is_container and layout.find_asset_container(item_id) == target_id:
            return False
        return not (item_is_container and layout.is_ancestor(item_id, target_id))

    # before / after: reorder among siblings of the same kind
    if item_is_container != target_is_container:
        return False
    if item_is_container:
        target_parent = layout.get_container(target_id).parent_id
        if (target_parent is not None and target_parent != layout.get_container(item_id).parent_id
                and layout.is_container_locked(target_parent)):
            return False
        return not layout.is_ancestor(item_id, target_id)

    source_owner = layout.find_asset_container(item_id)
    return source_owner == target_owner or not layout.is_container_locked(target_owner)
