"""
Container Management Mixin for Layout Model

Provides methods for creating, updating and deleting containers.
Containers are identified by UUID strings and form a forest through parentId.
"""

import uuid as uuid_module
from collections import deque
from typing import Dict, List, Optional

from constants import (
    ORIENTATIONS,
    DEFAULT_CONTAINER_WIDTH, DEFAULT_CONTAINER_HEIGHT,
    CHILD_CONTAINER_SIZE_RATIO, DEPTH_STEP,
)
from models.transform import ContainerPosition, RelativePosition

from ._internal.container import Container

CONTAINER_POSITION_KEYS = ('x', 'y', 'width', 'height')


class LayoutContainerMixin:
    """Mixin providing container management functionality for Layout model"""

    # ========================================
    # Creation / Deletion
    # ========================================

    def add_container(self, parent_id: Optional[str] = None, name: Optional[str] = None) -> str:
        """Create a new container

        Root containers get a default box centred on the device frame.
        Nested containers are centred on the parent at half its size.

        Args:
            parent_id: Owning container UUID, or None for root level
            name: Display name (defaults to "Container N")

        Returns:
            UUID of the new container

        Raises:
            ValueError: If parent_id is not found
        """
        parent = self._require_container(parent_id) if parent_id else None

        self._container_counter += 1
        data = {
            'id': str(uuid_module.uuid4()),
            'name': name or f"Container {self._container_counter}",
            'parentId': parent_id,
            'depth': self.next_container_depth(parent_id),
        }

        for orientation in ORIENTATIONS:
            if parent is not None:
                parent_pos = parent.position(orientation)
                data[orientation] = {
                    'x': parent_pos.x,
                    'y': parent_pos.y,
                    'width': parent_pos.width * CHILD_CONTAINER_SIZE_RATIO,
                    'height': parent_pos.height * CHILD_CONTAINER_SIZE_RATIO,
                }
            else:
                frame = self._device.frame_box(orientation)
                data[orientation] = {
                    'x': frame.x,
                    'y': frame.y,
                    'width': DEFAULT_CONTAINER_WIDTH,
                    'height': DEFAULT_CONTAINER_HEIGHT,
                }

        container = Container(data)
        self._containers.append(container)

        self._logger.info(f"Added container {container.id} ({container.name}) parent={parent_id}")
        self._notify('container_added', container_id=container.id)
        return container.id

    def delete_container(self, container_id: str):
        """Delete a container together with every descendant container and their assets

        Args:
            container_id: Container UUID

        Raises:
            ValueError: If container_id is not found
        """
        self._require_container(container_id)

        doomed = [container_id] + self.get_descendant_container_ids(container_id)
        for doomed_id in doomed:
            self._containers.remove(doomed_id)

        self._logger.info(f"Deleted container {container_id} and {len(doomed) - 1} descendants")
        for doomed_id in doomed:
            self._notify('container_deleted', container_id=doomed_id)

    # ========================================
    # Geometry
    # ========================================

    def update_container(self, container_id: str, updates: Dict[str, float], orientation: str):
        """Merge a partial position into one orientation of a container

        This does NOT cascade to children. Callers wanting descendants to
        follow use CascadePropagator.

        Args:
            container_id: Container UUID
            updates: Any subset of x, y, width, height (pixels)
            orientation: 'portrait' or 'landscape'

        Raises:
            ValueError: If container not found, key unknown or size negative
        """
        self._require_orientation(orientation)
        container = self._require_container(container_id)

        unknown = set(updates) - set(CONTAINER_POSITION_KEYS)
        if unknown:
            raise ValueError(f"Unknown container position fields: {sorted(unknown)}")

        values = container.position(orientation).to_dict()
        values.update({key: float(value) for key, value in updates.items()})
        if values['width'] < 0 or values['height'] < 0:
            raise ValueError(f"Container size must not be negative, got {values['width']}x{values['height']}")

        container.set_position(orientation, ContainerPosition.from_dict(values))

        self._logger.debug(f"Updated container {container_id} {orientation}: {updates}")
        self._notify('container_updated', container_id=container_id, orientation=orientation)

    def translate_container(self, container_id: str, dx: float, dy: float, orientation: str):
        """Shift one container (only that container) by a pixel delta"""
        position = self.get_container_position(container_id, orientation)
        self.update_container(container_id, {'x': position.x + dx, 'y': position.y + dy}, orientation)

    def copy_orientation(self, container_id: str, source: str, target: str):
        """Copy a container's geometry and its assets' transforms between orientations

        Container geometry passes through normalized device fractions so the
        rotated frame keeps proportional placement. Asset transforms are deep
        copied; the two orientations stay independent afterwards.

        Raises:
            ValueError: If container not found or orientation invalid
        """
        self._require_orientation(source)
        self._require_orientation(target)
        container = self._require_container(container_id)
        if source == target:
            return

        src_frame = self._device.frame_size(source)
        dst_frame = self._device.frame_size(target)
        src = container.position(source)
        container.set_position(target, ContainerPosition(
            src.x / src_frame.width * dst_frame.width,
            src.y / src_frame.height * dst_frame.height,
            src.width / src_frame.width * dst_frame.width,
            src.height / src_frame.height * dst_frame.height,
        ))

        for asset in container.assets.values():
            asset.set_transform(target, asset.transform(source))

        self._logger.info(f"Copied {source} -> {target} for container {container_id}")
        self._notify('container_updated', container_id=container_id, orientation=target)

    # ========================================
    # Metadata
    # ========================================

    def rename_container(self, container_id: str, name: str):
        container = self._require_container(container_id)
        container.name = name
        self._logger.debug(f"Renamed container {container_id} -> {name}")
        self._notify('container_updated', container_id=container_id)

    def set_container_locked(self, container_id: str, locked: bool):
        """Lock or unlock a container (a locked container also locks its assets)"""
        container = self._require_container(container_id)
        container.is_locked = locked
        self._logger.debug(f"Container {container_id} locked={container.is_locked}")
        self._notify('container_updated', container_id=container_id)

    def toggle_container_lock(self, container_id: str) -> bool:
        """Flip the lock flag of a container

        Returns:
            The new lock state
        """
        container = self._require_container(container_id)
        self.set_container_locked(container_id, not container.is_locked)
        return container.is_locked

    def set_container_visible(self, container_id: str, visible: bool):
        container = self._require_container(container_id)
        container.is_visible = visible
        self._logger.debug(f"Container {container_id} visible={container.is_visible}")
        self._notify('container_updated', container_id=container_id)

    def toggle_container_visibility(self, container_id: str) -> bool:
        """Flip the visibility flag of a container

        Returns:
            The new visibility
        """
        container = self._require_container(container_id)
        self.set_container_visible(container_id, not container.is_visible)
        return container.is_visible

    def set_container_depth(self, container_id: str, depth: float):
        container = self._require_container(container_id)
        container.depth = depth
        self._logger.debug(f"Container {container_id} depth={depth}")
        self._notify('container_updated', container_id=container_id)

    def set_container_parent(self, container_id: str, parent_id: Optional[str],
                             depth: Optional[float] = None):
        """Reparent a container, keeping its absolute pixel geometry

        Args:
            container_id: Container UUID to move
            parent_id: New owner UUID, or None for root level
            depth: New depth in the target scope (defaults to next available)

        Raises:
            ValueError: If an id is not found or the move would create a cycle
        """
        container = self._require_container(container_id)
        if parent_id is not None:
            self._require_container(parent_id)
            if parent_id == container_id or self.is_ancestor(container_id, parent_id):
                raise ValueError(f"Cannot move container {container_id} inside its own descendant {parent_id}")

        if depth is None:
            depth = self.next_container_depth(parent_id) if container.parent_id != parent_id else container.depth

        container.parent_id = parent_id
        container.depth = depth

        self._logger.info(f"Reparented container {container_id} -> {parent_id} depth={depth}")
        self._notify('container_updated', container_id=container_id)

    def set_relative_position(self, container_id: str, relative: Optional[RelativePosition]):
        """Attach (or detach with None) a legacy edge attachment to a container"""
        container = self._require_container(container_id)
        if relative is not None and relative.reference_id == container_id:
            raise ValueError("A container cannot be positioned relative to itself")
        container.relative_position = relative
        self._logger.debug(f"Container {container_id} relative position: {relative}")
        self._notify('container_updated', container_id=container_id)

    # ========================================
    # Helper Methods (Internal)
    # ========================================

    def _walk_container_children(self, container_id: str) -> List[str]:
        """Breadth-first list of descendant ids (excluding container_id)"""
        result = []
        queue = deque([container_id])
        while queue:
            current = queue.popleft()
            for child_id in self.get_child_container_ids(current):
                if child_id not in result:
                    result.append(child_id)
                    queue.append(child_id)
        return result

    @staticmethod
    def _next_depth(depths: List[float]) -> float:
        return max(depths) + DEPTH_STEP if depths else 0.0
