"""
Phaser Layout Editor - Editor Facade

The single entry point external collaborators (canvas surface, property
forms, layers panel) call. Every command:

1. Rejects edits to locked elements (returns False, logs a warning)
2. Applies the primitive change through the Layout model
3. Runs the cascade for it (CascadePropagator)
4. Records one undo step, or defers it while a gesture is open

Reference resolution is read-only and available through resolver().
"""

import logging
from typing import Any, Dict, List, Optional

from constants import (
    DEFAULT_DEVICE, MIN_ELEMENT_SIZE, ORIENTATIONS, REFERENCE_CONTAINER,
)
from models.layout import Layout
from models.transform import Box
from services.alignment import (
    AlignElement, AlignmentGuide,
    calculate_aligned_position, calculate_alignment_guides, snap_to_guides,
)
from services.asset_library import AssetLibrary
from services.file_operations import export_layout_zip, get_export_data, import_layout_zip
from services.layer_hierarchy import DROP_INSIDE, can_drop, drop_depth
from services.propagation import CascadePropagator
from services.reference_resolver import ReferenceResolver, ResolvedAsset, adjust_for_aspect
from utils.config import EditorConfig
from utils.history_manager import HistoryManager

DEVICE_FRAME_ID = 'device'


class LayoutEditor:
    """Lock-aware, history-recording command layer over a Layout"""

    def __init__(self, layout: Optional[Layout] = None, library: Optional[AssetLibrary] = None,
                 config: Optional[EditorConfig] = None):
        self._logger = logging.getLogger('LayoutEditor')

        self.config = config or EditorConfig()
        self.layout = layout or Layout(self.config.selected_device or DEFAULT_DEVICE)
        self.library = library or AssetLibrary(self.config.max_upload_bytes)
        self.propagator = CascadePropagator(self.layout)
        self.history_manager = HistoryManager(max_history=self.config.max_history)

        self._is_applying_history = False
        self._gesture_description: Optional[str] = None

        self.library.add_listener(self._on_library_event)
        self._save_state("New Layout")

    # ========================================
    # History
    # ========================================

    def _capture_current_state(self) -> Dict[str, Any]:
        return {'layout_snapshot': self.layout.get_snapshot()}

    def _restore_state(self, state: Dict[str, Any]):
        self._is_applying_history = True
        try:
            self.layout.set_snapshot(state['layout_snapshot'])
        finally:
            self._is_applying_history = False

    def _save_state(self, description: str):
        """Save current state to history (deferred while a gesture is open)"""
        if self._is_applying_history or self._gesture_description is not None:
            return
        self.history_manager.save_state(self._capture_current_state(), description)

    def reset_history(self, description: str = "New Layout"):
        """Drop all history and record the current state as the oldest entry"""
        self.history_manager.clear()
        self._save_state(description)

    def begin_gesture(self, description: str):
        """Coalesce every mutation until end_gesture() into one undo step"""
        if self._gesture_description is None:
            self._gesture_description = description
            self._logger.debug(f"Begin gesture: {description}")

    def end_gesture(self) -> bool:
        """Close the open gesture

        Returns:
            True if the gesture changed the layout and was recorded
        """
        description = self._gesture_description
        if description is None:
            return False
        self._gesture_description = None

        previous = self.history_manager.current_state()
        current = self._capture_current_state()
        if previous is not None and previous == current:
            self._logger.debug(f"Gesture '{description}' made no change")
            return False
        self._save_state(description)
        return True

    @property
    def in_gesture(self) -> bool:
        return self._gesture_description is not None

    def undo(self) -> bool:
        """Undo the last action (False at the oldest entry)"""
        state = self.history_manager.undo()
        if state is None:
            return False
        self._restore_state(state)
        return True

    def redo(self) -> bool:
        """Redo the last undone action (False at the newest entry)"""
        state = self.history_manager.redo()
        if state is None:
            return False
        self._restore_state(state)
        return True

    def can_undo(self) -> bool:
        return self.history_manager.can_undo()

    def can_redo(self) -> bool:
        return self.history_manager.can_redo()

    # ========================================
    # Lock checks
    # ========================================

    def _container_editable(self, container_id: str) -> bool:
        if self.layout.is_container_locked(container_id):
            self._logger.warning(f"Container {container_id} is locked")
            return False
        return True

    def _asset_editable(self, container_id: str, asset_id: str) -> bool:
        if self.layout.is_asset_locked(container_id, asset_id):
            self._logger.warning(f"Asset {asset_id} is locked")
            return False
        return True

    def _locked_in_subtree(self, container_id: str) -> Optional[str]:
        """First locked descendant container or owned asset, if any"""
        for cid in [container_id] + self.layout.get_descendant_container_ids(container_id):
            container = self.layout.get_container(cid)
            if cid != container_id and container.is_locked:
                return cid
            for asset_id, asset in container.assets.items():
                if asset.is_locked:
                    return asset_id
        return None

    # ========================================
    # Device
    # ========================================

    def set_selected_device(self, device_name: str):
        """Switch conversion basis (absolute positions are not rescaled)"""
        self.layout.set_selected_device(device_name)
        self.config.selected_device = device_name
        self._save_state(f"Select device {device_name}")

    # ========================================
    # Container commands
    # ========================================

    def add_container(self, parent_id: Optional[str] = None, name: Optional[str] = None) -> Optional[str]:
        """Add a container (None when the parent is locked)"""
        if parent_id is not None and not self._container_editable(parent_id):
            return None
        container_id = self.layout.add_container(parent_id, name)
        self._save_state("Add container")
        return container_id

    def delete_container(self, container_id: str) -> bool:
        """Delete a container with its subtree (refused while anything inside is locked)"""
        if not self._container_editable(container_id):
            return False
        locked = self._locked_in_subtree(container_id)
        if locked:
            self._logger.warning(f"Cannot delete container {container_id}: {locked} is locked")
            return False
        self.layout.delete_container(container_id)
        self._save_state("Delete container")
        return True

    def rename_container(self, container_id: str, name: str) -> bool:
        if not self._container_editable(container_id):
            return False
        self.layout.rename_container(container_id, name)
        self._save_state("Rename container")
        return True

    def toggle_container_visibility(self, container_id: str) -> Optional[bool]:
        """Show or hide a container with everything inside it

        Returns the new visibility, or None when the container is locked.
        """
        if not self._container_editable(container_id):
            return None
        visible = self.layout.toggle_container_visibility(container_id)
        self._save_state("Show container" if visible else "Hide container")
        return visible

    def toggle_container_lock(self, container_id: str) -> bool:
        """Flip the lock flag (always allowed). Returns the new state."""
        locked = self.layout.toggle_container_lock(container_id)
        self._save_state("Lock container" if locked else "Unlock container")
        return locked

    def update_container(self, container_id: str, updates: Dict[str, float], orientation: str) -> bool:
        """Apply a partial position and cascade a position change to descendants"""
        if not self._container_editable(container_id):
            return False

        before = self.layout.get_container_position(container_id, orientation)
        self.layout.update_container(container_id, updates, orientation)
        after = self.layout.get_container_position(container_id, orientation)

        self.propagator.propagate_container_change(
            container_id, orientation, after.x - before.x, after.y - before.y
        )
        self._save_state("Update container")
        return True

    def move_container(self, container_id: str, dx: float, dy: float, orientation: str) -> bool:
        """Translate a container (and all descendants) by a pixel delta"""
        if not self._container_editable(container_id):
            return False
        position = self.layout.get_container_position(container_id, orientation)
        updates = {}
        if dx:
            updates['x'] = position.x + dx
        if dy:
            updates['y'] = position.y + dy
        if not updates:
            return True
        self.layout.update_container(container_id, updates, orientation)
        self.propagator.propagate_container_change(container_id, orientation, dx, dy)
        self._save_state("Move container")
        return True

    def set_container_position(self, container_id: str, x: float, y: float, orientation: str) -> bool:
        position = self.layout.get_container_position(container_id, orientation)
        return self.move_container(container_id, x - position.x, y - position.y, orientation)

    def resize_container(self, container_id: str, width: float, height: float, orientation: str) -> bool:
        """Resize around the center (clamped to MIN_ELEMENT_SIZE); descendants keep their boxes"""
        if not self._container_editable(container_id):
            return False
        self.layout.update_container(container_id, {
            'width': max(MIN_ELEMENT_SIZE, float(width)),
            'height': max(MIN_ELEMENT_SIZE, float(height)),
        }, orientation)
        self.propagator.propagate_container_change(container_id, orientation)
        self._save_state("Resize container")
        return True

    def copy_orientation(self, container_id: str, source: str, target: str) -> bool:
        if not self._container_editable(container_id):
            return False
        self.layout.copy_orientation(container_id, source, target)
        self._save_state(f"Copy {source} to {target}")
        return True

    # ========================================
    # Asset commands
    # ========================================

    def add_asset(self, container_id: str, key: str = '', name: Optional[str] = None) -> Optional[str]:
        """Add an asset (None when the container is locked)"""
        if not self._container_editable(container_id):
            return None
        asset_id = self.layout.add_asset(container_id, name, key)
        self._save_state("Add asset")
        return asset_id

    def delete_asset(self, container_id: str, asset_id: str) -> bool:
        if not self._asset_editable(container_id, asset_id):
            return False
        dependents = self.layout.get_dependent_asset_ids(container_id, asset_id)
        self.layout.delete_asset(container_id, asset_id)
        for dependent_id in dependents:
            for orientation in ORIENTATIONS:
                self.layout.refresh_asset(container_id, dependent_id, orientation)
        self._save_state("Delete asset")
        return True

    def update_asset(self, container_id: str, asset_id: str, updates: Dict[str, Any], orientation: str) -> bool:
        """Apply a partial transform and refresh dependents"""
        if not self._asset_editable(container_id, asset_id):
            return False
        self.layout.update_asset(container_id, asset_id, updates, orientation)
        self.propagator.propagate_asset_change(container_id, asset_id, orientation)
        self._save_state("Update asset")
        return True

    def update_asset_key(self, container_id: str, asset_id: str, key: str) -> bool:
        if not self._asset_editable(container_id, asset_id):
            return False
        self.layout.update_asset_key(container_id, asset_id, key)
        for orientation in ORIENTATIONS:
            self.propagator.propagate_asset_change(container_id, asset_id, orientation)
        self._save_state("Change asset image")
        return True

    def rename_asset(self, container_id: str, asset_id: str, name: str) -> bool:
        if not self._asset_editable(container_id, asset_id):
            return False
        self.layout.rename_asset(container_id, asset_id, name)
        self._save_state("Rename asset")
        return True

    def toggle_visibility(self, container_id: str, asset_id: str, orientation: Optional[str] = None) -> bool:
        if not self._asset_editable(container_id, asset_id):
            return False
        self.layout.toggle_visibility(container_id, asset_id, orientation)
        self._save_state("Toggle visibility")
        return True

    def toggle_asset_lock(self, container_id: str, asset_id: str) -> bool:
        """Flip the asset's own lock flag (always allowed). Returns the new flag."""
        locked = self.layout.toggle_asset_lock(container_id, asset_id)
        self._save_state("Lock asset" if locked else "Unlock asset")
        return locked

    def move_asset(self, container_id: str, asset_id: str, dx: float, dy: float, orientation: str) -> bool:
        """Move an asset's origin point by a pixel delta

        The new point is written back as a fraction of the asset's reference.
        Unresolved assets cannot be moved.
        """
        if not self._asset_editable(container_id, asset_id):
            return False
        resolved = self.resolve_asset(container_id, asset_id, orientation)
        if resolved is None:
            self._logger.warning(f"Cannot move unresolved asset {asset_id}")
            return False
        return self._place_asset(
            container_id, asset_id, orientation,
            resolved.origin.x + dx if dx else None,
            resolved.origin.y + dy if dy else None,
            "Move asset",
        )

    def set_asset_origin_point(self, container_id: str, asset_id: str, x: float, y: float,
                               orientation: str) -> bool:
        """Place an asset's origin point at an absolute pixel position"""
        if not self._asset_editable(container_id, asset_id):
            return False
        return self._place_asset(container_id, asset_id, orientation, x, y, "Move asset")

    def resize_asset(self, container_id: str, asset_id: str, width: float, height: float,
                     orientation: str) -> bool:
        """Set an asset's displayed pixel size (clamped, aspect-adjusted when maintained)"""
        if not self._asset_editable(container_id, asset_id):
            return False
        resolver = self.resolver(orientation)
        basis = resolver.resolve_basis(container_id, asset_id)
        if basis is None or basis[1].width <= 0 or basis[1].height <= 0:
            self._logger.warning(f"Cannot resize asset {asset_id}: reference unresolved")
            return False
        _, basis_size = basis

        width = max(MIN_ELEMENT_SIZE, float(width))
        height = max(MIN_ELEMENT_SIZE, float(height))
        transform = self.layout.get_asset_transform(container_id, asset_id, orientation)
        asset = self.layout.get_asset(container_id, asset_id)
        image_size = self.library.get_image_size(asset.key) if asset.key else None
        if transform.maintain_aspect_ratio and image_size is not None:
            width, height = adjust_for_aspect(width, height, image_size, transform.scale_mode)

        return self.update_asset(container_id, asset_id, {
            'size': {'width': width / basis_size.width, 'height': height / basis_size.height}
        }, orientation)

    def set_asset_reference(self, container_id: str, asset_id: str, reference: str,
                            orientation: str) -> bool:
        """Re-anchor an asset, keeping its absolute origin point when both anchors resolve"""
        if not self._asset_editable(container_id, asset_id):
            return False
        if reference == asset_id or (reference != REFERENCE_CONTAINER and self.layout.has_container(reference)):
            self._logger.warning(f"Invalid reference {reference!r} for asset {asset_id}")
            return False

        current = self.resolve_asset(container_id, asset_id, orientation)
        self.layout.update_asset(container_id, asset_id, {'position': {'reference': reference}}, orientation)

        basis = self.resolver(orientation).resolve_basis(container_id, asset_id)
        if current is not None and basis is not None:
            origin, size = basis
            position = {}
            if size.width:
                position['x'] = (current.origin.x - origin.x) / size.width
            if size.height:
                position['y'] = (current.origin.y - origin.y) / size.height
            if position:
                self.layout.update_asset(container_id, asset_id, {'position': position}, orientation)

        self.propagator.propagate_asset_change(container_id, asset_id, orientation)
        self._save_state("Change asset reference")
        return True

    def _place_asset(self, container_id: str, asset_id: str, orientation: str,
                     x: Optional[float], y: Optional[float], description: str) -> bool:
        """Write an absolute origin point back as fractions (only the given axes)"""
        basis = self.resolver(orientation).resolve_basis(container_id, asset_id)
        if basis is None:
            self._logger.warning(f"Cannot place asset {asset_id}: reference unresolved")
            return False
        origin, size = basis

        position = {}
        if x is not None and size.width:
            position['x'] = (x - origin.x) / size.width
        if y is not None and size.height:
            position['y'] = (y - origin.y) / size.height
        if not position:
            return True

        self.layout.update_asset(container_id, asset_id, {'position': position}, orientation)
        self.propagator.propagate_asset_change(container_id, asset_id, orientation)
        self._save_state(description)
        return True

    # ========================================
    # Layer panel (drag and drop)
    # ========================================

    def move_layer(self, item_id: str, target_id: Optional[str], position: str) -> bool:
        """Apply a drop: reorder before/after a sibling, reparent inside a container,
        or move a container to the tree root (target None, 'after')
        """
        if not can_drop(self.layout, item_id, target_id, position):
            self._logger.warning(f"Rejected drop of {item_id} on {target_id} ({position})")
            return False

        if self.layout.has_container(item_id):
            if not self._container_editable(item_id):
                return False
            self._move_container_layer(item_id, target_id, position)
        else:
            source_id = self.layout.find_asset_container(item_id)
            if not self._asset_editable(source_id, item_id):
                return False
            self._move_asset_layer(item_id, source_id, target_id, position)

        self._save_state("Reorder layers")
        return True

    def _move_container_layer(self, container_id: str, target_id: Optional[str], position: str):
        if target_id is None:
            self.layout.set_container_parent(container_id, None, self.layout.next_container_depth(None))
        elif position == DROP_INSIDE:
            self.layout.set_container_parent(container_id, target_id, self.layout.next_container_depth(target_id))
        else:
            target = self.layout.get_container(target_id)
            siblings = [
                self.layout.get_container(cid).depth
                for cid in self.layout.get_child_container_ids(target.parent_id)
                if cid != container_id
            ]
            depth = drop_depth(target.depth, siblings, position)
            self.layout.set_container_parent(container_id, target.parent_id, depth)

    def _move_asset_layer(self, asset_id: str, source_id: str, target_id: str, position: str):
        if position == DROP_INSIDE:
            self.layout.move_asset_to_container(asset_id, source_id, target_id)
            return
        owner_id = self.layout.find_asset_container(target_id)
        target = self.layout.get_asset(owner_id, target_id)
        siblings = [
            asset.depth for aid, asset in self.layout.get_container(owner_id).assets.items()
            if aid != asset_id
        ]
        depth = drop_depth(target.depth, siblings, position)
        self.layout.move_asset_to_container(asset_id, source_id, owner_id, depth)

    # ========================================
    # Alignment
    # ========================================

    def _container_reference_box(self, container_id: str, orientation: str) -> AlignElement:
        """Parent box, or the device frame for root containers"""
        parent_id = self.layout.get_container(container_id).parent_id
        if parent_id is not None:
            return AlignElement.from_box(parent_id, self.layout.get_container_position(parent_id, orientation).to_box())
        return AlignElement.from_box(DEVICE_FRAME_ID, self.layout.device.frame_box(orientation))

    def align_container(self, container_id: str, orientation: str,
                        horizontal: Optional[str] = None, vertical: Optional[str] = None) -> bool:
        """Align a container to its parent (or the device frame); only requested axes move"""
        if not self._container_editable(container_id):
            return False
        box = self.layout.get_container_position(container_id, orientation).to_box()
        element = AlignElement.from_box(container_id, box)
        reference = self._container_reference_box(container_id, orientation)
        target = calculate_aligned_position(element, reference, horizontal, vertical)
        return self.move_container(
            container_id,
            target.x - box.x if horizontal else 0.0,
            target.y - box.y if vertical else 0.0,
            orientation,
        )

    def align_asset(self, container_id: str, asset_id: str, orientation: str,
                    horizontal: Optional[str] = None, vertical: Optional[str] = None) -> bool:
        """Align an asset's rendered bounds to its container box"""
        if not self._asset_editable(container_id, asset_id):
            return False
        resolved = self.resolve_asset(container_id, asset_id, orientation)
        if resolved is None:
            self._logger.warning(f"Cannot align unresolved asset {asset_id}")
            return False
        bounds = resolved.bounds
        element = AlignElement.from_box(asset_id, bounds)
        reference = AlignElement.from_box(
            container_id, self.layout.get_container_position(container_id, orientation).to_box()
        )
        target = calculate_aligned_position(element, reference, horizontal, vertical)
        return self._place_asset(
            container_id, asset_id, orientation,
            resolved.origin.x + (target.x - bounds.x) if horizontal else None,
            resolved.origin.y + (target.y - bounds.y) if vertical else None,
            "Align asset",
        )

    def _guide_candidates(self, element_id: str, orientation: str) -> List[AlignElement]:
        frame = AlignElement.from_box(DEVICE_FRAME_ID, self.layout.device.frame_box(orientation))

        if self.layout.has_container(element_id):
            parent_id = self.layout.get_container(element_id).parent_id
            candidates = [
                AlignElement.from_box(cid, self.layout.get_container_position(cid, orientation).to_box())
                for cid in self.layout.get_child_container_ids(parent_id) if cid != element_id
            ]
            if parent_id is not None:
                candidates.append(self._container_reference_box(element_id, orientation))
            candidates.append(frame)
            return candidates

        container_id = self.layout.find_asset_container(element_id)
        if container_id is None:
            raise ValueError(f"Element '{element_id}' not found")
        resolver = self.resolver(orientation)
        candidates = [
            AlignElement.from_box(aid, resolved.bounds)
            for aid, resolved in resolver.resolve_container(container_id).items()
            if aid != element_id and resolved is not None
        ]
        candidates.append(AlignElement.from_box(
            container_id, self.layout.get_container_position(container_id, orientation).to_box()
        ))
        candidates.append(frame)
        return candidates

    def _element_box(self, element_id: str, orientation: str) -> Optional[Box]:
        if self.layout.has_container(element_id):
            return self.layout.get_container_position(element_id, orientation).to_box()
        container_id = self.layout.find_asset_container(element_id)
        if container_id is None:
            raise ValueError(f"Element '{element_id}' not found")
        resolved = self.resolve_asset(container_id, element_id, orientation)
        return resolved.bounds if resolved else None

    def compute_guides(self, element_id: str, orientation: str,
                       threshold: Optional[float] = None) -> List[AlignmentGuide]:
        """Snap guides for a container or asset against siblings, parent and device frame"""
        box = self._element_box(element_id, orientation)
        if box is None:
            return []
        threshold = self.config.snap_threshold if threshold is None else threshold
        return calculate_alignment_guides(
            AlignElement.from_box(element_id, box),
            self._guide_candidates(element_id, orientation),
            threshold,
        )

    def snap_container(self, container_id: str, orientation: str) -> bool:
        """Move a container onto its nearest guides (no-op when none match)"""
        guides = self.compute_guides(container_id, orientation)
        if not guides:
            return False
        box = self.layout.get_container_position(container_id, orientation).to_box()
        snapped = snap_to_guides(AlignElement.from_box(container_id, box), guides)
        return self.move_container(container_id, snapped.x - box.x, snapped.y - box.y, orientation)

    # ========================================
    # Resolution
    # ========================================

    def resolver(self, orientation: str) -> ReferenceResolver:
        """Fresh resolution pass over the current state"""
        return ReferenceResolver(self.layout, self.library, orientation)

    def resolve_asset(self, container_id: str, asset_id: str, orientation: str) -> Optional[ResolvedAsset]:
        return self.resolver(orientation).resolve(container_id, asset_id)

    # ========================================
    # Import / Export
    # ========================================

    def export_data(self) -> Dict[str, Any]:
        return get_export_data(self.layout)

    def export_zip(self, target) -> List[str]:
        return export_layout_zip(self.layout, self.library, target)

    def import_zip(self, source):
        """Replace the layout from an archive and restart history

        Raises:
            LayoutImportError: If the archive is malformed (layout untouched)
        """
        self._gesture_description = None
        import_layout_zip(self.layout, self.library, source)
        self.reset_history("Import Layout")

    # ========================================
    # Library events
    # ========================================

    def _on_library_event(self, event: str, key: str):
        """An image finished loading or was removed: re-apply assets bound to it"""
        for container_id in self.layout.get_all_container_ids():
            container = self.layout.get_container(container_id)
            for asset_id, asset in list(container.assets.items()):
                if asset.key != key:
                    continue
                for orientation in ORIENTATIONS:
                    self.layout.refresh_asset(container_id, asset_id, orientation)
                    self.propagator.propagate_asset_change(container_id, asset_id, orientation)
        self._logger.debug(f"Library {event} '{key}' refreshed bound assets")

    # ========================================
    # Observers
    # ========================================

    def add_listener(self, callback):
        """Forward to Layout.add_listener (callback receives LayoutEvent)"""
        self.layout.add_listener(callback)

    def remove_listener(self, callback):
        self.layout.remove_listener(callback)

