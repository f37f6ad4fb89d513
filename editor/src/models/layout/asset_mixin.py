"""
Asset Management Mixin for Layout Model

Provides methods for adding, updating, moving and deleting assets.
Assets are owned by exactly one container and positioned relative to
that container or to a sibling asset.
"""

import uuid as uuid_module
from copy import deepcopy
from typing import Any, Dict, List, Optional

from constants import ORIENTATIONS, REFERENCE_CONTAINER

from ._internal.asset import Asset


class LayoutAssetMixin:
    """Mixin providing asset management functionality for Layout model"""

    def add_asset(self, container_id: str, name: Optional[str] = None, key: str = '') -> str:
        """Add a new asset with default transforms to a container

        Args:
            container_id: Owning container UUID
            name: Display name (defaults to "Asset N")
            key: Asset-library image key ('' for none yet)

        Returns:
            UUID of the new asset

        Raises:
            ValueError: If container_id is not found
        """
        container = self._require_container(container_id)

        self._asset_counter += 1
        asset = Asset({
            'id': str(uuid_module.uuid4()),
            'name': name or f"Asset {self._asset_counter}",
            'key': key,
            'depth': self.next_asset_depth(container_id),
        })
        container.add_asset(asset)

        self._logger.info(f"Added asset {asset.id} ({asset.name}) to container {container_id}")
        self._notify('asset_added', container_id=container_id, asset_id=asset.id)
        return asset.id

    def delete_asset(self, container_id: str, asset_id: str):
        """Remove an asset from its container

        Siblings that referenced it keep the now dangling reference and
        resolve as unresolved until re-pointed.

        Raises:
            ValueError: If container or asset not found
        """
        self._require_asset(container_id, asset_id)
        self._containers.get_by_id(container_id).remove_asset(asset_id)

        self._logger.info(f"Deleted asset {asset_id} from container {container_id}")
        self._notify('asset_deleted', container_id=container_id, asset_id=asset_id)

    def update_asset(self, container_id: str, asset_id: str, updates: Dict[str, Any], orientation: str):
        """Merge a partial transform into one orientation of an asset

        The update is validated on a copy and committed only when the whole
        partial applies cleanly.

        Args:
            container_id: Owning container UUID
            asset_id: Asset UUID
            updates: Partial transform using export field names
                     (position, size, origin, scaleMode, maintainAspectRatio,
                     rotation, isVisible); nested parts may be partial
            orientation: 'portrait' or 'landscape'

        Raises:
            ValueError: If ids are unknown, a field is invalid, or the
                        reference names the asset itself or a container
        """
        self._require_orientation(orientation)
        asset = self._require_asset(container_id, asset_id)

        reference = updates.get('position', {}).get('reference')
        if reference is not None:
            self._validate_reference(asset_id, reference)

        transform = deepcopy(asset.transform(orientation))
        transform.apply(updates)
        asset.set_transform(orientation, transform)

        self._logger.debug(f"Updated asset {asset_id} {orientation}: {updates}")
        self._notify('asset_updated', container_id=container_id, asset_id=asset_id, orientation=orientation)

    def refresh_asset(self, container_id: str, asset_id: str, orientation: str):
        """Re-apply an asset transform unchanged so observers recompute it"""
        asset = self._require_asset(container_id, asset_id)
        asset.set_transform(orientation, asset.transform(orientation))
        self._notify('asset_refreshed', container_id=container_id, asset_id=asset_id, orientation=orientation)

    def update_asset_key(self, container_id: str, asset_id: str, key: str):
        """Bind an asset to an asset-library image key"""
        asset = self._require_asset(container_id, asset_id)
        asset.key = key
        self._logger.debug(f"Asset {asset_id} key -> '{key}'")
        self._notify('asset_updated', container_id=container_id, asset_id=asset_id)

    def rename_asset(self, container_id: str, asset_id: str, name: str):
        asset = self._require_asset(container_id, asset_id)
        asset.name = name
        self._notify('asset_updated', container_id=container_id, asset_id=asset_id)

    def toggle_visibility(self, container_id: str, asset_id: str,
                          orientation: Optional[str] = None) -> bool:
        """Flip asset visibility

        Args:
            orientation: Orientation to toggle, or None to set both
                         orientations to the inverse of the portrait value

        Returns:
            The new visibility
        """
        asset = self._require_asset(container_id, asset_id)
        if orientation is not None:
            self._require_orientation(orientation)
            targets = [orientation]
            visible = not asset.transform(orientation).visible
        else:
            targets = list(ORIENTATIONS)
            visible = not asset.portrait.visible

        for target in targets:
            asset.transform(target).is_visible = visible

        self._logger.debug(f"Asset {asset_id} visible={visible} ({', '.join(targets)})")
        self._notify('asset_updated', container_id=container_id, asset_id=asset_id, orientation=orientation)
        return visible

    def set_asset_locked(self, container_id: str, asset_id: str, locked: bool):
        asset = self._require_asset(container_id, asset_id)
        asset.is_locked = locked
        self._logger.debug(f"Asset {asset_id} locked={asset.is_locked}")
        self._notify('asset_updated', container_id=container_id, asset_id=asset_id)

    def toggle_asset_lock(self, container_id: str, asset_id: str) -> bool:
        asset = self._require_asset(container_id, asset_id)
        self.set_asset_locked(container_id, asset_id, not asset.is_locked)
        return asset.is_locked

    def set_asset_depth(self, container_id: str, asset_id: str, depth: float):
        asset = self._require_asset(container_id, asset_id)
        asset.depth = depth
        self._notify('asset_updated', container_id=container_id, asset_id=asset_id)

    def move_asset_to_container(self, asset_id: str, source_id: str, target_id: str,
                                depth: Optional[float] = None):
        """Transfer asset ownership to another container

        The moved asset is re-anchored to its new container in both
        orientations, and former siblings that referenced it are re-anchored
        to their own container.

        Args:
            asset_id: Asset UUID
            source_id: Current owner UUID
            target_id: New owner UUID
            depth: Depth in the new container (defaults to next available)

        Raises:
            ValueError: If any id is not found
        """
        asset = self._require_asset(source_id, asset_id)
        target = self._require_container(target_id)
        if source_id == target_id:
            if depth is not None:
                self.set_asset_depth(source_id, asset_id, depth)
            return

        source = self._containers.get_by_id(source_id)
        source.remove_asset(asset_id)

        rebound = self._rebind_references(source_id, asset_id)

        for orientation in ORIENTATIONS:
            asset.transform(orientation).position.reference = REFERENCE_CONTAINER
        asset.depth = self.next_asset_depth(target_id) if depth is None else depth
        target.add_asset(asset)

        self._logger.info(
            f"Moved asset {asset_id} from {source_id} to {target_id} "
            f"(rebound {len(rebound)} dependents)"
        )
        self._notify('asset_moved', container_id=target_id, asset_id=asset_id)

    # ========================================
    # Helper Methods (Internal)
    # ========================================

    def _validate_reference(self, asset_id: str, reference: str):
        if not isinstance(reference, str) or not reference:
            raise ValueError(f"Asset reference must be a non-empty string, got {reference!r}")
        if reference == asset_id:
            raise ValueError(f"Asset {asset_id} cannot reference itself")
        if reference in self._containers:
            raise ValueError(f"Asset reference must be 'container' or a sibling asset id, got container id {reference}")

    def _rebind_references(self, container_id: str, removed_id: str) -> List[str]:
        """Point every asset that referenced removed_id back at its container"""
        rebound = []
        container = self._containers.get_by_id(container_id)
        for sibling in container.assets.values():
            for orientation in ORIENTATIONS:
                position = sibling.transform(orientation).position
                if position.reference == removed_id:
                    position.reference = REFERENCE_CONTAINER
                    if sibling.id not in rebound:
                        rebound.append(sibling.id)
        return rebound
