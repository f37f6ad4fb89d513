"""
Phaser Layout Editor - Layout Data Model

THE MODEL in the MVC architecture. Owns all containers/assets and is the
sole mutator of them.

This class handles:
- Containers collection (flat, id-keyed, parentId forest)
- Assets owned by containers (per-orientation transforms)
- Selected device (conversion basis for export/import only)
- Listener notification after every mutation
- Snapshot API (for undo/redo support)

The Layout model is INDEPENDENT of UI:
- No GUI toolkit imports
- No rendering or hit-testing
- No undo stack (LayoutEditor manages that with snapshots)
- No cascades (CascadePropagator issues the follow-up calls)

Usage:
    layout = Layout()
    root = layout.add_container()
    child = layout.add_container(parent_id=root)
    layout.update_container(root, {'x': 120.0}, 'portrait')

    asset_id = layout.add_asset(child)
    layout.update_asset(child, asset_id, {'size': {'width': 0.25}}, 'portrait')

    # Undo support
    snapshot = layout.get_snapshot()
    layout.set_snapshot(snapshot)
"""

import logging
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from constants import DEFAULT_DEVICE, ORIENTATIONS
from models.device import Device, get_device

from ._internal.container import Container, Containers
from ._internal.asset import Asset
from .container_mixin import LayoutContainerMixin
from .asset_mixin import LayoutAssetMixin
from .query_mixin import LayoutQueryMixin


@dataclass(frozen=True)
class LayoutEvent:
    """Notification sent to listeners after a mutation

    kind is one of: container_added, container_updated, container_deleted,
    asset_added, asset_updated, asset_refreshed, asset_deleted, asset_moved,
    device_changed, snapshot_restored, cleared
    """
    kind: str
    container_id: Optional[str] = None
    asset_id: Optional[str] = None
    orientation: Optional[str] = None


class Layout(LayoutContainerMixin, LayoutAssetMixin, LayoutQueryMixin):
    """Layout data model with full mutation API

    Manages all container/asset data. This is THE MODEL in MVC.
    All data manipulation goes through this class.

    Active Instance Pattern:
        Layout.set_active(layout_instance) - Set the active Layout
        Layout.get_active() - Get the active Layout instance
        Layout.has_active() - Check if active instance exists
    """

    _active_instance = None  # Class variable for active Layout instance

    @classmethod
    def set_active(cls, instance: 'Layout'):
        """Set the active Layout instance"""
        cls._active_instance = instance

    @classmethod
    def get_active(cls) -> 'Layout':
        """Get the active Layout instance

        Raises:
            RuntimeError: If no active instance set
        """
        if cls._active_instance is None:
            raise RuntimeError("No active Layout instance set. Call Layout.set_active() first.")
        return cls._active_instance

    @classmethod
    def has_active(cls) -> bool:
        return cls._active_instance is not None

    def __init__(self, device_name: str = DEFAULT_DEVICE):
        """Create empty layout for a device

        Args:
            device_name: Registered device profile name

        Raises:
            ValueError: If the device is not registered
        """
        self._logger = logging.getLogger('Layout')

        self._device = get_device(device_name)
        self._containers = Containers()

        # Running counters for default display names
        self._container_counter = 0
        self._asset_counter = 0

        self._listeners: List[Callable[[LayoutEvent], None]] = []

        self._logger.debug(f"Created new Layout for device '{device_name}'")

    def clear(self):
        """Remove every container and asset (device selection is kept)"""
        self._containers.clear()
        self._container_counter = 0
        self._asset_counter = 0
        self._logger.debug("Cleared layout")
        self._notify('cleared')

    # ========================================
    # Device
    # ========================================

    @property
    def device(self) -> Device:
        return self._device

    @property
    def selected_device(self) -> str:
        return self._device.name

    def set_selected_device(self, device_name: str):
        """Switch the conversion basis.

        Existing absolute pixel positions are NOT rescaled.

        Raises:
            ValueError: If the device is not registered
        """
        self._device = get_device(device_name)
        self._logger.info(f"Selected device: {device_name}")
        self._notify('device_changed')

    # ========================================
    # Listeners
    # ========================================

    def add_listener(self, callback: Callable[[LayoutEvent], None]):
        """Register a callback receiving a LayoutEvent after each mutation"""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[LayoutEvent], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, kind: str, container_id: Optional[str] = None,
                asset_id: Optional[str] = None, orientation: Optional[str] = None):
        event = LayoutEvent(kind, container_id, asset_id, orientation)
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                self._logger.exception(f"Listener failed for event {kind}")

    # ========================================
    # Snapshot API (for undo/redo)
    # ========================================

    def get_snapshot(self) -> Dict[str, Any]:
        """Get complete state snapshot (for undo)

        Returns:
            Plain dictionary containing all layout state
        """
        return {
            'device': self._device.name,
            'container_counter': self._container_counter,
            'asset_counter': self._asset_counter,
            'containers': self._containers.to_dict_list(),
        }

    def set_snapshot(self, snapshot: Dict[str, Any]):
        """Restore state from snapshot (for undo)

        Args:
            snapshot: Dictionary from get_snapshot()
        """
        snapshot = deepcopy(snapshot)
        self._device = get_device(snapshot.get('device', DEFAULT_DEVICE))
        self._container_counter = snapshot.get('container_counter', 0)
        self._asset_counter = snapshot.get('asset_counter', 0)
        self._containers = Containers.from_dict_list(snapshot['containers'])

        self._logger.debug("Restored from snapshot")
        self._notify('snapshot_restored')

    # ========================================
    # Helper Methods (Internal)
    # ========================================

    def _require_container(self, container_id: str) -> Container:
        container = self._containers.get_by_id(container_id)
        if container is None:
            raise ValueError(f"Container with id '{container_id}' not found")
        return container

    def _require_asset(self, container_id: str, asset_id: str) -> Asset:
        container = self._require_container(container_id)
        asset = container.get_asset(asset_id)
        if asset is None:
            raise ValueError(f"Asset '{asset_id}' not found in container '{container_id}'")
        return asset

    @staticmethod
    def _require_orientation(orientation: str):
        if orientation not in ORIENTATIONS:
            raise ValueError(f"orientation must be one of {ORIENTATIONS}, got {orientation!r}")

    def __repr__(self) -> str:
        return f"Layout(device='{self._device.name}', containers={len(self._containers)})"
