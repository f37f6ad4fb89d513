"""
Query Mixin for Layout Model

Provides read-only accessors. Structural relations (children, descendants,
dependents) are computed on demand from the current state, never cached.
"""

from copy import deepcopy
from typing import List, Optional

from constants import ORIENTATIONS
from models.transform import AssetTransform, ContainerPosition

from ._internal.asset import Asset
from ._internal.container import Container


class LayoutQueryMixin:
    """Mixin providing query functionality for Layout model"""

    # ========================================
    # Containers
    # ========================================

    def has_container(self, container_id: str) -> bool:
        return container_id in self._containers

    def get_container(self, container_id: str) -> Container:
        """Get a container object (read through it, mutate through the Layout API)

        Raises:
            ValueError: If container_id is not found
        """
        return self._require_container(container_id)

    def get_container_position(self, container_id: str, orientation: str) -> ContainerPosition:
        """Get a copy of a container's position in one orientation

        Raises:
            ValueError: If container_id is not found
        """
        self._require_orientation(orientation)
        return deepcopy(self._require_container(container_id).position(orientation))

    def get_all_container_ids(self) -> List[str]:
        return self._containers.ids()

    def get_container_count(self) -> int:
        return len(self._containers)

    def get_root_container_ids(self) -> List[str]:
        return [c.id for c in self._containers if c.parent_id is None]

    def get_child_container_ids(self, container_id: Optional[str]) -> List[str]:
        """Direct child containers of container_id (None for root level)"""
        return [c.id for c in self._containers if c.parent_id == container_id]

    def get_descendant_container_ids(self, container_id: str) -> List[str]:
        """All transitive child containers, breadth-first"""
        return self._walk_container_children(container_id)

    def get_ancestor_ids(self, container_id: str) -> List[str]:
        """Parent chain from the immediate parent up to the root"""
        ancestors = []
        current = self._require_container(container_id).parent_id
        while current is not None and current not in ancestors:
            ancestors.append(current)
            parent = self._containers.get_by_id(current)
            current = parent.parent_id if parent else None
        return ancestors

    def is_ancestor(self, ancestor_id: str, container_id: str) -> bool:
        """True if ancestor_id owns container_id directly or transitively"""
        if not self.has_container(container_id):
            return False
        return ancestor_id in self.get_ancestor_ids(container_id)

    def is_container_locked(self, container_id: str) -> bool:
        return self._require_container(container_id).is_locked

    def is_container_visible(self, container_id: str) -> bool:
        """Effective visibility: hidden when the container or any ancestor is hidden"""
        chain = [container_id] + self.get_ancestor_ids(container_id)
        containers = [self._containers.get_by_id(cid) for cid in chain]
        return all(c.is_visible for c in containers if c is not None)

    def next_container_depth(self, parent_id: Optional[str]) -> float:
        """Next free depth above all sibling containers in a scope"""
        depths = [c.depth for c in self._containers if c.parent_id == parent_id]
        return self._next_depth(depths)

    # ========================================
    # Assets
    # ========================================

    def get_asset(self, container_id: str, asset_id: str) -> Asset:
        """Get an asset object (read through it, mutate through the Layout API)

        Raises:
            ValueError: If container or asset not found
        """
        return self._require_asset(container_id, asset_id)

    def get_asset_transform(self, container_id: str, asset_id: str, orientation: str) -> AssetTransform:
        """Get a copy of an asset's transform in one orientation"""
        self._require_orientation(orientation)
        return deepcopy(self._require_asset(container_id, asset_id).transform(orientation))

    def get_asset_ids(self, container_id: str) -> List[str]:
        return list(self._require_container(container_id).assets.keys())

    def get_asset_count(self) -> int:
        return sum(len(c.assets) for c in self._containers)

    def find_asset_container(self, asset_id: str) -> Optional[str]:
        """Owning container UUID of an asset, or None if no container owns it"""
        for container in self._containers:
            if asset_id in container.assets:
                return container.id
        return None

    def is_asset_locked(self, container_id: str, asset_id: str) -> bool:
        """Effective lock: the asset's own flag or its container's"""
        asset = self._require_asset(container_id, asset_id)
        return asset.is_locked or self._containers.get_by_id(container_id).is_locked

    def get_dependent_asset_ids(self, container_id: str, asset_id: str,
                                orientation: Optional[str] = None) -> List[str]:
        """Sibling assets whose position references asset_id directly

        Args:
            orientation: Limit to one orientation, or None for either
        """
        container = self._require_container(container_id)
        orientations = [orientation] if orientation else list(ORIENTATIONS)
        return [
            sibling.id for sibling in container.assets.values()
            if sibling.id != asset_id and any(
                sibling.transform(o).position.reference == asset_id for o in orientations
            )
        ]

    def next_asset_depth(self, container_id: str) -> float:
        """Next free depth above all assets of a container"""
        depths = [a.depth for a in self._require_container(container_id).assets.values()]
        return self._next_depth(depths)
