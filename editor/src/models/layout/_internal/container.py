"""
Phaser Layout Editor - Container Data Model

Provides the container element and the flat Containers collection:
- One ContainerPosition per orientation (center-based pixels)
- Optional parent container id (forest ownership, never a cycle)
- Owned assets keyed by asset id
- Depth key, lock and visibility flags

This is part of the MODEL layer - pure data, no UI logic.
"""

import uuid as uuid_module
from typing import Any, Dict, Iterator, List, Optional

from constants import ORIENTATIONS, PORTRAIT, LANDSCAPE
from models.transform import ContainerPosition, RelativePosition

from .asset import Asset


class Container:
    """Rectangular grouping node of the layout tree

    Properties:
        id: Stable identifier
        name: Display label (not guaranteed unique)
        parent_id: Owning container id, or None for a root container
        depth: Z-order key among sibling containers (higher draws on top)
        is_locked: Blocks mutation and dragging; also locks every owned asset
        is_visible: Shown in the layer panel and canvas; hides everything inside when False
        assets: Dict of asset id -> Asset (ownership relation)
        relative_position: Optional legacy edge attachment
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        """Create container from data dictionary

        Args:
            data: Dictionary produced by to_dict(), or None for defaults
        """
        if data is None:
            data = {}

        self._id = data.get('id') or str(uuid_module.uuid4())
        self._name = data.get('name', 'Container')
        self._parent_id = data.get('parentId')
        self._depth = float(data.get('depth', 0.0))
        self._is_locked = bool(data.get('isLocked', False))
        self._is_visible = bool(data.get('isVisible', True))

        default_box = {'x': 0.0, 'y': 0.0, 'width': 0.0, 'height': 0.0}
        self._positions = {
            PORTRAIT: ContainerPosition.from_dict(data.get(PORTRAIT, default_box)),
            LANDSCAPE: ContainerPosition.from_dict(data.get(LANDSCAPE, default_box)),
        }

        self._assets: Dict[str, Asset] = {}
        for asset_data in data.get('assets', {}).values():
            asset = Asset.from_dict(asset_data)
            self._assets[asset.id] = asset

        relative = data.get('relativePosition')
        self._relative_position = RelativePosition.from_dict(relative) if relative else None

    # ========================================
    # Identity and structure
    # ========================================

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str):
        self._name = str(value) if value else ''

    @property
    def parent_id(self) -> Optional[str]:
        """Owning container id, None at root level"""
        return self._parent_id

    @parent_id.setter
    def parent_id(self, value: Optional[str]):
        self._parent_id = value or None

    @property
    def depth(self) -> float:
        return self._depth

    @depth.setter
    def depth(self, value: float):
        self._depth = float(value)

    @property
    def is_locked(self) -> bool:
        return self._is_locked

    @is_locked.setter
    def is_locked(self, value: bool):
        self._is_locked = bool(value)

    @property
    def is_visible(self) -> bool:
        return self._is_visible

    @is_visible.setter
    def is_visible(self, value: bool):
        self._is_visible = bool(value)

    @property
    def relative_position(self) -> Optional[RelativePosition]:
        return self._relative_position

    @relative_position.setter
    def relative_position(self, value: Optional[RelativePosition]):
        self._relative_position = value

    # ========================================
    # Geometry
    # ========================================

    @property
    def portrait(self) -> ContainerPosition:
        return self._positions[PORTRAIT]

    @property
    def landscape(self) -> ContainerPosition:
        return self._positions[LANDSCAPE]

    def position(self, orientation: str) -> ContainerPosition:
        """Get the live position record for an orientation

        Raises:
            ValueError: If orientation is unknown
        """
        if orientation not in ORIENTATIONS:
            raise ValueError(f"Unknown orientation '{orientation}'")
        return self._positions[orientation]

    def set_position(self, orientation: str, position: ContainerPosition):
        if orientation not in ORIENTATIONS:
            raise ValueError(f"Unknown orientation '{orientation}'")
        self._positions[orientation] = ContainerPosition(
            position.x, position.y, position.width, position.height
        )

    # ========================================
    # Owned assets
    # ========================================

    @property
    def assets(self) -> Dict[str, Asset]:
        """Owned assets (live mapping - mutate only through the Layout API)"""
        return self._assets

    def get_asset(self, asset_id: str) -> Optional[Asset]:
        return self._assets.get(asset_id)

    def add_asset(self, asset: Asset):
        if not isinstance(asset, Asset):
            raise TypeError(f"Expected Asset, got {type(asset)}")
        self._assets[asset.id] = asset

    def remove_asset(self, asset_id: str) -> Asset:
        return self._assets.pop(asset_id)

    # ========================================
    # Serialization
    # ========================================

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary copy of all container state (assets included)"""
        data = {
            'id': self._id,
            'name': self._name,
            'parentId': self._parent_id,
            'depth': self._depth,
            'isLocked': self._is_locked,
            'isVisible': self._is_visible,
            PORTRAIT: self._positions[PORTRAIT].to_dict(),
            LANDSCAPE: self._positions[LANDSCAPE].to_dict(),
            'assets': {asset_id: asset.to_dict() for asset_id, asset in self._assets.items()},
        }
        if self._relative_position is not None:
            data['relativePosition'] = self._relative_position.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Container':
        return cls(data)

    def __repr__(self) -> str:
        return f"Container(id='{self._id}', name='{self._name}', parent={self._parent_id})"


class Containers:
    """Flat collection of Container objects keyed by id

    Provides:
    - Dict-like lookup by id
    - Iteration in insertion order (order carries no meaning; depth does)
    - Export to dict list / rebuild from dict list
    """

    def __init__(self, data_list: Optional[List[Dict[str, Any]]] = None):
        self._containers: Dict[str, Container] = {}

        if data_list:
            for data in data_list:
                container = Container(data)
                self._containers[container.id] = container

    def __len__(self) -> int:
        return len(self._containers)

    def __iter__(self) -> Iterator[Container]:
        return iter(list(self._containers.values()))

    def __contains__(self, container_id: str) -> bool:
        return container_id in self._containers

    def __repr__(self) -> str:
        return f"Containers({len(self._containers)} containers)"

    def get_by_id(self, container_id: str) -> Optional[Container]:
        return self._containers.get(container_id)

    def append(self, container: Container):
        if not isinstance(container, Container):
            raise TypeError(f"Expected Container, got {type(container)}")
        self._containers[container.id] = container

    def remove(self, container_id: str) -> Container:
        return self._containers.pop(container_id)

    def clear(self):
        self._containers.clear()

    def ids(self) -> List[str]:
        return list(self._containers.keys())

    def to_dict_list(self) -> List[Dict[str, Any]]:
        return [container.to_dict() for container in self._containers.values()]

    @classmethod
    def from_dict_list(cls, data_list: List[Dict[str, Any]]) -> 'Containers':
        return cls(data_list)
