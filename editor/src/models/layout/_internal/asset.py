"""Asset class - a positioned image reference owned by exactly one container"""

import uuid as uuid_module
from copy import deepcopy
from typing import Any, Dict, Optional

from constants import ORIENTATIONS, PORTRAIT, LANDSCAPE
from models.transform import AssetTransform


class Asset:
    """Represents one image placed inside a container

    Each asset carries one independent AssetTransform per orientation, so
    editing the portrait transform never touches the landscape one.

    Properties:
        id: Stable identifier (also the image file name on export)
        name: Display label
        key: Asset-library key of the image ('' when unbound)
        depth: Z-order key among sibling assets (higher draws on top)
        is_locked: Blocks mutation and dragging
        portrait, landscape: AssetTransform per orientation
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        """Create asset from data dictionary

        Args:
            data: Dictionary produced by to_dict(), or None for defaults
        """
        if data is None:
            data = {}

        self._id = data.get('id') or str(uuid_module.uuid4())
        self._name = data.get('name', 'Asset')
        self._key = data.get('key', '')
        self._depth = float(data.get('depth', 0.0))
        self._is_locked = bool(data.get('isLocked', False))
        self._transforms = {
            PORTRAIT: AssetTransform.from_dict(data.get(PORTRAIT)),
            LANDSCAPE: AssetTransform.from_dict(data.get(LANDSCAPE)),
        }

    # ========================================
    # Identity and metadata
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
    def key(self) -> str:
        """Asset-library key ('' when no image is bound)"""
        return self._key

    @key.setter
    def key(self, value: str):
        self._key = value or ''

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

    # ========================================
    # Per-orientation transforms
    # ========================================

    @property
    def portrait(self) -> AssetTransform:
        return self._transforms[PORTRAIT]

    @property
    def landscape(self) -> AssetTransform:
        return self._transforms[LANDSCAPE]

    def transform(self, orientation: str) -> AssetTransform:
        """Get the live transform for an orientation

        Raises:
            ValueError: If orientation is unknown
        """
        if orientation not in ORIENTATIONS:
            raise ValueError(f"Unknown orientation '{orientation}'")
        return self._transforms[orientation]

    def set_transform(self, orientation: str, transform: AssetTransform):
        if orientation not in ORIENTATIONS:
            raise ValueError(f"Unknown orientation '{orientation}'")
        self._transforms[orientation] = deepcopy(transform)

    # ========================================
    # Serialization
    # ========================================

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary copy of all asset state"""
        return {
            'id': self._id,
            'name': self._name,
            'key': self._key,
            'depth': self._depth,
            'isLocked': self._is_locked,
            PORTRAIT: self._transforms[PORTRAIT].to_dict(),
            LANDSCAPE: self._transforms[LANDSCAPE].to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Asset':
        return cls(data)

    def __repr__(self) -> str:
        return f"Asset(id='{self._id}', name='{self._name}', key='{self._key}')"
