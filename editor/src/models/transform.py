"""Transform data structures for coordinate and state representation."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constants import (
    REFERENCE_CONTAINER, SCALE_MODES,
    DEFAULT_ASSET_POSITION_X, DEFAULT_ASSET_POSITION_Y,
    DEFAULT_ASSET_WIDTH, DEFAULT_ASSET_HEIGHT,
    DEFAULT_ASSET_ORIGIN_X, DEFAULT_ASSET_ORIGIN_Y,
    DEFAULT_ASSET_ROTATION, DEFAULT_SCALE_MODE, DEFAULT_MAINTAIN_ASPECT_RATIO,
)


@dataclass
class Vec2:
    """2D vector for coordinate pairs.

    Used for any x/y coordinate pair across different spaces:
    - Device pixels (absolute, center of an element)
    - Fractions of a reference's resolved size
    - Normalized export coordinates (0-1)
    """
    x: float
    y: float

    def __iter__(self):
        """Allow tuple unpacking: x, y = vec2"""
        return iter((self.x, self.y))


@dataclass
class Size:
    """Width/height pair (pixels or fractions depending on context)"""
    width: float
    height: float

    def __iter__(self):
        return iter((self.width, self.height))


@dataclass
class Box:
    """Center-based axis-aligned rectangle in device pixels.

    Containers, resolved assets and the device frame are all expressed as
    boxes so alignment and snapping can treat them uniformly.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x - self.width / 2.0

    @property
    def right(self) -> float:
        return self.x + self.width / 2.0

    @property
    def top(self) -> float:
        return self.y - self.height / 2.0

    @property
    def bottom(self) -> float:
        return self.y + self.height / 2.0

    @property
    def center(self) -> Vec2:
        return Vec2(self.x, self.y)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


@dataclass
class ContainerPosition:
    """Per-orientation geometry of a container (center-based pixels)"""
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ContainerPosition':
        return cls(
            float(data['x']), float(data['y']),
            float(data['width']), float(data['height'])
        )

    def to_box(self) -> Box:
        return Box(self.x, self.y, self.width, self.height)


@dataclass
class AssetPosition:
    """Anchor of an asset: 'container' or a sibling asset id, plus fractional offset"""
    reference: str = REFERENCE_CONTAINER
    x: float = DEFAULT_ASSET_POSITION_X
    y: float = DEFAULT_ASSET_POSITION_Y

    @property
    def is_container_relative(self) -> bool:
        return self.reference == REFERENCE_CONTAINER


@dataclass
class AssetTransform:
    """Per-orientation transform of an asset.

    position and size are fractions of the reference's resolved dimensions,
    origin is the pivot fraction used as an offset when placing the image.
    """
    position: AssetPosition = field(default_factory=AssetPosition)
    size: Size = field(default_factory=lambda: Size(DEFAULT_ASSET_WIDTH, DEFAULT_ASSET_HEIGHT))
    origin: Vec2 = field(default_factory=lambda: Vec2(DEFAULT_ASSET_ORIGIN_X, DEFAULT_ASSET_ORIGIN_Y))
    scale_mode: str = DEFAULT_SCALE_MODE
    maintain_aspect_ratio: bool = DEFAULT_MAINTAIN_ASPECT_RATIO
    rotation: float = DEFAULT_ASSET_ROTATION
    is_visible: Optional[bool] = None

    @property
    def visible(self) -> bool:
        """Visibility with the unset case treated as visible"""
        return self.is_visible is not False

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the export field names"""
        data = {
            'position': {
                'reference': self.position.reference,
                'x': self.position.x,
                'y': self.position.y,
            },
            'size': {'width': self.size.width, 'height': self.size.height},
            'origin': {'x': self.origin.x, 'y': self.origin.y},
            'scaleMode': self.scale_mode,
            'maintainAspectRatio': self.maintain_aspect_ratio,
            'rotation': self.rotation,
        }
        if self.is_visible is not None:
            data['isVisible'] = self.is_visible
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'AssetTransform':
        """Build from export field names, filling gaps with defaults"""
        transform = cls()
        if data:
            transform.apply(data)
        return transform

    def apply(self, updates: Dict[str, Any]):
        """Merge a partial update (export field names, nested parts may be partial)

        Raises:
            ValueError: If a key or scale mode is unknown, or a nested part
                is not a mapping
        """
        for key, value in updates.items():
            if key in ('position', 'size', 'origin') and not isinstance(value, dict):
                raise ValueError(f"Asset transform field '{key}' must be an object, got {type(value).__name__}")
            if key == 'position':
                self.position = AssetPosition(
                    str(value.get('reference', self.position.reference)),
                    float(value.get('x', self.position.x)),
                    float(value.get('y', self.position.y)),
                )
            elif key == 'size':
                self.size = Size(
                    float(value.get('width', self.size.width)),
                    float(value.get('height', self.size.height)),
                )
            elif key == 'origin':
                self.origin = Vec2(
                    float(value.get('x', self.origin.x)),
                    float(value.get('y', self.origin.y)),
                )
            elif key == 'scaleMode':
                if value not in SCALE_MODES:
                    raise ValueError(f"scaleMode must be one of {SCALE_MODES}, got {value!r}")
                self.scale_mode = value
            elif key == 'maintainAspectRatio':
                self.maintain_aspect_ratio = bool(value)
            elif key == 'rotation':
                self.rotation = float(value)
            elif key == 'isVisible':
                self.is_visible = None if value is None else bool(value)
            else:
                raise ValueError(f"Unknown asset transform field '{key}'")


EDGES = ('top', 'bottom', 'left', 'right')
GAP_UNITS = ('pixel', 'percent')


@dataclass
class RelativePosition:
    """Legacy edge attachment: target edge placed against a reference edge plus a gap.

    reference_id is another container id or 'SCREEN' for the device frame.
    """
    reference_id: str
    reference_edge: str
    target_edge: str
    gap: float = 0.0
    gap_unit: str = 'pixel'

    def __post_init__(self):
        if self.reference_edge not in EDGES or self.target_edge not in EDGES:
            raise ValueError(f"Edges must be one of {EDGES}")
        if self.gap_unit not in GAP_UNITS:
            raise ValueError(f"gap_unit must be one of {GAP_UNITS}, got {self.gap_unit!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'referenceId': self.reference_id,
            'referenceEdge': self.reference_edge,
            'targetEdge': self.target_edge,
            'gap': self.gap,
            'gapUnit': self.gap_unit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RelativePosition':
        return cls(
            data['referenceId'], data['referenceEdge'], data['targetEdge'],
            float(data.get('gap', 0.0)), data.get('gapUnit', 'pixel')
        )
