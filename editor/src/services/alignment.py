"""
Phaser Layout Editor - Alignment & Snap-Guide Calculator

Pure functions over center-based elements:
- calculate_aligned_position: explicit "align to" against one reference
- calculate_alignment_guides: edges/centers within a pixel threshold
- snap_to_guides: nearest guide per axis

Guides are advisory only; nothing here touches the layout model.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from constants import SNAP_THRESHOLD, HORIZONTAL_ALIGNMENTS, VERTICAL_ALIGNMENTS
from models.transform import Box, Size, Vec2

# Column order of the edge matrices below
_X_TYPES = HORIZONTAL_ALIGNMENTS   # left, center, right
_Y_TYPES = VERTICAL_ALIGNMENTS     # top, middle, bottom


@dataclass(frozen=True)
class AlignElement:
    """Center-based element taking part in alignment"""
    id: str
    position: Vec2
    size: Size

    @classmethod
    def from_box(cls, element_id: str, box: Box) -> 'AlignElement':
        return cls(element_id, Vec2(box.x, box.y), Size(box.width, box.height))


@dataclass(frozen=True)
class AlignmentGuide:
    """A matched edge or center line

    type: left/center/right (vertical lines, x position) or
          top/middle/bottom (horizontal lines, y position)
    """
    type: str
    position: float
    reference_id: str

    @property
    def is_horizontal_alignment(self) -> bool:
        return self.type in _X_TYPES


def calculate_aligned_position(element: AlignElement, reference: AlignElement,
                               horizontal: Optional[str] = None,
                               vertical: Optional[str] = None) -> Vec2:
    """Center position that aligns element to reference

    Only the requested axis changes; the other keeps its exact value.

    Raises:
        ValueError: If an alignment name is unknown
    """
    if horizontal is not None and horizontal not in HORIZONTAL_ALIGNMENTS:
        raise ValueError(f"horizontal must be one of {HORIZONTAL_ALIGNMENTS}, got {horizontal!r}")
    if vertical is not None and vertical not in VERTICAL_ALIGNMENTS:
        raise ValueError(f"vertical must be one of {VERTICAL_ALIGNMENTS}, got {vertical!r}")

    x, y = element.position.x, element.position.y
    ref = reference.position

    if horizontal == 'left':
        x = ref.x - reference.size.width / 2 + element.size.width / 2
    elif horizontal == 'center':
        x = ref.x
    elif horizontal == 'right':
        x = ref.x + reference.size.width / 2 - element.size.width / 2

    if vertical == 'top':
        y = ref.y - reference.size.height / 2 + element.size.height / 2
    elif vertical == 'middle':
        y = ref.y
    elif vertical == 'bottom':
        y = ref.y + reference.size.height / 2 - element.size.height / 2

    return Vec2(x, y)


def _edges(centers: np.ndarray, extents: np.ndarray) -> np.ndarray:
    """(N, 3) matrix of low edge, center, high edge"""
    half = extents / 2.0
    return np.stack([centers - half, centers, centers + half], axis=-1)


def calculate_alignment_guides(moving: AlignElement, others: Sequence[AlignElement],
                               threshold: float = SNAP_THRESHOLD) -> List[AlignmentGuide]:
    """Guides for every edge/center of others within threshold of moving

    A match requires a distance strictly below threshold. Guides are listed
    per reference element in left, center, right, top, middle, bottom order.
    """
    if not others:
        return []

    ox = _edges(np.array([o.position.x for o in others], dtype=float),
                np.array([o.size.width for o in others], dtype=float))
    oy = _edges(np.array([o.position.y for o in others], dtype=float),
                np.array([o.size.height for o in others], dtype=float))
    mx = _edges(np.array([moving.position.x], dtype=float), np.array([moving.size.width], dtype=float))
    my = _edges(np.array([moving.position.y], dtype=float), np.array([moving.size.height], dtype=float))

    match_x = np.abs(ox - mx) < threshold
    match_y = np.abs(oy - my) < threshold

    guides = []
    for row, other in enumerate(others):
        for col, guide_type in enumerate(_X_TYPES):
            if match_x[row, col]:
                guides.append(AlignmentGuide(guide_type, float(ox[row, col]), other.id))
        for col, guide_type in enumerate(_Y_TYPES):
            if match_y[row, col]:
                guides.append(AlignmentGuide(guide_type, float(oy[row, col]), other.id))
    return guides


def snap_to_guides(moving: AlignElement, guides: Sequence[AlignmentGuide]) -> Vec2:
    """Center position after snapping to the nearest guide on each axis"""
    x, y = moving.position.x, moving.position.y
    half_w = moving.size.width / 2
    half_h = moving.size.height / 2

    candidates_x = []
    candidates_y = []
    for guide in guides:
        if guide.type == 'left':
            candidates_x.append(guide.position + half_w)
        elif guide.type == 'center':
            candidates_x.append(guide.position)
        elif guide.type == 'right':
            candidates_x.append(guide.position - half_w)
        elif guide.type == 'top':
            candidates_y.append(guide.position + half_h)
        elif guide.type == 'middle':
            candidates_y.append(guide.position)
        elif guide.type == 'bottom':
            candidates_y.append(guide.position - half_h)

    if candidates_x:
        values = np.array(candidates_x)
        x = float(values[np.argmin(np.abs(values - x))])
    if candidates_y:
        values = np.array(candidates_y)
        y = float(values[np.argmin(np.abs(values - y))])

    return Vec2(x, y)
