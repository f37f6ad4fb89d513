"""
Phaser Layout Editor - Reference Resolution Service

Computes absolute on-screen origin and displayed size of assets from their
reference chains. An asset is placed relative to its container (center +
fraction of container size) or relative to a sibling asset (sibling's
resolved origin + fraction of the sibling's displayed size).

One ReferenceResolver is one render pass: each asset is resolved at most
once and cached, so siblings read each other's displayed size without
recomputing. Resolution is read-only and never raises for graph problems;
a missing sibling, an unloaded image or a cycle yields None.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple

from constants import SCALE_MODE_FIT, SCALE_MODE_FILL
from models.transform import Box, Size, Vec2

logger = logging.getLogger('ReferenceResolver')


@dataclass(frozen=True)
class ResolvedAsset:
    """Absolute placement of one asset in one orientation (device pixels)"""
    container_id: str
    asset_id: str
    origin: Vec2
    width: float
    height: float
    pivot: Vec2
    rotation: float
    is_visible: bool

    @property
    def offset(self) -> Vec2:
        """Pivot offset applied when drawing the image at origin"""
        return Vec2(self.pivot.x * self.width, self.pivot.y * self.height)

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def bounds(self) -> Box:
        """Center-based box of the unrotated image"""
        offset = self.offset
        return Box(
            self.origin.x - offset.x + self.width / 2.0,
            self.origin.y - offset.y + self.height / 2.0,
            self.width, self.height
        )


def adjust_for_aspect(width: float, height: float, image_size: Size, scale_mode: str) -> Tuple[float, float]:
    """Adjust a box to an image's aspect ratio

    fit shrinks the overflowing axis, fill grows the deficient axis,
    stretch (or any degenerate size) leaves the box untouched.
    """
    if width <= 0 or height <= 0 or image_size.width <= 0 or image_size.height <= 0:
        return width, height

    image_ratio = image_size.width / image_size.height
    box_ratio = width / height

    if scale_mode == SCALE_MODE_FIT:
        if box_ratio > image_ratio:
            width = height * image_ratio
        else:
            height = width / image_ratio
    elif scale_mode == SCALE_MODE_FILL:
        if box_ratio > image_ratio:
            height = width / image_ratio
        else:
            width = height * image_ratio

    return width, height


class ReferenceResolver:
    """Single resolution pass over a layout in one orientation

    Args:
        layout: Layout model
        library: Object exposing get_image_size(key) -> Optional[Size]
        orientation: 'portrait' or 'landscape'
    """

    def __init__(self, layout, library, orientation: str):
        self.layout = layout
        self.library = library
        self.orientation = orientation
        self._cache: Dict[Tuple[str, str], Optional[ResolvedAsset]] = {}

    def resolve(self, container_id: str, asset_id: str) -> Optional[ResolvedAsset]:
        """Resolve one asset, or None when unresolved"""
        return self._resolve(container_id, asset_id, set())

    def resolve_container(self, container_id: str) -> Dict[str, Optional[ResolvedAsset]]:
        """Resolve every asset of a container (asset id -> result)"""
        if not self.layout.has_container(container_id):
            return {}
        return {
            asset_id: self.resolve(container_id, asset_id)
            for asset_id in self.layout.get_asset_ids(container_id)
        }

    def resolve_all(self) -> Dict[Tuple[str, str], Optional[ResolvedAsset]]:
        """Resolve every asset of the layout ((container id, asset id) -> result)"""
        results = {}
        for container_id in self.layout.get_all_container_ids():
            for asset_id, resolved in self.resolve_container(container_id).items():
                results[(container_id, asset_id)] = resolved
        return results

    def resolve_basis(self, container_id: str, asset_id: str) -> Optional[Tuple[Vec2, Size]]:
        """Origin and size the asset's fractional position/size are measured against

        Returns None when the reference itself cannot be resolved.
        """
        return self._basis(container_id, asset_id, {asset_id})

    # ========================================
    # Internal
    # ========================================

    def _resolve(self, container_id: str, asset_id: str, visiting: Set[str]) -> Optional[ResolvedAsset]:
        cache_key = (container_id, asset_id)
        if cache_key in self._cache:
            return self._cache[cache_key]

        if asset_id in visiting:
            logger.debug(f"Reference cycle through asset {asset_id} in container {container_id}")
            return None

        result = self._compute(container_id, asset_id, visiting | {asset_id})
        self._cache[cache_key] = result
        return result

    def _compute(self, container_id: str, asset_id: str, visiting: Set[str]) -> Optional[ResolvedAsset]:
        if not self.layout.has_container(container_id):
            return None
        asset = self.layout.get_container(container_id).get_asset(asset_id)
        if asset is None:
            return None

        image_size = self.library.get_image_size(asset.key) if asset.key else None
        if image_size is None:
            logger.debug(f"Asset {asset_id} image '{asset.key}' not loaded")
            return None

        basis = self._basis(container_id, asset_id, visiting)
        if basis is None:
            return None
        basis_origin, basis_size = basis

        transform = asset.transform(self.orientation)
        origin = Vec2(
            basis_origin.x + transform.position.x * basis_size.width,
            basis_origin.y + transform.position.y * basis_size.height,
        )
        width = transform.size.width * basis_size.width
        height = transform.size.height * basis_size.height
        if transform.maintain_aspect_ratio:
            width, height = adjust_for_aspect(width, height, image_size, transform.scale_mode)

        return ResolvedAsset(
            container_id=container_id,
            asset_id=asset_id,
            origin=origin,
            width=width,
            height=height,
            pivot=Vec2(transform.origin.x, transform.origin.y),
            rotation=transform.rotation,
            is_visible=transform.visible and self.layout.is_container_visible(container_id),
        )

    def _basis(self, container_id: str, asset_id: str, visiting: Set[str]) -> Optional[Tuple[Vec2, Size]]:
        if not self.layout.has_container(container_id):
            return None
        container = self.layout.get_container(container_id)
        asset = container.get_asset(asset_id)
        if asset is None:
            return None

        position = asset.transform(self.orientation).position
        if position.is_container_relative:
            box = container.position(self.orientation)
            return Vec2(box.x, box.y), Size(box.width, box.height)

        if container.get_asset(position.reference) is None:
            logger.debug(f"Asset {asset_id} references missing sibling {position.reference}")
            return None

        reference = self._resolve(container_id, position.reference, visiting)
        if reference is None:
            return None
        return reference.origin, reference.size


def resolve_asset(layout, library, container_id: str, asset_id: str,
                  orientation: str) -> Optional[ResolvedAsset]:
    """One-off resolution of a single asset"""
    return ReferenceResolver(layout, library, orientation).resolve(container_id, asset_id)


def resolve_container_assets(layout, library, container_id: str,
                             orientation: str) -> Dict[str, Optional[ResolvedAsset]]:
    """One-off resolution of every asset in a container"""
    return ReferenceResolver(layout, library, orientation).resolve_container(container_id)
