"""
Phaser Layout Editor - File Operations Service

This module handles the export format and zip archive I/O:
- get_export_data: nested, device-normalized layout for the game runtime
- export_layout_zip: layout.json + assets/<assetId>.png
- import_layout_zip: validate, rebuild, then swap in atomically

Separates file operations from UI logic.
"""

import io
import json
import logging
import uuid as uuid_module
import zipfile
from typing import Any, Dict, List, Optional

from PIL import Image

from constants import (
    ASSETS_FOLDER, LAYOUT_JSON_NAME, ORIENTATIONS, DEPTH_STEP,
)
from models.device import Device
from models.layout import Containers
from services.asset_library import AssetLibrary
from utils.logger import loggerRaise

logger = logging.getLogger('FileOperations')


class LayoutImportError(ValueError):
    """A layout archive could not be imported (nothing was changed)"""


# ========================================
# Export
# ========================================

def _normalize(position, device: Device, orientation: str) -> Dict[str, float]:
    frame = device.frame_size(orientation)
    return {
        'x': position.x / frame.width,
        'y': position.y / frame.height,
        'width': position.width / frame.width,
        'height': position.height / frame.height,
    }


def _unique_name(name: str, used: Dict[str, int]) -> str:
    """Disambiguate duplicate sibling names with ' (2)', ' (3)'..."""
    if name not in used:
        used[name] = 1
        return name
    count = used[name]
    while True:
        count += 1
        candidate = f"{name} ({count})"
        if candidate not in used:
            used[name] = count
            used[candidate] = 1
            return candidate


def _export_container(layout, container, device: Device) -> Dict[str, Any]:
    entry = {
        'depth': container.depth,
        'isLocked': container.is_locked,
    }
    if not container.is_visible:
        entry['isVisible'] = False
    for orientation in ORIENTATIONS:
        entry[orientation] = _normalize(container.position(orientation), device, orientation)

    if container.assets:
        entry['assets'] = {
            asset_id: {
                'name': asset.key,
                'displayName': asset.name,
                'depth': asset.depth,
                'isLocked': asset.is_locked,
                'portrait': asset.portrait.to_dict(),
                'landscape': asset.landscape.to_dict(),
            }
            for asset_id, asset in container.assets.items()
        }

    children = _export_scope(layout, container.id, device)
    if children:
        entry['children'] = children
    return entry


def _export_scope(layout, parent_id: Optional[str], device: Device) -> Dict[str, Any]:
    containers = [layout.get_container(cid) for cid in layout.get_child_container_ids(parent_id)]
    used_names: Dict[str, int] = {}
    result = {}
    for container in sorted(containers, key=lambda c: c.depth, reverse=True):
        result[_unique_name(container.name, used_names)] = _export_container(layout, container, device)
    return result


def get_export_data(layout, device: Optional[Device] = None) -> Dict[str, Any]:
    """Nested container-name -> entry mapping with normalized geometry

    Args:
        layout: Layout model
        device: Conversion basis (defaults to the layout's selected device)
    """
    return _export_scope(layout, None, device or layout.device)


def get_layout_json(layout) -> Dict[str, Any]:
    """Content of layout.json"""
    return {
        'device': layout.selected_device,
        'containers': get_export_data(layout),
    }


def _as_png(data: bytes) -> bytes:
    with Image.open(io.BytesIO(data)) as image:
        if image.format == 'PNG':
            return data
        buffer = io.BytesIO()
        image.save(buffer, format='PNG')
        return buffer.getvalue()


def export_layout_zip(layout, library: AssetLibrary, target) -> List[str]:
    """Write layout.json and assets/<assetId>.png into a zip archive

    Args:
        target: Path or writable binary file object

    Returns:
        Archive member names of the written images
    """
    written = []
    with zipfile.ZipFile(target, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(LAYOUT_JSON_NAME, json.dumps(get_layout_json(layout), indent=2))
        archive.writestr(ASSETS_FOLDER, '')

        for container_id in layout.get_all_container_ids():
            for asset_id, asset in layout.get_container(container_id).assets.items():
                data = library.get_image_data(asset.key) if asset.key else None
                if data is None:
                    continue
                member = f"{ASSETS_FOLDER}{asset_id}.png"
                archive.writestr(member, _as_png(data))
                written.append(member)

    logger.info(f"Exported layout with {len(written)} images")
    return written


# ========================================
# Import
# ========================================

def _fail(message: str, cause: Optional[BaseException] = None):
    error = LayoutImportError(message)
    if cause is not None:
        error.__cause__ = cause
    loggerRaise(error, message, "Import failed")


def _denormalize(data: Dict[str, Any], device: Device, orientation: str) -> Dict[str, float]:
    frame = device.frame_size(orientation)
    return {
        'x': float(data['x']) * frame.width,
        'y': float(data['y']) * frame.height,
        'width': float(data['width']) * frame.width,
        'height': float(data['height']) * frame.height,
    }


def _flatten(scope: Dict[str, Any], parent_id: Optional[str], device: Device,
             out: List[Dict[str, Any]]):
    """Re-flatten nested children into container dicts with fresh ids"""
    if not isinstance(scope, dict):
        raise TypeError("container scope must be an object")

    for index, (name, entry) in enumerate(scope.items()):
        container_id = str(uuid_module.uuid4())
        data = {
            'id': container_id,
            'name': name,
            'parentId': parent_id,
            'depth': float(entry.get('depth', (len(scope) - index) * DEPTH_STEP)),
            'isLocked': bool(entry.get('isLocked', False)),
            'isVisible': bool(entry.get('isVisible', True)),
            'assets': {},
        }
        for orientation in ORIENTATIONS:
            data[orientation] = _denormalize(entry[orientation], device, orientation)

        for asset_id, asset_entry in (entry.get('assets') or {}).items():
            data['assets'][asset_id] = {
                'id': asset_id,
                'name': asset_entry.get('displayName', asset_entry.get('name', '')),
                'key': asset_entry.get('name', ''),
                'depth': float(asset_entry.get('depth', 0.0)),
                'isLocked': bool(asset_entry.get('isLocked', False)),
                'portrait': asset_entry.get('portrait'),
                'landscape': asset_entry.get('landscape'),
            }

        out.append(data)
        _flatten(entry.get('children') or {}, container_id, device, out)


def import_layout_zip(layout, library: AssetLibrary, source):
    """Replace the layout with the content of an exported archive

    Geometry is converted with the layout's currently selected device.
    Images under assets/ are bound to the key of the asset they are named
    after. Either everything is applied or nothing is.

    Raises:
        LayoutImportError: If the archive is unreadable or malformed
    """
    # Phase 1: read and validate
    try:
        archive = zipfile.ZipFile(source, 'r')
    except (zipfile.BadZipFile, OSError) as e:
        _fail("File is not a readable zip archive", e)

    with archive:
        names = archive.namelist()
        if LAYOUT_JSON_NAME not in names:
            _fail(f"Archive has no {LAYOUT_JSON_NAME}")
        if not any(name.startswith(ASSETS_FOLDER) for name in names):
            _fail(f"Archive has no {ASSETS_FOLDER} folder")

        try:
            document = json.loads(archive.read(LAYOUT_JSON_NAME).decode('utf-8'))
        except (UnicodeDecodeError, ValueError) as e:
            _fail(f"{LAYOUT_JSON_NAME} is not valid JSON", e)
        if not isinstance(document, dict) or 'containers' not in document:
            _fail(f"{LAYOUT_JSON_NAME} has no 'containers' key")

        # Phase 2: build the new state off to the side
        containers: List[Dict[str, Any]] = []
        try:
            _flatten(document['containers'], None, layout.device, containers)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            _fail(f"{LAYOUT_JSON_NAME} has malformed container data", e)

        assets_by_id = {
            asset_id: asset_data
            for container in containers
            for asset_id, asset_data in container['assets'].items()
        }

        staging = AssetLibrary(library.max_upload_bytes)
        for name in names:
            if not name.startswith(ASSETS_FOLDER) or name.endswith('/'):
                continue
            asset_id = name[len(ASSETS_FOLDER):].rsplit('.', 1)[0]
            asset_data = assets_by_id.get(asset_id)
            if asset_data is None:
                logger.warning(f"Skipping image {name}: no asset with id {asset_id}")
                continue
            if not asset_data['key']:
                asset_data['key'] = asset_id
            try:
                staging.upload_image(asset_data['key'], archive.read(name), name=name)
            except ValueError as e:
                _fail(f"Image {name} could not be read", e)

    snapshot = {
        'device': layout.selected_device,
        'container_counter': len(containers),
        'asset_counter': len(assets_by_id),
        'containers': containers,
    }
    # Validate the element data before touching the live layout
    try:
        Containers.from_dict_list(containers)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        _fail(f"{LAYOUT_JSON_NAME} has malformed asset data", e)

    # Phase 3: swap in
    layout.set_snapshot(snapshot)
    for key in staging.keys():
        library.upload_image(key, staging.get_image_data(key), staging.get_metadata(key).name)

    logger.info(f"Imported {len(containers)} containers and {len(assets_by_id)} assets")
