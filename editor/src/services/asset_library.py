"""
Asset library - image bytes and metadata keyed by asset key

Images are decoded with Pillow only to learn their pixel dimensions; the
raw bytes are kept untouched for export. Loading is modelled as a
begin/complete pair so late completions for removed keys are ignored.
"""

import io
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Set

from PIL import Image, UnidentifiedImageError

from constants import MAX_UPLOAD_BYTES
from models.transform import Size

logger = logging.getLogger('AssetLibrary')


@dataclass(frozen=True)
class ImageMetadata:
    """Decoded facts about one library image"""
    key: str
    width: int
    height: int
    size_bytes: int
    name: str = ''

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0


class AssetLibrary:
    """Keyed image store consulted by reference resolution and export

    Listeners receive (event, key) where event is 'image_loaded' or
    'image_removed'.
    """

    def __init__(self, max_upload_bytes: int = MAX_UPLOAD_BYTES):
        self.max_upload_bytes = max_upload_bytes
        self._metadata: Dict[str, ImageMetadata] = {}
        self._data: Dict[str, bytes] = {}
        self._pending: Set[str] = set()
        self._listeners: List[Callable[[str, str], None]] = []

    # ========================================
    # Loading
    # ========================================

    def upload_image(self, key: str, data: bytes, name: Optional[str] = None) -> ImageMetadata:
        """Decode and store an image synchronously

        Raises:
            ValueError: If the key is empty, the file is too large or not an image
        """
        if not key:
            raise ValueError("Image key must not be empty")
        if len(data) > self.max_upload_bytes:
            raise ValueError(
                f"Image '{name or key}' is {len(data)} bytes, limit is {self.max_upload_bytes}"
            )

        width, height = self._decode_size(key, data)
        metadata = ImageMetadata(key, width, height, len(data), name or key)
        self._metadata[key] = metadata
        self._data[key] = bytes(data)
        self._pending.discard(key)

        logger.info(f"Loaded image '{key}' ({width}x{height}, {len(data)} bytes)")
        self._notify('image_loaded', key)
        return metadata

    def begin_load(self, key: str):
        """Mark an asynchronous load as in flight"""
        self._pending.add(key)
        logger.debug(f"Begin load '{key}'")

    def cancel_load(self, key: str):
        self._pending.discard(key)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def complete_load(self, key: str, data: bytes, name: Optional[str] = None) -> bool:
        """Finish an asynchronous load

        Returns:
            False when the load is no longer wanted (removed or cancelled),
            True once the image is stored
        """
        if key not in self._pending:
            logger.debug(f"Ignoring late load completion for '{key}'")
            return False
        self.upload_image(key, data, name)
        return True

    def remove_image(self, key: str):
        """Forget an image (also cancels an in-flight load for it)"""
        self._pending.discard(key)
        if key in self._metadata:
            del self._metadata[key]
            del self._data[key]
            logger.info(f"Removed image '{key}'")
            self._notify('image_removed', key)

    def clear(self):
        self._metadata.clear()
        self._data.clear()
        self._pending.clear()

    # ========================================
    # Queries
    # ========================================

    def has_image(self, key: str) -> bool:
        return key in self._metadata

    def get_metadata(self, key: str) -> Optional[ImageMetadata]:
        return self._metadata.get(key)

    def get_image_size(self, key: str) -> Optional[Size]:
        """Pixel size of a loaded image, None if not (yet) loaded"""
        metadata = self._metadata.get(key)
        if metadata is None:
            return None
        return Size(float(metadata.width), float(metadata.height))

    def get_image_data(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def keys(self) -> List[str]:
        return list(self._metadata.keys())

    # ========================================
    # Listeners
    # ========================================

    def add_listener(self, callback: Callable[[str, str], None]):
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[str, str], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, event: str, key: str):
        for callback in list(self._listeners):
            try:
                callback(event, key)
            except Exception:
                logger.exception(f"Asset library listener failed for {event} '{key}'")

    @staticmethod
    def _decode_size(key: str, data: bytes):
        try:
            with Image.open(io.BytesIO(data)) as image:
                width, height = image.size
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"'{key}' is not a readable image: {e}") from e
        if width <= 0 or height <= 0:
            raise ValueError(f"'{key}' has empty dimensions {width}x{height}")
        return width, height
