"""
Phaser Layout Editor - Constants and Configuration

This module contains all constant values used throughout the engine:
- Device registry (conversion basis for export/import)
- Orientation and scale mode names
- Default container/asset geometry
- Snap, depth and history limits
"""

# ======================================================================
# DEVICE REGISTRY
# ======================================================================
# Pixel dimensions are given in portrait. Landscape is the same device
# rotated, so width and height swap roles.

DEVICES = {
    'iPhone SE':   {'name': 'iPhone SE',   'width': 375, 'height': 667},
    'iPhone 14':   {'name': 'iPhone 14',   'width': 390, 'height': 844},
    'Pixel 7':     {'name': 'Pixel 7',     'width': 412, 'height': 915},
    'iPad Mini':   {'name': 'iPad Mini',   'width': 744, 'height': 1133},
}

DEFAULT_DEVICE = 'iPhone SE'

# ======================================================================
# ORIENTATIONS
# ======================================================================

PORTRAIT = 'portrait'
LANDSCAPE = 'landscape'
ORIENTATIONS = (PORTRAIT, LANDSCAPE)

# ======================================================================
# ASSET TRANSFORM ENUMS
# ======================================================================

REFERENCE_CONTAINER = 'container'

SCALE_MODE_FIT = 'fit'
SCALE_MODE_FILL = 'fill'
SCALE_MODE_STRETCH = 'stretch'
SCALE_MODES = (SCALE_MODE_FIT, SCALE_MODE_FILL, SCALE_MODE_STRETCH)

# ======================================================================
# DEFAULT GEOMETRY
# ======================================================================

# New root containers: 100x100 box centred on the device frame
DEFAULT_CONTAINER_WIDTH = 100.0
DEFAULT_CONTAINER_HEIGHT = 100.0

# Nested containers inherit this fraction of the parent's size
CHILD_CONTAINER_SIZE_RATIO = 0.5

# New assets (fractions of the reference's resolved size)
DEFAULT_ASSET_POSITION_X = 0.0
DEFAULT_ASSET_POSITION_Y = 0.0
DEFAULT_ASSET_WIDTH = 0.5
DEFAULT_ASSET_HEIGHT = 0.5
DEFAULT_ASSET_ORIGIN_X = 0.5
DEFAULT_ASSET_ORIGIN_Y = 0.5
DEFAULT_ASSET_ROTATION = 0.0
DEFAULT_SCALE_MODE = SCALE_MODE_FIT
DEFAULT_MAINTAIN_ASPECT_RATIO = True

# Smallest width/height a resize gesture may produce (pixels)
MIN_ELEMENT_SIZE = 5.0

# ======================================================================
# ALIGNMENT
# ======================================================================

SNAP_THRESHOLD = 5.0  # pixels

HORIZONTAL_ALIGNMENTS = ('left', 'center', 'right')
VERTICAL_ALIGNMENTS = ('top', 'middle', 'bottom')

# ======================================================================
# DEPTH ORDERING
# ======================================================================

# Gap between consecutive depths when appending or dropping past an end
DEPTH_STEP = 10.0

# ======================================================================
# HISTORY
# ======================================================================

MAX_HISTORY = 50

# ======================================================================
# ASSET LIBRARY / IMPORT-EXPORT
# ======================================================================

MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # 5MB

LAYOUT_JSON_NAME = 'layout.json'
ASSETS_FOLDER = 'assets/'
