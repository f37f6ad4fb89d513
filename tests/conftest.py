"""
Shared fixtures for Phaser Layout Editor tests.

Provides fresh layouts, an asset library with synthetic images, and an
editor wired to both.
"""
import io
import sys
import os
import pytest
from PIL import Image

# Ensure editor/src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'editor', 'src'))


# ── Synthetic images ────────────────────────────────────────────────────

def make_png(width, height, color=(255, 0, 0, 255)):
    """PNG bytes of a solid-colour image"""
    buffer = io.BytesIO()
    Image.new('RGBA', (width, height), color).save(buffer, format='PNG')
    return buffer.getvalue()


def make_jpeg(width, height, color=(0, 128, 255)):
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, format='JPEG')
    return buffer.getvalue()


# Keys registered in the `library` fixture: key -> (width, height)
LIBRARY_IMAGES = {
    'square': (100, 100),
    'wide': (200, 100),
    'tall': (100, 200),
}


@pytest.fixture
def png_bytes():
    """Factory for PNG bytes of a given size"""
    return make_png


@pytest.fixture
def fresh_layout():
    """Fresh empty Layout on the default device"""
    from models.layout import Layout
    layout = Layout()
    Layout.set_active(layout)
    return layout


@pytest.fixture
def library():
    """AssetLibrary with square, wide and tall images loaded"""
    from services.asset_library import AssetLibrary
    lib = AssetLibrary()
    for key, (width, height) in LIBRARY_IMAGES.items():
        lib.upload_image(key, make_png(width, height))
    return lib


@pytest.fixture
def editor(fresh_layout, library):
    """LayoutEditor over the fresh layout and loaded library"""
    from services.layout_editor import LayoutEditor
    return LayoutEditor(fresh_layout, library)


@pytest.fixture
def nested(editor):
    """Editor with root A {100,100,200,100} holding child B {100,100,100,50} (portrait)

    Returns (editor, a_id, b_id). History is reset so the setup is the oldest entry.
    """
    layout = editor.layout
    a_id = layout.add_container()
    b_id = layout.add_container(parent_id=a_id)
    layout.update_container(a_id, {'x': 100, 'y': 100, 'width': 200, 'height': 100}, 'portrait')
    layout.update_container(b_id, {'x': 100, 'y': 100, 'width': 100, 'height': 50}, 'portrait')
    editor.reset_history()
    return editor, a_id, b_id


@pytest.fixture
def sized_container(fresh_layout):
    """Layout with one root container at {100,100,200,100} in portrait

    Returns (layout, container_id).
    """
    container_id = fresh_layout.add_container()
    fresh_layout.update_container(
        container_id, {'x': 100, 'y': 100, 'width': 200, 'height': 100}, 'portrait'
    )
    return fresh_layout, container_id
