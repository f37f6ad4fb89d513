"""
Phaser Layout Editor - Data Models

This module contains the data model classes for the layout structure.
This is the MODEL in MVC architecture.

Public API: Import Layout, Container, Asset from models.layout
The models/layout/_internal/ subdirectory contains internal implementation only.
"""

from .layout import Layout, LayoutEvent, Container, Containers, Asset
from .device import Device, get_device, get_device_names

__all__ = [
    'Layout', 'LayoutEvent', 'Container', 'Containers', 'Asset',
    'Device', 'get_device', 'get_device_names',
]
