"""Device profiles - the conversion basis between pixels and normalized coordinates."""
from dataclasses import dataclass
from typing import List

from constants import DEVICES, PORTRAIT, LANDSCAPE
from models.transform import Box, Size


@dataclass(frozen=True)
class Device:
    """Named device profile (portrait pixel dimensions)"""
    name: str
    width: int
    height: int

    def frame_size(self, orientation: str) -> Size:
        """Frame size in the given orientation (landscape rotates the device)"""
        if orientation == PORTRAIT:
            return Size(float(self.width), float(self.height))
        if orientation == LANDSCAPE:
            return Size(float(self.height), float(self.width))
        raise ValueError(f"Unknown orientation '{orientation}'")

    def frame_box(self, orientation: str) -> Box:
        """The whole device frame as a center-based box"""
        size = self.frame_size(orientation)
        return Box(size.width / 2.0, size.height / 2.0, size.width, size.height)


def get_device(name: str) -> Device:
    """Look up a device profile by name

    Raises:
        ValueError: If the device is not registered
    """
    profile = DEVICES.get(name)
    if profile is None:
        raise ValueError(f"Unknown device '{name}'")
    return Device(profile['name'], profile['width'], profile['height'])


def get_device_names() -> List[str]:
    return list(DEVICES.keys())
