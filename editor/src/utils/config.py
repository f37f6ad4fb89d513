"""Configuration management for Phaser Layout Editor"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from typing import List

from constants import DEFAULT_DEVICE, DEVICES, MAX_HISTORY, MAX_UPLOAD_BYTES, SNAP_THRESHOLD
from utils.logger import loggerRaise

logger = logging.getLogger('Config')

CONFIG_DIR = os.path.join(os.path.expanduser('~'), '.phaser_layout_editor')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'config.json')


@dataclass
class EditorConfig:
    """User settings persisted between sessions"""
    selected_device: str = DEFAULT_DEVICE
    snap_threshold: float = SNAP_THRESHOLD
    max_history: int = MAX_HISTORY
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    recent_files: List[str] = field(default_factory=list)
    max_recent_files: int = 10

    def add_recent_file(self, filepath: str):
        """Move filepath to the front of the recent files list"""
        if filepath in self.recent_files:
            self.recent_files.remove(filepath)
        self.recent_files.insert(0, filepath)
        self.recent_files = self.recent_files[:self.max_recent_files]


def load_config(path: str = CONFIG_FILE) -> EditorConfig:
    """Load settings from a JSON file

    A missing file yields defaults. Unknown keys are ignored and an
    unregistered device falls back to the default device.
    """
    config = EditorConfig()
    if not os.path.exists(path):
        logger.debug(f"No config at {path}, using defaults")
        return config

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        loggerRaise(e, "Error loading config")

    known = {f.name for f in fields(EditorConfig)}
    for key, value in data.items():
        if key in known:
            setattr(config, key, value)
        else:
            logger.debug(f"Ignoring unknown config key '{key}'")

    if config.selected_device not in DEVICES:
        logger.warning(f"Unknown device '{config.selected_device}' in config, using {DEFAULT_DEVICE}")
        config.selected_device = DEFAULT_DEVICE

    # Filter out files that no longer exist
    config.recent_files = [p for p in config.recent_files if os.path.exists(p)]
    return config


def save_config(config: EditorConfig, path: str = CONFIG_FILE):
    """Save settings to a JSON file (creates the directory if needed)"""
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        data = asdict(config)
        data['recent_files'] = config.recent_files[:config.max_recent_files]

        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        loggerRaise(e, "Error saving config")
