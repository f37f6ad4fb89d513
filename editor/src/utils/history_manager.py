"""
Undo/Redo History Manager for Phaser Layout Editor

Manages a linear history of layout snapshots with a cursor.
Saving truncates the redo tail before appending.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger('HistoryManager')


@dataclass
class HistoryEntry:
    """One snapshot in the history list"""
    data: Dict[str, Any]
    description: str = ""


class HistoryManager:
    """Manages undo/redo history with state snapshots"""

    def __init__(self, max_history=50):
        """
        Initialize the history manager

        Args:
            max_history: Maximum number of states to keep in history
        """
        self.max_history = max_history
        self.history: List[HistoryEntry] = []
        self.current_index = -1  # Current position in history (-1 means no states)
        self._listeners: List[Callable[[bool, bool], None]] = []

    def save_state(self, state_data, description=""):
        """
        Save a new state to history

        Args:
            state_data: Dictionary containing the full state to save
            description: Optional description of the change
        """
        # If we're not at the end of history, remove everything after current position
        if self.current_index < len(self.history) - 1:
            self.history = self.history[:self.current_index + 1]

        self.history.append(HistoryEntry(copy.deepcopy(state_data), description))
        self.current_index += 1

        # Trim history if it exceeds max_history
        if len(self.history) > self.max_history:
            self.history.pop(0)
            self.current_index -= 1

        self._notify_listeners()

        logger.debug(f"State saved: {description} (index: {self.current_index}, total: {len(self.history)})")

    def undo(self):
        """
        Move back one state in history

        Returns:
            Dictionary containing the previous state, or None if at beginning
        """
        if not self.can_undo():
            logger.debug("Cannot undo - at beginning of history")
            return None

        self.current_index -= 1
        state = self.history[self.current_index].data
        description = self.history[self.current_index].description

        self._notify_listeners()

        logger.debug(f"Undo to: {description} (index: {self.current_index})")
        return copy.deepcopy(state)

    def redo(self):
        """
        Move forward one state in history

        Returns:
            Dictionary containing the next state, or None if at end
        """
        if not self.can_redo():
            logger.debug("Cannot redo - at end of history")
            return None

        self.current_index += 1
        state = self.history[self.current_index].data
        description = self.history[self.current_index].description

        self._notify_listeners()

        logger.debug(f"Redo to: {description} (index: {self.current_index})")
        return copy.deepcopy(state)

    def can_undo(self):
        """Check if undo is available"""
        return self.current_index > 0

    def can_redo(self):
        """Check if redo is available"""
        return self.current_index < len(self.history) - 1

    def current_state(self) -> Optional[Dict[str, Any]]:
        """Copy of the snapshot at the cursor, or None when empty"""
        if 0 <= self.current_index < len(self.history):
            return copy.deepcopy(self.history[self.current_index].data)
        return None

    def clear(self):
        """Clear all history"""
        self.history = []
        self.current_index = -1
        self._notify_listeners()
        logger.debug("History cleared")

    def add_listener(self, callback):
        """
        Add a listener to be notified when history state changes

        Args:
            callback: Function to call when history changes (receives can_undo, can_redo)
        """
        self._listeners.append(callback)

    def remove_listener(self, callback):
        """Remove a listener"""
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self):
        """Notify all listeners of history state change"""
        for callback in self._listeners:
            try:
                callback(self.can_undo(), self.can_redo())
            except Exception:
                logger.exception("Error notifying history listener")

    def get_current_description(self):
        """Get the description of the current state"""
        if 0 <= self.current_index < len(self.history):
            return self.history[self.current_index].description
        return ""

    def get_undo_description(self):
        """Get the description of the state that would be restored by undo"""
        if self.can_undo():
            return self.history[self.current_index - 1].description
        return ""

    def get_redo_description(self):
        """Get the description of the state that would be restored by redo"""
        if self.can_redo():
            return self.history[self.current_index + 1].description
        return ""
