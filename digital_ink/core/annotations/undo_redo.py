"""
Redo history for strokes removed by undo.
"""
import copy
from typing import List, Optional

from digital_ink.config import Config
from .models import Stroke


class UndoRedoStack:
    """Keeps strokes taken off a surface by undo so they can be redone."""

    def __init__(self, max_size: int = Config.UNDO_HISTORY_SIZE):
        """
        Initialize the history.

        Args:
            max_size: Maximum number of undone strokes to remember
        """
        self.redo_stack: List[Stroke] = []
        self.max_size = max_size

    def push_undone(self, stroke: Stroke) -> None:
        """
        Remember a stroke that was just undone.

        Args:
            stroke: The stroke removed from the surface
        """
        self.redo_stack.append(copy.deepcopy(stroke))

        # Limit stack size
        if len(self.redo_stack) > self.max_size:
            self.redo_stack.pop(0)

    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self.redo_stack) > 0

    def redo(self) -> Optional[Stroke]:
        """
        Take back the most recently undone stroke.

        Returns:
            The stroke to re-add, or None if nothing was undone
        """
        if not self.can_redo():
            return None
        return self.redo_stack.pop()

    def clear(self) -> None:
        """A new stroke or a clear invalidates redo."""
        self.redo_stack.clear()
