"""
Freehand annotation surfaces for rendered pages.
"""
from .models import Stroke, Tool, ToolConfig
from .surface import AnnotationSurface, snapshot_object_count
from .undo_redo import UndoRedoStack

__all__ = [
    'Stroke',
    'Tool',
    'ToolConfig',
    'AnnotationSurface',
    'snapshot_object_count',
    'UndoRedoStack',
]
