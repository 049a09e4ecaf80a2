"""
PyQt5 desktop shell for the annotator.
"""
from .toolbars import DrawingToolbar
from .widgets import PageCanvas
from .windows import AnnotatorWindow, sources_from_paths

__all__ = ['DrawingToolbar', 'PageCanvas', 'AnnotatorWindow', 'sources_from_paths']
