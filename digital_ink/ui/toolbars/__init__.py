"""
UI toolbars.
"""
from .drawing_toolbar import DrawingToolbar

__all__ = ['DrawingToolbar']
