"""
Application windows.
"""
from .main_window import AnnotatorWindow, sources_from_paths

__all__ = ['AnnotatorWindow', 'sources_from_paths']
