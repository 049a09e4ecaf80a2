"""
Application controllers for managing interactions between UI and core logic.
"""
from .annotation_controller import AnnotationController

__all__ = [
    'AnnotationController'
]
