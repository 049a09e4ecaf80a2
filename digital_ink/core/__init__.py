"""
Core annotation model: documents, surfaces, page state, session and export.
"""
from .errors import (
    DigitalInkError,
    LoadFailure,
    RemoteFailure,
    RenderFailure,
    RestoreFailure,
    TimeoutFailure,
    ValidationFailure,
)

__all__ = [
    'DigitalInkError',
    'LoadFailure',
    'RemoteFailure',
    'RenderFailure',
    'RestoreFailure',
    'TimeoutFailure',
    'ValidationFailure',
]
