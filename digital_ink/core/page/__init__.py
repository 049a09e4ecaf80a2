"""
Page lifecycle state for loaded documents.
"""
from .models import (
    DocumentState,
    EmptyContent,
    LiveContent,
    PageState,
    PageStatus,
    SnapshotContent,
)
from .page_store import PageStateStore

__all__ = [
    'DocumentState',
    'EmptyContent',
    'LiveContent',
    'PageState',
    'PageStatus',
    'SnapshotContent',
    'PageStateStore',
]
