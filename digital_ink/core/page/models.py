"""
Per-page and per-document state held by the page store.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from digital_ink.core.annotations import AnnotationSurface
from digital_ink.core.document import PDFDocumentReader, SourceDocument


class PageStatus(Enum):
    UNLOADED = "unloaded"
    RENDERING = "rendering"
    LIVE = "live"
    SNAPSHOTTED = "snapshotted"


@dataclass(frozen=True)
class EmptyContent:
    """Nothing was ever drawn on the page."""


@dataclass
class LiveContent:
    """An attached surface, plus the snapshot it was restored from or flushed to."""
    surface: AnnotationSurface
    snapshot: Optional[str] = None


@dataclass(frozen=True)
class SnapshotContent:
    """Serialized strokes of a page whose surface has been released."""
    snapshot: str


PageContent = Union[EmptyContent, LiveContent, SnapshotContent]


@dataclass
class PageState:
    status: PageStatus = PageStatus.UNLOADED
    content: PageContent = field(default_factory=EmptyContent)
    # Raster (width, height) of the page at the session render scale
    size: Optional[Tuple[int, int]] = None
    # Last restore problem, reported once the surface is attached
    restore_error: Optional[str] = None

    @property
    def surface(self) -> Optional[AnnotationSurface]:
        if isinstance(self.content, LiveContent):
            return self.content.surface
        return None

    @property
    def snapshot(self) -> Optional[str]:
        if isinstance(self.content, (LiveContent, SnapshotContent)):
            return self.content.snapshot
        return None


@dataclass
class DocumentState:
    """A loaded document with one PageState per page."""
    source: SourceDocument
    reader: PDFDocumentReader
    page_count: int
    current_page: int = 1  # 1-based
    pages: List[PageState] = field(default_factory=list)

    def __post_init__(self):
        if not self.pages:
            self.pages = [PageState() for _ in range(self.page_count)]

    @property
    def id(self) -> str:
        return self.source.id

    @property
    def name(self) -> str:
        return self.source.name

    def page(self, page_number: int) -> PageState:
        if not 1 <= page_number <= self.page_count:
            raise ValueError(
                f"Page {page_number} out of range 1..{self.page_count} for {self.source.id}"
            )
        return self.pages[page_number - 1]
