"""
Page state store.

Tracks, for every page of every loaded document, whether its annotation
surface is live or persisted as a snapshot, and answers which pages carry
annotations. Transitions per page:

    UNLOADED -> RENDERING -> LIVE -> SNAPSHOTTED -> RENDERING -> ...

Snapshots are only rewritten by flush() and clear_page(); no transition
drops them.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from digital_ink.core.annotations import AnnotationSurface, snapshot_object_count
from digital_ink.core.document import PDFDocumentReader, SourceDocument
from digital_ink.core.errors import RestoreFailure
from .models import (
    DocumentState,
    EmptyContent,
    LiveContent,
    PageState,
    PageStatus,
    SnapshotContent,
)

logger = logging.getLogger(__name__)


class PageStateStore:
    """Ordered table of loaded documents and their page states."""

    def __init__(self):
        self.documents: Dict[str, DocumentState] = OrderedDict()
        self.generation = 0

    # Documents

    def add_document(self, source: SourceDocument, reader: PDFDocumentReader) -> DocumentState:
        """
        Register a loaded document.

        Args:
            source: Descriptor of the document
            reader: Reader with the document already open

        Returns:
            The new document state, all pages UNLOADED
        """
        if source.id in self.documents:
            raise ValueError(f"Duplicate document id: {source.id}")

        state = DocumentState(source=source, reader=reader, page_count=reader.page_count)
        self.documents[source.id] = state
        return state

    def document(self, doc_id: str) -> DocumentState:
        try:
            return self.documents[doc_id]
        except KeyError:
            raise ValueError(f"Unknown document: {doc_id}") from None

    def page(self, doc_id: str, page_number: int) -> PageState:
        return self.document(doc_id).page(page_number)

    def reset(self) -> None:
        """Close every reader and forget all state. Invalidates the generation."""
        for state in self.documents.values():
            state.reader.close()
        self.documents.clear()
        self.generation += 1

    # Transitions

    def begin_render(self, doc_id: str, page_number: int) -> PageState:
        """Mark a page as being rendered. A live page is flushed and released first."""
        page = self.page(doc_id, page_number)
        if page.surface is not None:
            self.release(doc_id, page_number)

        page.status = PageStatus.RENDERING
        return page

    def attach_surface(self, doc_id: str, page_number: int,
                       surface: AnnotationSurface, generation: int) -> bool:
        """
        Bind a freshly built surface to a rendering page.

        Any prior snapshot is restored into the surface first. A corrupt
        snapshot leaves the surface empty and is recorded on the page's
        restore_error; other pages are not affected.

        Args:
            doc_id: Document id
            page_number: 1-based page number
            surface: New surface sized to the rendered page
            generation: Generation the render was started under

        Returns:
            True if attached, False if the render belongs to a discarded session
        """
        if generation != self.generation:
            logger.debug("Discarding surface for %s page %d from stale generation %d",
                         doc_id, page_number, generation)
            return False

        page = self.page(doc_id, page_number)
        if page.status != PageStatus.RENDERING:
            raise ValueError(f"Page {page_number} of {doc_id} is not rendering")

        snapshot = page.snapshot
        page.restore_error = None
        if snapshot is not None:
            try:
                surface.restore(snapshot)
            except RestoreFailure as e:
                logger.warning("Could not restore annotations for %s page %d: %s",
                               doc_id, page_number, e)
                page.restore_error = str(e)

        page.content = LiveContent(surface=surface, snapshot=snapshot)
        page.size = (surface.width, surface.height)
        page.status = PageStatus.LIVE
        return True

    def abort_render(self, doc_id: str, page_number: int) -> None:
        """Return a page whose render failed to its resting state."""
        page = self.page(doc_id, page_number)
        if page.status == PageStatus.RENDERING:
            page.status = PageStatus.SNAPSHOTTED if page.snapshot is not None else PageStatus.UNLOADED

    def flush(self, doc_id: str, page_number: int) -> bool:
        """
        Serialize an attached surface into the page snapshot.

        The surface stays attached until release(); while attached it remains
        the authority for the page's content.

        Returns:
            True if a surface was flushed
        """
        page = self.page(doc_id, page_number)
        surface = page.surface
        if surface is None:
            return False

        page.content = LiveContent(surface=surface, snapshot=surface.serialize())
        page.status = PageStatus.SNAPSHOTTED
        return True

    def release(self, doc_id: str, page_number: int) -> None:
        """Flush and drop the page's surface, leaving its snapshot authoritative."""
        page = self.page(doc_id, page_number)
        if not self.flush(doc_id, page_number):
            return

        page.content = SnapshotContent(page.content.snapshot)
        page.status = PageStatus.SNAPSHOTTED

    def clear_page(self, doc_id: str, page_number: int) -> None:
        """Remove all strokes of a page, rewriting its snapshot in the same step."""
        page = self.page(doc_id, page_number)
        surface = page.surface

        if surface is not None:
            surface.clear()
            page.content = LiveContent(surface=surface, snapshot=surface.serialize())
        elif isinstance(page.content, SnapshotContent):
            page.content = EmptyContent()
            if page.status == PageStatus.SNAPSHOTTED:
                page.status = PageStatus.UNLOADED

    # Queries

    def surface_for(self, doc_id: str, page_number: int) -> Optional[AnnotationSurface]:
        page = self.page(doc_id, page_number)
        return page.surface

    def has_annotations(self, doc_id: str, page_number: int) -> bool:
        """
        Check whether a page carries at least one drawn object.

        An attached surface decides while the page has one; otherwise the
        snapshot does. An unparseable snapshot counts as unannotated.
        """
        page = self.page(doc_id, page_number)

        if page.surface is not None:
            return page.surface.object_count() > 0

        snapshot = page.snapshot
        if snapshot is None:
            return False

        try:
            return snapshot_object_count(snapshot) > 0
        except RestoreFailure as e:
            logger.debug("Ignoring unreadable snapshot for %s page %d: %s",
                         doc_id, page_number, e)
            return False

    def annotated_pages(self, doc_id: str) -> List[int]:
        """1-based numbers of annotated pages, ascending."""
        state = self.document(doc_id)
        return [n for n in range(1, state.page_count + 1)
                if self.has_annotations(doc_id, n)]

    def has_any_annotations(self) -> bool:
        return any(self.annotated_pages(doc_id) for doc_id in self.documents)
