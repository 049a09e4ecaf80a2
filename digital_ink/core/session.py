"""
Multi-document annotation session.

Owns the page-state store, the active document/page cursor and the tool
configuration, and turns navigation into page-state transitions.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal
from PyQt5.QtGui import QImage

from digital_ink.config import Config
from digital_ink.core.annotations import AnnotationSurface, Tool, ToolConfig
from digital_ink.core.document import PDFDocumentReader, SourceDocument
from digital_ink.core.errors import LoadFailure, RenderFailure
from digital_ink.core.page import DocumentState, PageStateStore

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    """Outcome of loading a batch of documents."""
    loaded: List[str] = field(default_factory=list)
    # (document id, error message)
    failed: List[Tuple[str, str]] = field(default_factory=list)


@dataclass
class RenderedPage:
    document_id: str
    page_number: int
    image: QImage
    surface: AnnotationSurface
    restore_error: Optional[str] = None


class DocumentSession(QObject):
    """
    Set of loaded documents the user annotates.

    Signals:
        page_changed(document_id, page_number): the active page moved
        active_document_changed(document_id): another document was selected
        documents_loaded(list): ids loaded by load_all
        load_failed(document_id, message): a document could not be opened
        restore_failed(document_id, page_number, message): corrupt snapshot
        annotations_changed(document_id, page_number): strokes were edited
        tool_changed(object): the ToolConfig changed
        session_reset(): all documents were discarded
    """

    page_changed = pyqtSignal(str, int)
    active_document_changed = pyqtSignal(str)
    documents_loaded = pyqtSignal(list)
    load_failed = pyqtSignal(str, str)
    restore_failed = pyqtSignal(str, int, str)
    annotations_changed = pyqtSignal(str, int)
    tool_changed = pyqtSignal(object)
    session_reset = pyqtSignal()

    def __init__(self, render_scale: float = Config.RENDER_SCALE,
                 reader_factory: Callable[[], PDFDocumentReader] = PDFDocumentReader,
                 parent=None):
        super().__init__(parent)
        self.render_scale = render_scale
        self.reader_factory = reader_factory
        self.store = PageStateStore()
        self.tool_config = ToolConfig()
        self.active_document_id: Optional[str] = None

    # Loading

    def load_all(self, sources: Iterable[SourceDocument]) -> LoadReport:
        """
        Load every source document independently.

        A document that fails to load is reported and skipped; the session
        continues with the rest.

        Args:
            sources: Documents in display order

        Returns:
            LoadReport listing loaded ids and failures

        Raises:
            LoadFailure: if not a single document could be loaded
        """
        report = LoadReport()

        for source in sources:
            if source.id in self.store.documents:
                message = f"Document id already loaded: {source.id}"
                report.failed.append((source.id, message))
                self.load_failed.emit(source.id, message)
                continue

            reader = self.reader_factory()
            try:
                reader.load(source.locator)
            except LoadFailure as e:
                logger.warning("Failed to load %s (%s): %s", source.name, source.id, e)
                report.failed.append((source.id, str(e)))
                self.load_failed.emit(source.id, str(e))
                continue

            self.store.add_document(source, reader)
            report.loaded.append(source.id)
            logger.info("Loaded document %s with %d pages", source.name, reader.page_count)

        if not report.loaded and not self.store.documents:
            raise LoadFailure("No documents could be loaded")

        if self.active_document_id is None and self.store.documents:
            self.active_document_id = next(iter(self.store.documents))
            self.active_document_changed.emit(self.active_document_id)

        self.documents_loaded.emit(list(report.loaded))
        return report

    @property
    def documents(self) -> List[DocumentState]:
        return list(self.store.documents.values())

    @property
    def active_document(self) -> Optional[DocumentState]:
        if self.active_document_id is None:
            return None
        return self.store.document(self.active_document_id)

    @property
    def current_page(self) -> int:
        doc = self.active_document
        return doc.current_page if doc else 0

    @property
    def generation(self) -> int:
        return self.store.generation

    def is_current(self, generation: int) -> bool:
        """Check whether work started under a generation still belongs to this session."""
        return generation == self.store.generation

    # Navigation

    def _leave_active_page(self) -> None:
        doc = self.active_document
        if doc is not None:
            self.store.release(doc.id, doc.current_page)

    def set_active_document(self, doc_id: str) -> None:
        """
        Switch to another loaded document, saving the page being left.

        Raises:
            ValueError: if the document is not loaded
        """
        if doc_id not in self.store.documents:
            raise ValueError(f"Unknown document: {doc_id}")
        if doc_id == self.active_document_id:
            return

        self._leave_active_page()
        self.active_document_id = doc_id
        self.active_document_changed.emit(doc_id)
        self.page_changed.emit(doc_id, self.active_document.current_page)

    def go_to_page(self, page_number: int) -> bool:
        """
        Move the active document to a page, clamped to its range.

        Returns:
            True if the page changed
        """
        doc = self.active_document
        if doc is None:
            return False

        target = max(1, min(page_number, doc.page_count))
        if target == doc.current_page:
            return False

        self._leave_active_page()
        doc.current_page = target
        self.page_changed.emit(doc.id, target)
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.current_page + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.current_page - 1)

    def total_page_count(self) -> int:
        """Sum of the page counts of all loaded documents."""
        return sum(doc.page_count for doc in self.store.documents.values())

    def global_page_index(self) -> int:
        """1-based position of the active page across all documents, 0 if none."""
        if self.active_document_id is None:
            return 0

        index = 0
        for doc in self.store.documents.values():
            if doc.id == self.active_document_id:
                return index + doc.current_page
            index += doc.page_count
        return 0

    # Rendering

    def render_active_page(self) -> Optional[RenderedPage]:
        """
        Render the active page and bind a fresh drawing surface to it.

        Returns:
            The rendered page, or None if no document is active or the session
            was reset while rendering

        Raises:
            RenderFailure: if the page cannot be rasterized
        """
        doc = self.active_document
        if doc is None:
            return None

        page_number = doc.current_page
        generation = self.store.generation
        self.store.begin_render(doc.id, page_number)

        try:
            image = doc.reader.render_page(page_number, self.render_scale)
        except RenderFailure:
            self.store.abort_render(doc.id, page_number)
            raise

        surface = AnnotationSurface(image.width(), image.height(), self.tool_config)
        if not self.store.attach_surface(doc.id, page_number, surface, generation):
            return None

        doc_id = doc.id
        surface.objects_changed.connect(
            lambda: self.annotations_changed.emit(doc_id, page_number)
        )

        page = self.store.page(doc_id, page_number)
        if page.restore_error:
            self.restore_failed.emit(doc_id, page_number, page.restore_error)

        return RenderedPage(doc_id, page_number, image, surface, page.restore_error)

    def active_surface(self) -> Optional[AnnotationSurface]:
        doc = self.active_document
        if doc is None:
            return None
        return self.store.surface_for(doc.id, doc.current_page)

    # Tools and editing

    def set_tool(self, tool: Optional[Tool] = None, color: Optional[str] = None,
                 width: Optional[float] = None) -> ToolConfig:
        """Update the tool configuration and apply it to the live surface."""
        self.tool_config = self.tool_config.updated(tool=tool, color=color, width=width)

        surface = self.active_surface()
        if surface is not None:
            surface.configure(self.tool_config.tool, self.tool_config.color,
                              self.tool_config.width)

        self.tool_changed.emit(self.tool_config)
        return self.tool_config

    def clear_active_page(self) -> None:
        doc = self.active_document
        if doc is not None:
            self.store.clear_page(doc.id, doc.current_page)

    def undo(self) -> bool:
        surface = self.active_surface()
        return surface is not None and surface.remove_last_object() is not None

    def redo(self) -> bool:
        surface = self.active_surface()
        return surface is not None and surface.redo()

    def has_annotations(self, doc_id: str, page_number: int) -> bool:
        return self.store.has_annotations(doc_id, page_number)

    def flush_active_page(self) -> bool:
        """Save the active page's strokes into its snapshot before an export."""
        doc = self.active_document
        if doc is None:
            return False
        return self.store.flush(doc.id, doc.current_page)

    def reset(self) -> None:
        """Discard all documents. Results of work started earlier become stale."""
        self.store.reset()
        self.active_document_id = None
        logger.info("Session reset (generation %d)", self.store.generation)
        self.session_reset.emit()
