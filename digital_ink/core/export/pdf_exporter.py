"""
Export of annotated pages as PNG submissions and annotated PDFs.
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Tuple

import fitz  # PyMuPDF
from PyQt5.QtCore import QObject, pyqtSignal

from digital_ink.core.errors import RenderFailure, RestoreFailure, ValidationFailure
from digital_ink.core.page import DocumentState
from digital_ink.core.session import DocumentSession
from .compositor import compose, image_to_png, overlay_for
from .models import AnnotatedDocument, AnnotatedPage, ExportResult, PageError

logger = logging.getLogger(__name__)


class AnnotationExporter(QObject):
    """Builds the submission set and the complete set for a session."""

    # Signal for progress updates
    progress_signal = pyqtSignal(int, int)  # current, total

    def __init__(self, session: DocumentSession):
        super().__init__()
        self.session = session

    def collect_annotated_pages(self) -> Dict[str, List[int]]:
        """Annotated page numbers per document, documents without any omitted."""
        store = self.session.store
        plan = OrderedDict()
        for doc in self.session.documents:
            pages = store.annotated_pages(doc.id)
            if pages:
                plan[doc.id] = pages
        return plan

    def export(self) -> ExportResult:
        """
        Export every annotated page of every document.

        Pages are processed one at a time in document order, ascending page
        order. A page that fails to render or restore is recorded in the
        result errors and skipped.

        Returns:
            ExportResult with the submission set and the complete set

        Raises:
            ValidationFailure: if no page carries annotations
        """
        self.session.flush_active_page()

        plan = self.collect_annotated_pages()
        if not plan:
            raise ValidationFailure("nothing to export")

        total = sum(len(pages) for pages in plan.values())
        done = 0
        result = ExportResult()

        for doc_id, page_numbers in plan.items():
            doc = self.session.store.document(doc_id)
            entries = []
            overlays = OrderedDict()

            for page_number in page_numbers:
                self.progress_signal.emit(done, total)
                try:
                    entry, overlay_png = self._export_page(doc, page_number)
                except (RenderFailure, RestoreFailure) as e:
                    logger.warning("Skipping %s page %d: %s", doc.name, page_number, e)
                    result.errors.append(PageError(doc_id, page_number, str(e)))
                else:
                    entries.append(entry)
                    overlays[page_number] = overlay_png
                done += 1

            if not entries:
                continue

            result.submission_set[doc_id] = entries
            try:
                pdf = self._build_annotated_pdf(doc, overlays)
            except RenderFailure as e:
                logger.warning("Could not build annotated PDF for %s: %s", doc.name, e)
                result.errors.append(PageError(doc_id, None, str(e)))
            else:
                result.complete_set[doc_id] = AnnotatedDocument(doc_id, doc.name, pdf)

        self.progress_signal.emit(total, total)
        logger.info("Exported %d page(s) from %d document(s), %d error(s)",
                    result.page_count, len(result.submission_set), len(result.errors))
        return result

    def _export_page(self, doc: DocumentState, page_number: int) -> Tuple[AnnotatedPage, bytes]:
        """Render, flatten and encode one page. Returns the entry and its bare overlay PNG."""
        page_image = doc.reader.render_page(page_number, self.session.render_scale)
        overlay = overlay_for(doc.page(page_number), page_image.width(), page_image.height())
        composite = compose(page_image, overlay)

        entry = AnnotatedPage(
            page_number=page_number,
            document_id=doc.id,
            document_name=doc.name,
            png=image_to_png(composite),
        )
        return entry, image_to_png(overlay)

    def _build_annotated_pdf(self, doc: DocumentState, overlays: Dict[int, bytes]) -> bytes:
        """
        Copy every original page and stamp the overlays on the annotated ones.

        Overlays are placed over ``page.rect``, the displayed page area. Pages
        with a /Rotate entry or a cropbox offset from the mediabox are not
        corrected for, so ink on such pages may be misaligned in the output.

        Args:
            doc: Source document state
            overlays: Transparent overlay PNG per 1-based page number

        Returns:
            The PDF as bytes
        """
        out = fitz.open()
        try:
            out.insert_pdf(doc.reader.doc)
            for page_number, png in overlays.items():
                page = out[page_number - 1]
                page.insert_image(page.rect, stream=png, overlay=True)
            return out.tobytes(garbage=3, deflate=True)
        except Exception as e:
            raise RenderFailure(f"Error writing annotated PDF for {doc.name}: {e}") from e
        finally:
            out.close()
