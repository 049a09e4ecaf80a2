"""
PDF document loading and page rendering.
"""
import logging
from pathlib import Path
from typing import Optional, Tuple

import fitz  # PyMuPDF
import requests
from PyQt5.QtGui import QImage

from digital_ink.config import Config
from digital_ink.core.errors import LoadFailure, RenderFailure

logger = logging.getLogger(__name__)


class PDFDocumentReader:
    """Opens one PDF and renders its pages to raster images."""

    def __init__(self, http_session: Optional[requests.Session] = None,
                 timeout: float = Config.REQUEST_TIMEOUT):
        self.doc: Optional[fitz.Document] = None
        self.page_count: int = 0
        self.locator: Optional[str] = None
        self._http = http_session
        self._timeout = timeout

    def load(self, locator: str) -> int:
        """
        Open a PDF from a local path or an http(s) URL.

        Args:
            locator: File path or URL of the PDF

        Returns:
            Number of pages in the document

        Raises:
            LoadFailure: if the source is missing, empty, or not a readable PDF
        """
        if self.doc is not None:
            self.close()

        data = self._read_bytes(locator)
        if not data:
            raise LoadFailure(f"Document is empty: {locator}")

        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise LoadFailure(f"Error loading PDF {locator}: {e}") from e

        if doc.page_count == 0:
            doc.close()
            raise LoadFailure(f"PDF has no pages: {locator}")

        self.doc = doc
        self.page_count = doc.page_count
        self.locator = locator
        logger.debug("Loaded %s (%d pages)", locator, self.page_count)
        return self.page_count

    def _read_bytes(self, locator: str) -> bytes:
        if locator.lower().startswith(("http://", "https://")):
            http = self._http or requests
            try:
                response = http.get(locator, timeout=self._timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise LoadFailure(f"Error downloading PDF {locator}: {e}") from e
            return response.content

        try:
            return Path(locator).read_bytes()
        except OSError as e:
            raise LoadFailure(f"Error reading PDF {locator}: {e}") from e

    @property
    def is_open(self) -> bool:
        return self.doc is not None and not self.doc.is_closed

    def close(self) -> None:
        """Close the document and clear all state."""
        if self.doc is not None:
            self.doc.close()
            self.doc = None

        self.page_count = 0
        self.locator = None

    def _check_page(self, page_number: int) -> None:
        if not self.is_open:
            raise RenderFailure("Document is not open", page_number)
        if not 1 <= page_number <= self.page_count:
            raise RenderFailure(
                f"Page {page_number} out of range 1..{self.page_count}", page_number
            )

    def page_size(self, page_number: int) -> Tuple[float, float]:
        """
        Get the natural size of a page in points.

        Args:
            page_number: 1-based page number

        Returns:
            Tuple of (width, height)
        """
        self._check_page(page_number)
        rect = self.doc.load_page(page_number - 1).rect
        return rect.width, rect.height

    def render_page(self, page_number: int, scale: float = Config.RENDER_SCALE) -> QImage:
        """
        Render a single page to an image.

        Args:
            page_number: 1-based page number
            scale: Zoom factor applied to the natural page size

        Returns:
            Opaque ARGB32 image owning its pixel data

        Raises:
            RenderFailure: if the page is out of range or cannot be rasterized
        """
        self._check_page(page_number)

        try:
            page = self.doc.load_page(page_number - 1)
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)

            # QImage only borrows the buffer; keep it referenced until copied
            samples = pix.samples
            img = QImage(samples, pix.width, pix.height, pix.stride, QImage.Format_RGB888)
            return img.convertToFormat(QImage.Format_ARGB32)

        except Exception as e:
            raise RenderFailure(f"Error rendering page {page_number}: {e}", page_number) from e
