"""
Source documents and PDF rendering.
"""
from .models import SourceDocument
from .pdf_reader import PDFDocumentReader

__all__ = ['SourceDocument', 'PDFDocumentReader']
