"""
Annotation export: page compositing, PDF stamping and the analysis workflow.
"""
from .compositor import compose, image_to_png, overlay_for
from .models import AnnotatedDocument, AnnotatedPage, ExportResult, PageError, file_stem
from .analysis_worker import AnalysisWorker
from .pdf_exporter import AnnotationExporter

__all__ = [
    'compose',
    'image_to_png',
    'overlay_for',
    'AnnotatedDocument',
    'AnnotatedPage',
    'ExportResult',
    'PageError',
    'file_stem',
    'AnnotationExporter',
    'AnalysisWorker',
]
