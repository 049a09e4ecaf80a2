"""
Extraction backend client, its response models and the findings report.
"""
from .extraction_client import ExtractionClient
from .models import (
    AnalyzeResponse,
    AnnotationGroup,
    ExtractionResult,
    ExtractionSummary,
    FieldValue,
    FreeFormAnnotation,
    HealthStatus,
    JobStatus,
    PageResult,
    Schema,
)
from .report_service import generate_report, report_filename

__all__ = [
    'ExtractionClient',
    'AnalyzeResponse',
    'AnnotationGroup',
    'ExtractionResult',
    'ExtractionSummary',
    'FieldValue',
    'FreeFormAnnotation',
    'HealthStatus',
    'JobStatus',
    'PageResult',
    'Schema',
    'generate_report',
    'report_filename',
]
