"""
Data classes for extraction backend responses.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class AnalyzeResponse:
    job_id: str
    status: str
    message: str = ""

    @staticmethod
    def from_dict(data):
        return AnalyzeResponse(
            job_id=str(data['job_id']),
            status=str(data.get('status', '')),
            message=str(data.get('message') or ''),
        )


@dataclass
class JobStatus:
    """Progress snapshot of an extraction job."""
    job_id: str
    status: str  # pending | processing | completed | failed
    progress: Optional[int] = None
    total_pages: Optional[int] = None
    percentage: Optional[float] = None
    current_stage: Optional[str] = None
    message: Optional[str] = None
    result_path: Optional[str] = None

    TERMINAL_STATES = ('completed', 'failed')

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATES

    @property
    def succeeded(self) -> bool:
        return self.status == 'completed'

    def describe(self) -> str:
        """Human readable progress line for status displays."""
        parts = [self.current_stage or self.status.capitalize()]
        if self.progress is not None and self.total_pages:
            parts.append(f"page {self.progress} of {self.total_pages}")
        if self.percentage is not None:
            parts.append(f"{self.percentage:.0f}%")
        return " - ".join(parts)

    @staticmethod
    def from_dict(data):
        return JobStatus(
            job_id=str(data['job_id']),
            status=str(data['status']),
            progress=data.get('progress'),
            total_pages=data.get('total_pages'),
            percentage=data.get('percentage'),
            current_stage=data.get('current_stage'),
            message=data.get('message'),
            result_path=data.get('result_path'),
        )


@dataclass
class FieldValue:
    confidence: float = 0.0
    value: Optional[str] = None
    is_checked: Optional[bool] = None
    circled_options: List[str] = field(default_factory=list)
    has_correction: bool = False
    original_value: Optional[str] = None

    def display_value(self) -> str:
        """Value as shown in reports: circled options, then checkbox, then text."""
        if self.circled_options:
            return ", ".join(self.circled_options)
        if self.is_checked is not None:
            return "YES" if self.is_checked else "NO"
        return self.value or "(empty)"

    @staticmethod
    def from_dict(data):
        return FieldValue(
            confidence=float(data.get('confidence', 0.0)),
            value=data.get('value'),
            is_checked=data.get('is_checked'),
            circled_options=list(data.get('circled_options') or []),
            has_correction=bool(data.get('has_correction', False)),
            original_value=data.get('original_value'),
        )


@dataclass
class AnnotationGroup:
    group_id: str
    interpretation: str
    clinical_significance: Optional[str] = None
    member_element_ids: List[str] = field(default_factory=list)
    note: Optional[str] = None

    @staticmethod
    def from_dict(data):
        return AnnotationGroup(
            group_id=str(data.get('group_id', '')),
            interpretation=str(data.get('interpretation', '')),
            clinical_significance=data.get('clinical_significance'),
            member_element_ids=list(data.get('member_element_ids') or []),
            note=data.get('note'),
        )


@dataclass
class FreeFormAnnotation:
    annotation_id: str
    text_content: str
    location_description: str = ""
    interpretation: Optional[str] = None
    confidence: float = 0.0
    needs_review: bool = False
    review_reason: Optional[str] = None

    @staticmethod
    def from_dict(data):
        return FreeFormAnnotation(
            annotation_id=str(data.get('annotation_id', '')),
            text_content=str(data.get('text_content', '')),
            location_description=str(data.get('location_description', '')),
            interpretation=data.get('interpretation'),
            confidence=float(data.get('confidence', 0.0)),
            needs_review=bool(data.get('needs_review', False)),
            review_reason=data.get('review_reason'),
        )


@dataclass
class PageResult:
    """Extraction output for one submitted page."""
    page_number: int
    field_values: Dict[str, FieldValue] = field(default_factory=dict)
    annotation_groups: List[AnnotationGroup] = field(default_factory=list)
    free_form_annotations: List[FreeFormAnnotation] = field(default_factory=list)
    spatial_connections: List[Any] = field(default_factory=list)
    cross_page_references: List[Any] = field(default_factory=list)
    overall_confidence: float = 0.0
    items_needing_review: int = 0
    review_reasons: List[str] = field(default_factory=list)

    @staticmethod
    def from_dict(data):
        return PageResult(
            page_number=int(data['page_number']),
            field_values={
                name: FieldValue.from_dict(value)
                for name, value in (data.get('field_values') or {}).items()
            },
            annotation_groups=[AnnotationGroup.from_dict(g)
                               for g in data.get('annotation_groups') or []],
            free_form_annotations=[FreeFormAnnotation.from_dict(a)
                                   for a in data.get('free_form_annotations') or []],
            spatial_connections=list(data.get('spatial_connections') or []),
            cross_page_references=list(data.get('cross_page_references') or []),
            overall_confidence=float(data.get('overall_confidence', 0.0)),
            items_needing_review=int(data.get('items_needing_review', 0)),
            review_reasons=list(data.get('review_reasons') or []),
        )


@dataclass
class ExtractionResult:
    """Full extraction document returned for a completed job."""
    form_id: str
    form_name: str
    extraction_timestamp: str
    overall_confidence: float = 0.0
    total_items_needing_review: int = 0
    patient_name: Optional[str] = None
    patient_dob: Optional[str] = None
    form_date: Optional[str] = None
    all_review_reasons: List[str] = field(default_factory=list)
    pages: List[PageResult] = field(default_factory=list)
    # Untouched server payload, handy for re-serializing
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def total_fields(self) -> int:
        return sum(len(page.field_values) for page in self.pages)

    @staticmethod
    def from_dict(data):
        return ExtractionResult(
            form_id=str(data.get('form_id', '')),
            form_name=str(data.get('form_name', '')),
            extraction_timestamp=str(data.get('extraction_timestamp', '')),
            overall_confidence=float(data.get('overall_confidence', 0.0)),
            total_items_needing_review=int(data.get('total_items_needing_review', 0)),
            patient_name=data.get('patient_name'),
            patient_dob=data.get('patient_dob'),
            form_date=data.get('form_date'),
            all_review_reasons=list(data.get('all_review_reasons') or []),
            pages=[PageResult.from_dict(p) for p in data.get('pages') or []],
            raw=dict(data),
        )


@dataclass
class ExtractionSummary:
    job_id: str
    overall_confidence: float
    total_pages: int
    total_items_needing_review: int
    extraction_timestamp: str
    patient_name: Optional[str] = None
    patient_dob: Optional[str] = None
    form_date: Optional[str] = None

    @staticmethod
    def from_dict(data):
        return ExtractionSummary(
            job_id=str(data['job_id']),
            overall_confidence=float(data.get('overall_confidence', 0.0)),
            total_pages=int(data.get('total_pages', 0)),
            total_items_needing_review=int(data.get('total_items_needing_review', 0)),
            extraction_timestamp=str(data.get('extraction_timestamp', '')),
            patient_name=data.get('patient_name'),
            patient_dob=data.get('patient_dob'),
            form_date=data.get('form_date'),
        )


@dataclass
class Schema:
    name: str
    id: str
    path: str
    total_pages: int = 0

    @staticmethod
    def from_dict(data):
        return Schema(
            name=str(data['name']),
            id=str(data['id']),
            path=str(data['path']),
            total_pages=int(data.get('total_pages', 0)),
        )


@dataclass
class HealthStatus:
    status: str
    api_key_configured: bool = False
    extractions_dir: str = ""
    timestamp: str = ""

    @staticmethod
    def from_dict(data):
        return HealthStatus(
            status=str(data.get('status', '')),
            api_key_configured=bool(data.get('api_key_configured', False)),
            extractions_dir=str(data.get('extractions_dir', '')),
            timestamp=str(data.get('timestamp', '')),
        )
