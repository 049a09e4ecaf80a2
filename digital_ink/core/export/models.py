"""
Artifacts produced by an annotation export.
"""
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional


def file_stem(name: str) -> str:
    """Document name with every whitespace run replaced by an underscore."""
    return re.sub(r"\s+", "_", name)


@dataclass
class AnnotatedPage:
    """Flattened PNG of one annotated page, submitted for extraction."""
    page_number: int  # 1-based page in the source document
    document_id: str
    document_name: str
    png: bytes

    @property
    def filename(self) -> str:
        return f"{file_stem(self.document_name)}_page_{self.page_number}.png"

    def to_metadata(self):
        """Per-file metadata sent alongside the image."""
        return {
            'originalPageNumber': self.page_number,
            'documentId': self.document_id,
            'documentName': self.document_name,
        }


@dataclass
class AnnotatedDocument:
    """Complete PDF with the ink stamped onto its annotated pages."""
    document_id: str
    document_name: str
    pdf: bytes

    @property
    def filename(self) -> str:
        return f"{file_stem(self.document_name)}_annotated.pdf"


@dataclass
class PageError:
    document_id: str
    page_number: Optional[int]
    message: str


@dataclass
class ExportResult:
    """
    Output of one export pass.

    Both sets are keyed by document id in the configured document order;
    submission pages are ascending within a document.
    """
    submission_set: Dict[str, List[AnnotatedPage]] = field(default_factory=OrderedDict)
    complete_set: Dict[str, AnnotatedDocument] = field(default_factory=OrderedDict)
    errors: List[PageError] = field(default_factory=list)

    def submission_pages(self) -> List[AnnotatedPage]:
        """All submitted pages flattened, documents first, then pages."""
        return [page for pages in self.submission_set.values() for page in pages]

    def annotated_documents(self) -> List[AnnotatedDocument]:
        return list(self.complete_set.values())

    @property
    def page_count(self) -> int:
        return sum(len(pages) for pages in self.submission_set.values())
