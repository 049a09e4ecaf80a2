"""
Test Configuration and Fixtures
"""
import os

os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')
os.environ.setdefault('DIGITAL_INK_ENV', 'testing')

import fitz
import pytest
from PyQt5.QtWidgets import QApplication

from digital_ink.core.document import SourceDocument
from digital_ink.core.session import DocumentSession

PAGE_WIDTH = 200
PAGE_HEIGHT = 300

RED = "#ff0000"


def write_pdf(path, pages, width=PAGE_WIDTH, height=PAGE_HEIGHT):
    """Write a PDF with blank pages labelled by number."""
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((20, 40), f"Page {i + 1}", fontsize=11)
    doc.save(str(path))
    doc.close()
    return str(path)


@pytest.fixture(scope='session')
def qapp():
    """Create application for testing"""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def make_pdf(tmp_path):
    """Factory writing a PDF into the test directory"""
    def factory(name, pages=1, width=PAGE_WIDTH, height=PAGE_HEIGHT):
        return write_pdf(tmp_path / f"{name}.pdf", pages, width, height)
    return factory


@pytest.fixture
def intake_sources(make_pdf):
    """Two intake documents: a 3 page exam form and a 2 page consent"""
    return [
        SourceDocument(id='orofacial', name='Orofacial Exam',
                       locator=make_pdf('orofacial', pages=3)),
        SourceDocument(id='consents', name='Consents',
                       locator=make_pdf('consents', pages=2)),
    ]


@pytest.fixture
def session(qapp):
    """Empty document session"""
    s = DocumentSession()
    yield s
    s.reset()


@pytest.fixture
def loaded_session(session, intake_sources):
    """Session with both intake documents loaded"""
    session.load_all(intake_sources)
    return session


def draw_on_active_page(session, points=((20, 60), (120, 60)), color=RED, width=6):
    """Render the active page if needed and draw one stroke on it."""
    surface = session.active_surface()
    if surface is None:
        surface = session.render_active_page().surface
    session.set_tool(color=color, width=width)
    return surface.add_stroke(list(points))


@pytest.fixture
def draw():
    """Helper drawing one stroke on a session's active page"""
    return draw_on_active_page


@pytest.fixture
def extraction_payload():
    """Results document as returned by the extraction backend"""
    return {
        'form_id': 'orofacial',
        'form_name': 'Orofacial Exam',
        'extraction_timestamp': '2026-03-04T10:15:00',
        'overall_confidence': 0.92,
        'total_items_needing_review': 1,
        'patient_name': 'Jane Doe',
        'patient_dob': None,
        'form_date': '2026-03-01',
        'all_review_reasons': ['Page 1: handwriting unclear near jaw section'],
        'pages': [
            {
                'page_number': 1,
                'field_values': {
                    'jaw_pain': {'confidence': 0.95, 'is_checked': True},
                    'pain_location': {'confidence': 0.72,
                                      'circled_options': ['Left', 'Temple']},
                    'notes': {'confidence': 0.55, 'value': 'clicks on opening'},
                },
                'annotation_groups': [
                    {'group_id': 'g1', 'interpretation': 'Pain radiates to temple',
                     'note': 'arrow from jaw to temple'},
                ],
                'free_form_annotations': [],
                'overall_confidence': 0.74,
                'items_needing_review': 1,
                'review_reasons': ['handwriting unclear near jaw section'],
            },
            {
                'page_number': 2,
                'field_values': {},
                'overall_confidence': 0.99,
            },
        ],
    }
