"""
Word findings report built from an extraction result.
"""
import io
import logging
import re
from datetime import datetime

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor

from digital_ink.core.export.models import file_stem
from .models import ExtractionResult, PageResult

logger = logging.getLogger(__name__)

REPORT_TITLE = "Medical Form Extraction Report"
DISCLAIMER = (
    "This report was generated automatically by Digital Ink AI-powered extraction. "
    "All findings should be verified by qualified medical personnel."
)
NOT_DETECTED = "Not detected"

GREEN = "22C55E"
YELLOW = "EAB308"
RED = "EF4444"
MUTED = "6B7280"
LABEL_FILL = "F3F4F6"
HEADER_FILL = "E5E7EB"


def confidence_color(confidence: float) -> str:
    if confidence >= 0.85:
        return GREEN
    if confidence >= 0.7:
        return YELLOW
    return RED


def confidence_label(confidence: float) -> str:
    if confidence >= 0.85:
        return "High"
    if confidence >= 0.7:
        return "Medium"
    return "Low"


def format_percent(value: float) -> str:
    return f"{value * 100:.0f}%"


def format_timestamp(timestamp: str) -> str:
    """Render an ISO timestamp for display, leaving unparseable text as is."""
    if not timestamp:
        return NOT_DETECTED
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    return parsed.strftime("%Y-%m-%d %H:%M")


def report_filename(result: ExtractionResult) -> str:
    """Suggested .docx name; the server supplied form name is reduced to a safe stem."""
    name = re.sub(r"[\\/:*?\"<>|\x00-\x1f]+", "_", result.form_name).strip(" ._")
    return f"{file_stem(name) or 'extraction'}_findings_report.docx"


def _rgb(hex_color: str) -> RGBColor:
    return RGBColor.from_string(hex_color)


def _set_cell_shading(cell, hex_color: str):
    """Set background shading on a DOCX table cell."""
    shading = OxmlElement("w:shd")
    shading.set(qn("w:fill"), hex_color)
    shading.set(qn("w:val"), "clear")
    cell._element.get_or_add_tcPr().append(shading)


def _write_cell(cell, text: str, bold: bool = False, color: str = None, size: int = None):
    cell.text = ""
    run = cell.paragraphs[0].add_run(text)
    run.font.bold = bold
    if color:
        run.font.color.rgb = _rgb(color)
    if size:
        run.font.size = Pt(size)
    return run


def _add_label_table(doc, rows):
    """Two-column table of (label, value, value color) rows with shaded labels."""
    table = doc.add_table(rows=len(rows), cols=2)
    table.style = "Table Grid"
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    for i, (label, value, color) in enumerate(rows):
        label_cell = table.cell(i, 0)
        _write_cell(label_cell, label, bold=True)
        _set_cell_shading(label_cell, LABEL_FILL)
        _write_cell(table.cell(i, 1), value, bold=color is not None, color=color)
    return table


def _add_field_table(doc, page: PageResult):
    table = doc.add_table(rows=1, cols=3)
    table.style = "Table Grid"
    table.alignment = WD_TABLE_ALIGNMENT.CENTER

    for idx, header in enumerate(("Field", "Value", "Confidence")):
        cell = table.rows[0].cells[idx]
        _write_cell(cell, header, bold=True)
        _set_cell_shading(cell, HEADER_FILL)

    for field_id, field_value in page.field_values.items():
        cells = table.add_row().cells
        _write_cell(cells[0], field_id, size=10)
        _write_cell(cells[1], field_value.display_value(), size=10)
        _write_cell(cells[2], format_percent(field_value.confidence), size=10,
                    color=confidence_color(field_value.confidence))
    return table


def _add_muted(doc, text: str, italic: bool = False):
    paragraph = doc.add_paragraph()
    run = paragraph.add_run(text)
    run.font.italic = italic
    run.font.color.rgb = _rgb(MUTED)
    return paragraph


def generate_report(result: ExtractionResult) -> bytes:
    """
    Generate the findings report for an extraction.

    Structure:
    - Title and form name
    - Patient information
    - Extraction summary
    - Field values per page
    - Items requiring review
    - Clinical annotations and review items per page
    - Disclaimer

    Returns:
        The .docx file as bytes
    """
    doc = Document()

    for section in doc.sections:
        section.left_margin = Inches(1)
        section.right_margin = Inches(1)
        header = section.header.paragraphs[0]
        header.alignment = WD_ALIGN_PARAGRAPH.RIGHT
        header_run = header.add_run(REPORT_TITLE)
        header_run.font.size = Pt(9)
        header_run.font.color.rgb = _rgb(MUTED)

    title = doc.add_heading(REPORT_TITLE, level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    subtitle = doc.add_paragraph()
    subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER
    subtitle_run = subtitle.add_run(result.form_name)
    subtitle_run.font.size = Pt(14)
    subtitle_run.font.color.rgb = _rgb("4B5563")

    # Patient information
    doc.add_heading("Patient Information", level=1)
    _add_label_table(doc, [
        ("Patient Name", result.patient_name or NOT_DETECTED, None),
        ("Date of Birth", result.patient_dob or NOT_DETECTED, None),
        ("Form Date", result.form_date or NOT_DETECTED, None),
        ("Extraction Date", format_timestamp(result.extraction_timestamp), None),
    ])

    # Summary
    doc.add_heading("Extraction Summary", level=1)
    review_count = result.total_items_needing_review
    _add_label_table(doc, [
        ("Overall Confidence",
         f"{format_percent(result.overall_confidence)} ({confidence_label(result.overall_confidence)})",
         confidence_color(result.overall_confidence)),
        ("Total Pages Analyzed", str(len(result.pages)), None),
        ("Total Fields Extracted", str(result.total_fields), None),
        ("Items Requiring Review", str(review_count), YELLOW if review_count > 0 else GREEN),
    ])

    # Every field value, page by page
    doc.add_heading("Complete Extraction Summary", level=1)
    _add_muted(doc, "All extracted field values organized by page:")
    for page in result.pages:
        doc.add_heading(f"Page {page.page_number}", level=2)
        if not page.field_values:
            _add_muted(doc, "No fields extracted from this page.", italic=True)
            continue
        _add_field_table(doc, page)
        doc.add_paragraph()

    if result.all_review_reasons:
        doc.add_heading("Items Requiring Review", level=1)
        _add_muted(doc, "The following items were flagged during extraction "
                        "and may require manual verification:")
        for reason in result.all_review_reasons:
            doc.add_paragraph(reason, style="List Number")

    doc.add_heading("Clinical Annotations & Review Items by Page", level=1)
    for page in result.pages:
        heading = doc.add_heading(f"Page {page.page_number}", level=2)
        confidence_run = heading.add_run(f" ({format_percent(page.overall_confidence)} confidence)")
        confidence_run.font.color.rgb = _rgb(confidence_color(page.overall_confidence))

        stats = _add_muted(doc, f"Fields: {len(page.field_values)} | "
                                f"Annotations: {len(page.annotation_groups)} | ")
        review_run = stats.add_run(f"Review items: {page.items_needing_review}")
        review_run.font.color.rgb = _rgb(YELLOW if page.items_needing_review > 0 else MUTED)

        if page.annotation_groups:
            label = doc.add_paragraph().add_run("Clinical Annotations:")
            label.font.bold = True
            for group in page.annotation_groups:
                item = doc.add_paragraph(group.interpretation, style="List Bullet")
                if group.note:
                    note = item.add_run(f" (Note: {group.note})")
                    note.font.italic = True
                    note.font.color.rgb = _rgb(MUTED)

        if page.review_reasons:
            label = doc.add_paragraph().add_run("Review Required:")
            label.font.bold = True
            label.font.color.rgb = _rgb(YELLOW)
            for reason in page.review_reasons:
                item = doc.add_paragraph(style="List Bullet")
                reason_run = item.add_run(reason)
                reason_run.font.color.rgb = _rgb("92400E")

    # Disclaimer
    doc.add_paragraph()
    disclaimer = doc.add_paragraph()
    disclaimer_run = disclaimer.add_run(DISCLAIMER)
    disclaimer_run.font.size = Pt(9)
    disclaimer_run.font.italic = True
    disclaimer_run.font.color.rgb = _rgb("9CA3AF")

    buf = io.BytesIO()
    doc.save(buf)
    logger.info("Generated findings report for %s (%d pages)", result.form_name, len(result.pages))
    return buf.getvalue()
