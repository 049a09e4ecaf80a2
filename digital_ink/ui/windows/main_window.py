import logging
import os
import uuid

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QKeySequence
from PyQt5.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton,
    QLabel, QFileDialog, QScrollArea, QFrame, QMessageBox, QTabBar,
    QSpacerItem, QSizePolicy, QDockWidget, QTextBrowser, QProgressBar,
    QAction
)

from digital_ink.controllers import AnnotationController
from digital_ink.core.document import SourceDocument
from digital_ink.core.errors import LoadFailure, RenderFailure
from digital_ink.core.session import DocumentSession
from digital_ink.services import report_filename
from digital_ink.services.report_service import confidence_label, format_percent
from digital_ink.ui.toolbars import DrawingToolbar
from digital_ink.ui.widgets import PageCanvas

logger = logging.getLogger(__name__)


def sources_from_paths(paths):
    """One SourceDocument per PDF path, named after the file."""
    sources = []
    for path in paths:
        name = os.path.splitext(os.path.basename(path))[0] or path
        sources.append(SourceDocument(id=uuid.uuid4().hex, name=name, locator=path))
    return sources


class AnnotatorWindow(QMainWindow):
    def __init__(self, sources=None, session=None, client=None):
        super().__init__()

        self.setWindowTitle("Digital Ink")

        self.session = session or DocumentSession(parent=self)
        self.controller = AnnotationController(self.session, client=client, parent=self)

        self.setup_ui()
        self._connect_signals()

        if sources:
            self.open_documents(sources)

    def setup_ui(self):
        # TOP TOOLBAR
        self.top_frame = QFrame()
        self.top_frame.setObjectName("TopFrame")
        self.top_layout = QHBoxLayout(self.top_frame)
        self.top_layout.setContentsMargins(10, 8, 10, 8)
        self.top_layout.setSpacing(8)

        self.open_button = QPushButton("Open PDFs...", self.top_frame)
        self.open_button.clicked.connect(self.open_pdfs)
        self.top_layout.addWidget(self.open_button)

        self.top_layout.addSpacerItem(QSpacerItem(15, 20, QSizePolicy.Fixed, QSizePolicy.Minimum))

        # Page controls
        self.prev_button = QPushButton("< Prev", self.top_frame)
        self.prev_button.clicked.connect(self.session.previous_page)
        self.top_layout.addWidget(self.prev_button)

        self.page_label = QLabel("No documents loaded", self.top_frame)
        self.page_label.setAlignment(Qt.AlignCenter)
        self.top_layout.addWidget(self.page_label)

        self.next_button = QPushButton("Next >", self.top_frame)
        self.next_button.clicked.connect(self.session.next_page)
        self.top_layout.addWidget(self.next_button)

        self.top_layout.addSpacerItem(QSpacerItem(40, 20, QSizePolicy.Expanding, QSizePolicy.Minimum))

        self.analyze_button = QPushButton("Save && Analyze", self.top_frame)
        self.analyze_button.clicked.connect(self.save_and_analyze)
        self.top_layout.addWidget(self.analyze_button)

        self.report_button = QPushButton("Save Report...", self.top_frame)
        self.report_button.setEnabled(False)
        self.report_button.clicked.connect(self.save_report)
        self.top_layout.addWidget(self.report_button)

        # DOCUMENT TABS
        self.document_tabs = QTabBar()
        self.document_tabs.setExpanding(False)

        # DRAWING TOOLBAR
        self.drawing_toolbar = DrawingToolbar(self)

        # PAGE DISPLAY AREA
        self.canvas = PageCanvas()
        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(False)
        self.scroll_area.setAlignment(Qt.AlignHCenter)
        self.scroll_area.setWidget(self.canvas)

        # MAIN LAYOUT
        main_layout = QVBoxLayout()
        main_layout.setSpacing(0)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.addWidget(self.top_frame)
        main_layout.addWidget(self.document_tabs)
        main_layout.addWidget(self.drawing_toolbar)
        main_layout.addWidget(self.scroll_area)

        container = QWidget()
        container.setLayout(main_layout)
        self.setCentralWidget(container)

        # RESULTS DOCK
        self.results_view = QTextBrowser()
        self.results_dock = QDockWidget("Extraction Results", self)
        self.results_dock.setWidget(self.results_view)
        self.addDockWidget(Qt.RightDockWidgetArea, self.results_dock)
        self.results_dock.hide()

        # STATUS BAR
        self.progress_bar = QProgressBar()
        self.progress_bar.setMaximumWidth(200)
        self.progress_bar.hide()
        self.statusBar().addPermanentWidget(self.progress_bar)

        self._create_actions()
        self._update_navigation()

    def _create_actions(self):
        file_menu = self.menuBar().addMenu("&File")
        edit_menu = self.menuBar().addMenu("&Edit")

        for menu, text, shortcut, slot in (
            (file_menu, "Open PDFs...", QKeySequence.Open, self.open_pdfs),
            (file_menu, "Start Over", None, self.start_over),
            (file_menu, "Save Report...", QKeySequence.Save, self.save_report),
            (file_menu, "Quit", QKeySequence.Quit, self.close),
            (edit_menu, "Undo", QKeySequence.Undo, self.controller.undo),
            (edit_menu, "Redo", QKeySequence.Redo, self.controller.redo),
            (edit_menu, "Clear Page", None, self.controller.clear_page),
            (edit_menu, "Previous Page", Qt.Key_PageUp, self.session.previous_page),
            (edit_menu, "Next Page", Qt.Key_PageDown, self.session.next_page),
        ):
            action = QAction(text, self)
            if shortcut is not None:
                action.setShortcut(QKeySequence(shortcut))
            action.triggered.connect(slot)
            menu.addAction(action)

    def _connect_signals(self):
        self.session.page_changed.connect(self._on_page_changed)
        self.session.restore_failed.connect(self._on_restore_failed)
        self.session.session_reset.connect(self._on_session_reset)

        self.document_tabs.currentChanged.connect(self._on_tab_changed)

        self.drawing_toolbar.tool_changed.connect(self._on_tool_changed)
        self.drawing_toolbar.undo_requested.connect(self.controller.undo)
        self.drawing_toolbar.redo_requested.connect(self.controller.redo)
        self.drawing_toolbar.clear_requested.connect(self.controller.clear_page)

        self.controller.export_progress.connect(self._on_export_progress)
        self.controller.analysis_progress.connect(self.statusBar().showMessage)
        self.controller.job_progress.connect(self._on_job_progress)
        self.controller.results_ready.connect(self._show_results)
        self.controller.analysis_finished.connect(self._on_analysis_finished)

    # Documents

    def open_pdfs(self):
        paths, _ = QFileDialog.getOpenFileNames(self, "Open PDFs", "", "PDF Files (*.pdf)")
        if paths:
            self.open_documents(sources_from_paths(paths))

    def open_documents(self, sources) -> bool:
        """
        Replace the current session with a new set of documents.

        Returns:
            True if at least one document was loaded
        """
        if self.session.documents:
            self.session.reset()

        try:
            report = self.session.load_all(sources)
        except LoadFailure as e:
            QMessageBox.critical(self, "Error", f"Error loading PDFs: {e}")
            self._rebuild_tabs()
            return False

        if report.failed:
            names = {source.id: source.name for source in sources}
            details = "\n".join(f"{names.get(doc_id, doc_id)}: {message}"
                                for doc_id, message in report.failed)
            QMessageBox.warning(self, "Some Documents Failed",
                                f"These documents could not be loaded:\n\n{details}")

        self._rebuild_tabs()
        self.show_active_page()
        return True

    def start_over(self):
        self.session.reset()

    def _rebuild_tabs(self):
        self.document_tabs.blockSignals(True)
        while self.document_tabs.count():
            self.document_tabs.removeTab(0)
        for doc in self.session.documents:
            index = self.document_tabs.addTab(doc.name)
            self.document_tabs.setTabData(index, doc.id)
            if doc.id == self.session.active_document_id:
                self.document_tabs.setCurrentIndex(index)
        self.document_tabs.blockSignals(False)

    def _on_tab_changed(self, index):
        doc_id = self.document_tabs.tabData(index)
        if doc_id:
            self.session.set_active_document(doc_id)

    # Pages

    def show_active_page(self):
        """Render the active page into the canvas."""
        try:
            rendered = self.session.render_active_page()
        except RenderFailure as e:
            QMessageBox.critical(self, "Error", str(e))
            self.canvas.clear_page()
            rendered = None

        if rendered is not None:
            self.canvas.set_page(rendered.image, rendered.surface)
        self._update_navigation()

    def _on_page_changed(self, doc_id, page_number):
        self.show_active_page()

    def _update_navigation(self):
        doc = self.session.active_document
        if doc is None:
            self.page_label.setText("No documents loaded")
        else:
            self.page_label.setText(
                f"Page {doc.current_page} of {doc.page_count} "
                f"(Overall: {self.session.global_page_index()} of {self.session.total_page_count()})"
            )

        has_doc = doc is not None
        self.prev_button.setEnabled(has_doc and doc.current_page > 1)
        self.next_button.setEnabled(has_doc and doc.current_page < doc.page_count)
        self.analyze_button.setEnabled(has_doc and not self.controller.is_busy)

    def _on_restore_failed(self, doc_id, page_number, message):
        self.statusBar().showMessage(
            f"Annotations on page {page_number} could not be restored: {message}", 8000
        )

    def _on_tool_changed(self, tool, color, width):
        self.session.set_tool(tool=tool, color=color, width=width)
        self.canvas.refresh_tool()

    def _on_session_reset(self):
        self.canvas.clear_page()
        self.results_view.clear()
        self.results_dock.hide()
        self.report_button.setEnabled(False)
        self.progress_bar.hide()
        self._rebuild_tabs()
        self._update_navigation()

    # Analysis

    def save_and_analyze(self):
        doc = self.session.active_document
        name = self.session.documents[0].name if doc is not None else None

        if self.controller.save_and_analyze(name=name):
            self.analyze_button.setEnabled(False)
            self.progress_bar.setRange(0, 0)
            self.progress_bar.show()
        elif self.controller.is_busy:
            self.statusBar().showMessage("An analysis is still running.", 5000)

    def _on_export_progress(self, current, total):
        self.statusBar().showMessage(f"Exporting annotated pages: {current}/{total}")

    def _on_job_progress(self, status):
        if status.percentage is not None:
            self.progress_bar.setRange(0, 100)
            self.progress_bar.setValue(int(status.percentage))
        self.statusBar().showMessage(status.describe())

    def _on_analysis_finished(self, success, message):
        self.progress_bar.hide()
        self._update_navigation()
        self.statusBar().showMessage(message, 8000)

    def _show_results(self, result):
        lines = [
            f"<h3>{result.form_name}</h3>",
            f"<p>Patient: {result.patient_name or 'Not detected'}<br>"
            f"Date of Birth: {result.patient_dob or 'Not detected'}<br>"
            f"Overall confidence: {format_percent(result.overall_confidence)} "
            f"({confidence_label(result.overall_confidence)})<br>"
            f"Pages analyzed: {len(result.pages)}<br>"
            f"Fields extracted: {result.total_fields}<br>"
            f"Items requiring review: {result.total_items_needing_review}</p>",
        ]
        if result.all_review_reasons:
            items = "".join(f"<li>{reason}</li>" for reason in result.all_review_reasons)
            lines.append(f"<p><b>Review required:</b></p><ol>{items}</ol>")

        self.results_view.setHtml("".join(lines))
        self.results_dock.show()
        self.report_button.setEnabled(True)

    def save_report(self):
        results = self.controller.results
        if results is None:
            QMessageBox.information(self, "No Results", "Run an analysis before exporting a report.")
            return

        output_path, _ = QFileDialog.getSaveFileName(
            self, "Save Findings Report", report_filename(results), "Word Documents (*.docx)"
        )
        if output_path and self.controller.save_report(output_path):
            self.statusBar().showMessage(f"Report saved to {output_path}", 5000)

    def closeEvent(self, event):
        """Keep the window open while a background analysis is running."""
        if self.controller.is_busy:
            QMessageBox.information(self, "Analysis Running",
                                    "Please wait for the analysis to finish before quitting.")
            event.ignore()
            return
        self.session.reset()
        event.accept()
