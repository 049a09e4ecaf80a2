"""
Controller for annotation editing and the Save & Analyze workflow.
"""
import logging
from pathlib import Path
from typing import Optional

from PyQt5.QtCore import QObject, pyqtSignal
from PyQt5.QtWidgets import QMessageBox, QWidget

from digital_ink.core.errors import ValidationFailure
from digital_ink.core.export import AnalysisWorker, AnnotationExporter, ExportResult
from digital_ink.core.session import DocumentSession
from digital_ink.services import ExtractionClient, ExtractionResult, generate_report

logger = logging.getLogger(__name__)

NOTHING_TO_ANALYZE = "Draw on at least one page before analyzing."


class AnnotationController(QObject):
    """Handles annotation commands and the export/analysis round trip."""

    # Signals
    annotations_changed = pyqtSignal()
    analysis_started = pyqtSignal()
    analysis_progress = pyqtSignal(str)  # status message
    job_progress = pyqtSignal(object)  # JobStatus
    export_progress = pyqtSignal(int, int)  # current, total pages
    analysis_finished = pyqtSignal(bool, str)  # success, message
    results_ready = pyqtSignal(object)  # ExtractionResult

    def __init__(self, session: DocumentSession, client: Optional[ExtractionClient] = None,
                 parent: QWidget = None):
        super().__init__()
        self.session = session
        self.client = client or ExtractionClient()
        self.parent_widget = parent

        self.worker: Optional[AnalysisWorker] = None
        self.last_export: Optional[ExportResult] = None
        self.results: Optional[ExtractionResult] = None

        self.session.session_reset.connect(self._on_session_reset)

    # Editing

    def clear_page(self) -> None:
        self.session.clear_active_page()
        self.annotations_changed.emit()

    def undo(self) -> bool:
        """
        Undo the last stroke on the active page.

        Returns:
            True if a stroke was removed
        """
        if self.session.undo():
            self.annotations_changed.emit()
            return True
        return False

    def redo(self) -> bool:
        if self.session.redo():
            self.annotations_changed.emit()
            return True
        return False

    def delete_selected(self) -> bool:
        surface = self.session.active_surface()
        if surface is not None and surface.remove_selected():
            self.annotations_changed.emit()
            return True
        return False

    # Analysis

    @property
    def is_busy(self) -> bool:
        return self.worker is not None and self.worker.isRunning()

    def save_and_analyze(self, name: Optional[str] = None,
                         schema_path: Optional[str] = None) -> bool:
        """
        Export the annotated pages and submit them for extraction.

        Args:
            name: Optional job name
            schema_path: Optional extraction schema on the server

        Returns:
            True if an analysis was started
        """
        if self.is_busy:
            return False

        exporter = AnnotationExporter(self.session)
        exporter.progress_signal.connect(self.export_progress.emit)

        try:
            export = exporter.export()
        except ValidationFailure:
            QMessageBox.information(self.parent_widget, "Nothing to Analyze", NOTHING_TO_ANALYZE)
            return False

        if not export.submission_set:
            details = "\n".join(
                f"{self.session.store.document(e.document_id).name} page {e.page_number}: {e.message}"
                for e in export.errors
            )
            QMessageBox.warning(self.parent_widget, "Export Failed",
                                f"No annotated page could be exported.\n\n{details}")
            return False

        if export.errors:
            logger.warning("%d page(s) skipped during export", len(export.errors))

        self.last_export = export
        self.results = None

        self.worker = AnalysisWorker(self.client, export, self.session.generation,
                                     name=name, schema_path=schema_path)
        self.worker.progress.connect(self._on_worker_progress)
        self.worker.job_progress.connect(self._on_job_progress)
        self.worker.results_ready.connect(self._on_results_ready)
        self.worker.finished.connect(self._on_worker_finished)

        self.analysis_started.emit()
        self.worker.start()
        return True

    def _is_stale(self) -> bool:
        return self.worker is None or not self.session.is_current(self.worker.generation)

    def _on_worker_progress(self, message: str):
        if not self._is_stale():
            self.analysis_progress.emit(message)

    def _on_job_progress(self, status):
        if not self._is_stale():
            self.job_progress.emit(status)

    def _on_results_ready(self, result):
        if self._is_stale():
            logger.info("Discarding extraction results from a reset session")
            return
        self.results = result
        self.results_ready.emit(result)

    def _on_worker_finished(self, success: bool, message: str):
        stale = self._is_stale()

        # Clean up worker; finished is emitted last in run(), so wait() returns at once
        worker, self.worker = self.worker, None
        if worker is not None:
            worker.wait()
            worker.deleteLater()
        if stale:
            return

        self.analysis_finished.emit(success, message)
        if not success:
            QMessageBox.warning(self.parent_widget, "Analysis Failed", message)

    def _on_session_reset(self):
        self.last_export = None
        self.results = None

    # Report

    def save_report(self, output_path: str) -> bool:
        """
        Write the findings report of the last results to a .docx file.

        Returns:
            True if the report was written
        """
        if self.results is None:
            QMessageBox.information(self.parent_widget, "No Results",
                                    "Run an analysis before exporting a report.")
            return False

        try:
            Path(output_path).write_bytes(generate_report(self.results))
        except OSError as e:
            logger.error("Failed to write report %s: %s", output_path, e)
            QMessageBox.critical(self.parent_widget, "Error", f"Could not save report: {e}")
            return False

        logger.info("Saved findings report to %s", output_path)
        return True
