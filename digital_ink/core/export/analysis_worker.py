# core/export/analysis_worker.py

import logging

from PyQt5.QtCore import QThread, pyqtSignal

from digital_ink.core.errors import DigitalInkError, RemoteFailure
from .models import ExportResult

logger = logging.getLogger(__name__)


class AnalysisWorker(QThread):
    """Worker thread that submits an export for extraction without freezing the UI."""

    # Signals
    finished = pyqtSignal(bool, str)  # success, message
    progress = pyqtSignal(str)  # status message
    job_progress = pyqtSignal(object)  # JobStatus
    results_ready = pyqtSignal(object)  # ExtractionResult

    def __init__(self, client, export: ExportResult, generation: int,
                 name=None, schema_path=None):
        super().__init__()
        self.client = client
        self.export = export
        self.generation = generation
        self.name = name
        self.schema_path = schema_path
        self.job_id = None
        self.result = None

    def run(self):
        """Execute the analysis round trip in a background thread."""
        try:
            pages = self.export.submission_pages()
            self.progress.emit(f"Uploading {len(pages)} annotated page(s)...")
            response = self.client.analyze_images(pages, name=self.name,
                                                  schema_path=self.schema_path)
            self.job_id = response.job_id

            documents = self.export.annotated_documents()
            if documents:
                self.progress.emit("Saving annotated documents...")
                try:
                    self.client.save_annotated_pdfs(documents, job_id=self.job_id)
                except RemoteFailure as e:
                    # Storage is best effort; extraction continues without it
                    logger.warning("Saving annotated PDFs for job %s failed: %s", self.job_id, e)

            self.progress.emit("Analyzing...")
            status = self.client.poll_job_status(self.job_id, on_progress=self._on_job_progress)
            if not status.succeeded:
                self.finished.emit(False, status.message or "Extraction failed")
                return

            self.progress.emit("Fetching results...")
            self.result = self.client.get_results(self.job_id)
            self.results_ready.emit(self.result)
            self.finished.emit(True, "Analysis complete!")

        except DigitalInkError as e:
            logger.error("Analysis failed: %s", e)
            self.finished.emit(False, str(e))
        except Exception as e:
            logger.exception("Unexpected error during analysis")
            self.finished.emit(False, f"Error during analysis: {str(e)}")

    def _on_job_progress(self, status):
        """Relay job status updates."""
        self.job_progress.emit(status)
