"""
HTTP client for the form extraction backend.
"""
import json
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

from digital_ink.config import get_config
from digital_ink.core.errors import RemoteFailure, TimeoutFailure, ValidationFailure
from digital_ink.core.export.models import AnnotatedDocument, AnnotatedPage
from .models import (
    AnalyzeResponse,
    ExtractionResult,
    ExtractionSummary,
    HealthStatus,
    JobStatus,
    PageResult,
    Schema,
)

logger = logging.getLogger(__name__)


class ExtractionClient:
    """
    Thin wrapper over the extraction service REST API.

    Every non-success response raises RemoteFailure carrying the server's
    ``detail`` message when it sends one.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        config = get_config()
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self.poll_interval_ms = config.POLL_INTERVAL_MS
        self.poll_max_attempts = config.POLL_MAX_ATTEMPTS
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    # Transport

    def _request(self, method: str, path: str, failure_message: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise RemoteFailure(f"{failure_message}: {e}") from e

        if not response.ok:
            detail = self._error_detail(response) or failure_message
            logger.warning("%s %s failed with %d: %s", method, path, response.status_code, detail)
            raise RemoteFailure(detail, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise RemoteFailure(f"{failure_message}: invalid response body",
                                response.status_code) from e

    @staticmethod
    def _parse(parser: Callable[[Any], Any], payload: Any, failure_message: str) -> Any:
        """
        Build a response model, treating a malformed body as a remote failure.

        Raises:
            RemoteFailure: if the payload does not have the expected shape
        """
        try:
            return parser(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Unexpected response body (%s): %r", failure_message, e)
            raise RemoteFailure(f"{failure_message}: unexpected response from server") from e

    @staticmethod
    def _error_detail(response: requests.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            return None
        if isinstance(data, dict) and data.get("detail"):
            return str(data["detail"])
        return None

    # Analysis

    def analyze_images(self, pages: Sequence[AnnotatedPage], name: Optional[str] = None,
                       schema_path: Optional[str] = None) -> AnalyzeResponse:
        """
        Submit annotated page images as one extraction job.

        Args:
            pages: Submission set in order; metadata is aligned by index
            name: Optional job name
            schema_path: Optional extraction schema on the server

        Returns:
            AnalyzeResponse with the new job id
        """
        if not pages:
            raise ValidationFailure("No pages to analyze")

        files = [("files", (page.filename, page.png, "image/png")) for page in pages]
        data = {"page_metadata": json.dumps([page.to_metadata() for page in pages])}
        if name:
            data["name"] = name
        if schema_path:
            data["schema_path"] = schema_path

        payload = self._request("POST", "/api/analyze-images", "Analysis failed",
                                files=files, data=data)
        response = self._parse(AnalyzeResponse.from_dict, payload, "Analysis failed")
        logger.info("Submitted %d page(s) as job %s", len(pages), response.job_id)
        return response

    def save_annotated_pdfs(self, documents: Sequence[AnnotatedDocument],
                            job_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Upload complete annotated PDFs for storage.

        Returns:
            Server response, ``{"success": bool, "savedFiles": [...]}``
        """
        files = [("files", (doc.filename, doc.pdf, "application/pdf")) for doc in documents]
        data = {"job_id": job_id} if job_id else {}
        return self._request("POST", "/api/save-annotated-pdfs",
                             "Failed to save annotated PDFs", files=files, data=data)

    # Jobs

    def get_job_status(self, job_id: str) -> JobStatus:
        payload = self._request("GET", f"/api/jobs/{job_id}", "Failed to get job status")
        return self._parse(JobStatus.from_dict, payload, "Failed to get job status")

    def poll_job_status(self, job_id: str,
                        on_progress: Optional[Callable[[JobStatus], None]] = None,
                        interval_ms: Optional[int] = None,
                        max_attempts: Optional[int] = None,
                        sleep: Callable[[float], None] = time.sleep) -> JobStatus:
        """
        Poll a job until it completes or fails.

        Args:
            job_id: Job to watch
            on_progress: Called with every status received
            interval_ms: Delay between polls
            max_attempts: Polls before giving up

        Returns:
            The terminal JobStatus (completed or failed)

        Raises:
            TimeoutFailure: if the job is still running after max_attempts polls
        """
        interval_ms = self.poll_interval_ms if interval_ms is None else interval_ms
        max_attempts = self.poll_max_attempts if max_attempts is None else max_attempts

        for _ in range(max_attempts):
            status = self.get_job_status(job_id)
            if on_progress is not None:
                on_progress(status)

            if status.is_terminal:
                return status

            sleep(interval_ms / 1000.0)

        raise TimeoutFailure("Job timed out")

    # Results

    def get_results(self, job_id: str) -> ExtractionResult:
        payload = self._request("GET", f"/api/results/{job_id}", "Failed to get results")
        return self._parse(ExtractionResult.from_dict, payload, "Failed to get results")

    def get_results_summary(self, job_id: str) -> ExtractionSummary:
        payload = self._request("GET", f"/api/results/{job_id}/summary", "Failed to get summary")
        return self._parse(ExtractionSummary.from_dict, payload, "Failed to get summary")

    def get_page_results(self, job_id: str, page_number: int) -> PageResult:
        payload = self._request("GET", f"/api/results/{job_id}/page/{page_number}",
                                "Failed to get page results")
        return self._parse(PageResult.from_dict, payload, "Failed to get page results")

    # Catalog

    def list_schemas(self) -> List[Schema]:
        payload = self._request("GET", "/api/schemas", "Failed to list schemas")
        return self._parse(
            lambda data: [Schema.from_dict(s) for s in data.get("schemas", [])],
            payload, "Failed to list schemas")

    def list_extractions(self) -> List[Dict[str, Any]]:
        payload = self._request("GET", "/api/extractions", "Failed to list extractions")
        return self._parse(lambda data: list(data.get("extractions", [])),
                           payload, "Failed to list extractions")

    def check_health(self) -> HealthStatus:
        payload = self._request("GET", "/api/health", "API health check failed")
        return self._parse(HealthStatus.from_dict, payload, "API health check failed")
