"""
Exception types raised by the annotation core and its collaborators.
"""
from typing import Optional


class DigitalInkError(Exception):
    """Base class for all application errors."""


class LoadFailure(DigitalInkError):
    """A source document could not be opened or parsed."""

    def __init__(self, message: str, document_id: Optional[str] = None):
        super().__init__(message)
        self.document_id = document_id


class RenderFailure(DigitalInkError):
    """A page could not be rendered to a raster image."""

    def __init__(self, message: str, page_number: Optional[int] = None):
        super().__init__(message)
        self.page_number = page_number


class RestoreFailure(DigitalInkError):
    """An annotation snapshot could not be parsed back into strokes."""


class ValidationFailure(DigitalInkError):
    """An operation was requested with input that cannot produce a result."""


class TimeoutFailure(DigitalInkError):
    """A remote job did not finish within its polling limit."""


class RemoteFailure(DigitalInkError):
    """The extraction backend answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
