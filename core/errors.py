"""
Custom error types for Google Docs write operations.

Provides user-friendly error messages and structured error handling.
"""

import logging

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


# =============================================================================
# Base Exception Hierarchy
# =============================================================================


class WorkspaceMCPError(Exception):
    """Base exception for all Google Workspace errors."""

    pass


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(WorkspaceMCPError):
    """Raised when input validation fails."""

    pass


class TemplateValidationError(ValidationError):
    """Raised when a document template is structurally invalid.

    Raised before any request is built, so an invalid template never
    produces a partial batch.
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


# =============================================================================
# API Errors
# =============================================================================


class APIError(WorkspaceMCPError):
    """Raised for general Google API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        """Rate limits and server-side failures may succeed on retry."""
        return self.status_code is not None and (self.status_code == 429 or self.status_code >= 500)


class ResourceNotFoundError(APIError):
    """Raised when a requested resource doesn't exist (404)."""

    pass


class PermissionDeniedError(APIError):
    """Raised when the user lacks permission for an operation (403)."""

    pass


class RateLimitError(APIError):
    """Raised when API rate limits are exceeded (429)."""

    def __init__(self, message: str, status_code: int | None = 429):
        super().__init__(message, status_code=status_code)


class TablePopulationError(APIError):
    """Raised when the second-phase table population fails.

    Content submitted in the first phase is already committed when this is raised.
    """

    def __init__(self, message: str, status_code: int | None = None, document_id: str | None = None):
        super().__init__(message, status_code=status_code)
        self.document_id = document_id


def handle_http_error(error: Exception, document_id: str | None = None) -> APIError:
    """
    Convert Google API HTTP errors to a user-friendly APIError subclass.
    """
    if isinstance(error, APIError):
        return error

    status = None
    if isinstance(error, HttpError):
        status = error.resp.status

    error_str = str(error)

    if status == 404:
        return ResourceNotFoundError(f"Document not found: {document_id or 'unknown'}", status_code=404)
    elif status == 403:
        return PermissionDeniedError(
            "Permission denied. You may not have write access to this document.", status_code=403
        )
    elif status == 401:
        return APIError("Authentication expired. Please re-authenticate.", status_code=401)
    elif status == 429:
        return RateLimitError("Rate limit exceeded. Please wait and try again.")
    else:
        return APIError(f"Google API error: {error_str}", status_code=status)


def format_error(operation: str, error: WorkspaceMCPError) -> str:
    """Format an error for display to the user."""
    return f"{operation} failed: {error}"
