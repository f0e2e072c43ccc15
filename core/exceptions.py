"""
Custom exceptions for the sync pipeline with structured error context.

Every fatal condition in a run is one of these. Each exception carries a
context dict (endpoint, page, table, chunk, status, response snippet) so
that a single log line is enough to diagnose a failed run.

Exception Hierarchy:
    ETLException (base)
    ├── ConfigurationError
    ├── ExtractionError
    │   ├── APIExtractionError
    │   ├── ResponseFormatError
    │   └── PaginationLimitError
    ├── TransformationError
    │   └── DataShapeError
    └── LoadError
        └── UpsertError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


# Response bodies attached to error context are cut to this many characters
RESPONSE_SNIPPET_LENGTH = 500


class ETLException(Exception):
    """
    Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (endpoint, page, table, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


def response_snippet(text: Optional[str]) -> str:
    """Truncate a response body for inclusion in error context"""
    return (text or "")[:RESPONSE_SNIPPET_LENGTH]


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(ETLException):
    """
    Raised before any network call when a required connection
    parameter is absent or blank.

    Context should include:
        - missing: Names of the missing environment variables
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for data extraction failures."""
    pass


class APIExtractionError(ExtractionError):
    """
    Exception raised when a page or id batch request fails.

    Context should include:
        - api_url: The API endpoint that failed
        - page / batch: Page number or batch index
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated)
    """
    pass


class ResponseFormatError(ExtractionError):
    """
    Exception raised when a response body is not valid JSON.

    Context should include:
        - api_url: The API endpoint
        - page: Page number
        - response_body: Response body (truncated)
    """
    pass


class PaginationLimitError(ExtractionError):
    """
    Exception raised when a source keeps returning non-empty pages
    past the configured page cap.

    Context should include:
        - api_url: The API endpoint
        - max_pages: The configured cap
        - records_fetched: Records accumulated before giving up
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class DataShapeError(TransformationError):
    """
    A source record that cannot be mapped at all.

    Missing or malformed fields are defaulted by the formatters, so this
    is only raised for payloads that are not JSON objects.
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class UpsertError(LoadError):
    """
    Exception raised when a chunk upsert fails.

    Earlier chunks of the same table stay committed in the target.

    Context should include:
        - table_name: Target table
        - conflict_key: Upsert conflict column
        - chunk_index: Index of the failed chunk
        - records_committed: Records written by earlier chunks
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated)
    """
    pass
