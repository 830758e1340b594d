"""
BookBrief Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the different error scenarios.
Why:   Targeted error handling with the right HTTP status code and a message
       that is safe to show the client.
How:   Each exception carries a message and an optional context dict.
       Global handlers (registered in main.py) turn them into JSON responses.

Exception Hierarchy:
    BookBriefError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found (absent OR not owned by caller)
    ├── ConflictError            → 409 Conflict
    ├── ExtractionError          → 500 (surfaced only by summary regeneration)
    │   ├── EmptyDocumentError
    │   └── InvalidFormatError
    ├── NoDocumentError          → 500 (surfaced only by summary regeneration)
    ├── SummarizationError       → 500 (surfaced only by summary regeneration)
    ├── LLMServiceError          → never surfaced (absorbed by SummarizationService)
    ├── CircuitBreakerOpenError  → never surfaced (absorbed by SummarizationService)
    ├── FileStorageError         → 500
    └── DatabaseError            → 500

Ownership and 404:
    Every lookup is scoped by the caller's id, so "does not exist" and
    "exists but belongs to someone else" are the same NotFoundError.
"""

from typing import Any, Dict, Optional


class BookBriefError(Exception):
    """
    Base exception for all BookBrief application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; only some handlers return it)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BookBriefError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Only PDF files are allowed",
            "details": {"field": "pdf"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(BookBriefError):
    """Missing, malformed, expired or otherwise invalid credentials. HTTP 401."""

    def __init__(
        self,
        message: str = "Missing or invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(BookBriefError):
    """
    Raised when a requested resource does not exist for the caller.

    HTTP: 404 Not Found

    SQLAlchemy returns None for missing rows. Services convert that None
    into NotFoundError so the HTTP mapping stays out of the service code.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource.capitalize()} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)
        self.resource = resource


class ConflictError(BookBriefError):
    """The request collides with existing state (e.g. email already registered). HTTP 409."""

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExtractionError(BookBriefError):
    """
    Raised when text cannot be extracted from a stored PDF.

    During initial upload this is absorbed: the book is marked 'failed' and a
    fallback summary is stored. Only regeneration surfaces it to the client.
    """

    error_code = "extraction_failed"

    def __init__(
        self,
        message: str = "Failed to extract text from the PDF.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EmptyDocumentError(ExtractionError):
    """The PDF parsed fine but contains no extractable text (e.g. scanned images)."""

    error_code = "empty_document"

    def __init__(
        self,
        message: str = "PDF appears to be empty or contains no extractable text.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvalidFormatError(ExtractionError):
    """The parser rejected the file as malformed or not a PDF at all."""

    error_code = "invalid_format"

    def __init__(
        self,
        message: str = "Invalid PDF file. Please upload a valid PDF document.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NoDocumentError(BookBriefError):
    """Regeneration was requested for a book that never had a PDF attached."""

    error_code = "no_document"

    def __init__(
        self,
        book_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if book_id is not None:
            ctx["book_id"] = book_id
        super().__init__(
            message="This book has no PDF attached, so its summary cannot be regenerated.",
            context=ctx,
        )


class SummarizationError(BookBriefError):
    """
    The AI provider failed while regenerating a summary.

    Initial ingestion never raises this (it keeps the degraded summary);
    regeneration reports it because the caller explicitly asked for a new one.
    """

    error_code = "summarization_failed"

    def __init__(
        self,
        message: str = "The summarization service is temporarily unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class LLMServiceError(BookBriefError):
    """
    Raised by the Gemini provider after retries are exhausted.

    Never reaches a route handler: SummarizationService turns it into a
    degraded SummaryResult.
    """

    def __init__(
        self,
        message: str = "AI summarization service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(BookBriefError):
    """
    Raised when the provider circuit breaker is OPEN.

    CLOSED → (N consecutive failures) → OPEN → (recovery timeout) → HALF_OPEN
    HALF_OPEN → success → CLOSED, failure → OPEN
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"AI service is temporarily unavailable due to repeated failures. "
            f"Retrying in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class FileStorageError(BookBriefError):
    """Reading or writing the document store failed (disk full, permissions...). HTTP 500."""

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BookBriefError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500. The client always gets a generic message; SQL details are
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
