"""
Taskboard API: Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions for every error kind the API reports.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the right status code.
Who:   Raised by services, dependencies and middleware; caught by handlers.

Exception Hierarchy:
    TaskboardError (base)
    ├── ValidationError          → 400 Bad Request (bad input, invariant violation)
    ├── UnauthorizedError        → 401 Unauthorized (credentials, board password, role)
    ├── ForbiddenError           → 403 Forbidden (token failed verification)
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict (uniqueness violation)
    ├── RateLimitExceededError   → 429 Too Many Requests (built by RateLimitMiddleware)
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    └── MailDeliveryError        → 503 Service Unavailable

The `message` of a 4xx error is safe to show to the client; `context` is
logged and, for validation errors, returned as `details`.
"""

from typing import Any, Dict, Optional


class TaskboardError(Exception):
    """
    Base exception for all Taskboard application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TaskboardError):
    """
    Raised when client input fails a business rule.

    When:    Missing fields the schema cannot express, invalid date ranges,
             note status/date mismatches, bad upload type or size,
             expired password-reset links.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Status 'Done' requires both a start date and an end date",
            "details": {"field": "status"}
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


class UnauthorizedError(TaskboardError):
    """
    Raised when the caller cannot prove who they are or lacks a board role.

    When:    Missing bearer token, invalid login, wrong board password,
             non-admin attempting an admin-only board operation.
    HTTP:    401 Unauthorized
    """

    def __init__(
        self,
        message: str = "Invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(TaskboardError):
    """
    Raised when a presented token fails signature or expiry verification.

    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "Invalid token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TaskboardError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that into
    NotFoundError so the handler can answer 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(TaskboardError):
    """
    Raised when a create/update would break a uniqueness rule.

    When:    Duplicate username/email (case-insensitive), duplicate board
             title, duplicate note title within one board.
    HTTP:    409 Conflict
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class FileStorageError(TaskboardError):
    """
    Raised when storing an uploaded image fails (local disk or object store).

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TaskboardError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic. Detailed error
    info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MailDeliveryError(TaskboardError):
    """
    Raised when the outbound mail server rejects or cannot be reached.

    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "Email could not be sent. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(TaskboardError):
    """
    Raised when a client exceeds a per-IP request rate limit.

    Response includes:
        - retry_after: Seconds until the rate limit window frees a slot
        - Retry-After header for HTTP-compliant clients
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
