"""
MEDS Backend — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for the error scenarios of the records API.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by services, access rules and middleware.

Exception Hierarchy:
    MedsError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    │   └── InsufficientStockError
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── DatabaseError            → 500 Internal Server Error
    └── ConfigurationError       → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class MedsError(Exception):
    """
    Base exception for all MEDS application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info; returned as `details` only by the
                  client-error handlers (4xx)
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MedsError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (wrong types, out-of-range numbers) are caught by
    Pydantic first; this covers what only the service can know, such as a
    relation pointing at a record that does not exist.
    """

    status_code = 400
    error_code = "validation_error"

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


class AuthenticationError(MedsError):
    """The request needs a signed-in user and has none (or bad credentials)."""

    status_code = 401
    error_code = "authentication_required"

    def __init__(
        self,
        message: str = "Authentication is required for this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(MedsError):
    """The signed-in user's role does not satisfy the collection rule."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(MedsError):
    """
    Raised when a requested collection or record does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so routes never deal with None checks.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(MedsError):
    """The request is valid but clashes with the current state of a record."""

    status_code = 409
    error_code = "conflict"

    def __init__(
        self,
        message: str = "The record was changed by someone else",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InsufficientStockError(ConflictError):
    """A disbursement would take an inventory item below zero."""

    error_code = "insufficient_stock"

    def __init__(
        self,
        drug_name: str,
        available: float,
        needed: float,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Not enough stock for {drug_name}. Available: {available:g}, Needed: {needed:g}"
        ctx = context or {}
        ctx.update({"drug_name": drug_name, "available": available, "needed": needed})
        super().__init__(message=message, context=ctx)


class RateLimitExceededError(MedsError):
    """
    Raised when a client exceeds the per-IP login rate limit.

    Response includes a Retry-After header.
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many login attempts. Please wait {retry_after} seconds before trying again."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class DatabaseError(MedsError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; details are
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(MedsError):
    """An operation is not possible with the current settings (e.g. backup on PostgreSQL)."""

    error_code = "configuration_error"

    def __init__(
        self,
        message: str = "The server is not configured for this operation",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
