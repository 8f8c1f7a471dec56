"""
OrderDesk Backend: Custom Exception Hierarchy
=============================================

What:  Application exceptions carrying a machine-readable error code, plus the
       repository-level sentinel errors.
How:   Each application exception carries a code, a client-facing message and
       an optional context dict. The HTTP status is looked up from the code in
       the error catalogue, and a single handler in main.py renders the
       response envelope.
Who:   Raised by services, capability adapters and middleware; caught by the
       global handlers.

Exception Hierarchy:
    OrderDeskError (base)
    ├── ValidationError          → 400 (VALIDATION_ERROR, INVALID, BAD_REQUEST)
    ├── ConflictError            → 400 (EMAIL_EXISTS, DUPLICATE_ENTRY)
    ├── NotFoundError            → 404 (NOT_FOUND, USER_NOT_FOUND)
    ├── UnauthorizedError        → 401
    ├── ForbiddenError           → 403
    ├── RateLimitExceededError   → 429
    ├── RequestTimeoutError      → 504
    ├── ServiceUnavailableError  → 503
    └── InternalError            → 500 (INTERNAL_ERROR, DATABASE_ERROR)

    RepositoryError (storage layer, never reaches a handler)
    ├── RecordNotFoundError      no row matched
    └── RecordConflictError      unique/integrity constraint rejected a write
"""

from typing import Any, Dict, Optional

from orderdesk import error_codes


class OrderDeskError(Exception):
    """
    Base exception for all OrderDesk application errors.

    Attributes:
        code:     Catalogue code, decides the HTTP status
        message:  Client-facing description
        context:  Debug info (logged, never returned to the client)
    """

    default_code = error_codes.INTERNAL_ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message or error_codes.default_message(self.code)
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return error_codes.http_status_for(self.code)


class ValidationError(OrderDeskError):
    """
    Raised when client input fails a business rule.

    Schema-level problems are caught earlier by pydantic and rendered as
    VALIDATION_ERROR too; this class covers rules only a service can check.
    """

    default_code = error_codes.VALIDATION_ERROR

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, code=code, context=ctx)
        self.field = field


class ConflictError(OrderDeskError):
    """A write would violate a uniqueness rule (e.g. an email already taken)."""

    default_code = error_codes.DUPLICATE_ENTRY


class NotFoundError(OrderDeskError):
    """
    Raised when a requested resource does not exist.

    Repositories signal absence with RecordNotFoundError; services convert
    that into this exception with the resource-specific code.
    """

    default_code = error_codes.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(
            message=message or f"{resource.capitalize()} not found",
            code=code,
            context=ctx,
        )
        self.resource = resource
        self.resource_id = resource_id


class UnauthorizedError(OrderDeskError):
    default_code = error_codes.UNAUTHORIZED


class ForbiddenError(OrderDeskError):
    default_code = error_codes.FORBIDDEN


class RateLimitExceededError(OrderDeskError):
    """Client exhausted its token bucket; `retry_after` is in whole seconds."""

    default_code = error_codes.RATE_LIMIT_EXCEEDED

    def __init__(self, retry_after: int = 1, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(
            message="Too many requests, please slow down",
            context=ctx,
        )
        self.retry_after = retry_after


class RequestTimeoutError(OrderDeskError):
    default_code = error_codes.REQUEST_TIMEOUT


class ServiceUnavailableError(OrderDeskError):
    default_code = error_codes.SERVICE_UNAVAILABLE


class InternalError(OrderDeskError):
    """
    Raised when an operation fails for reasons the client cannot fix.

    The message may carry detail for development; in production the handler
    replaces it with a generic phrase and only the log keeps the detail.
    """

    default_code = error_codes.INTERNAL_ERROR


# ══════════════════════════════════════════════════════════════════════════
# Repository Sentinels
# ══════════════════════════════════════════════════════════════════════════

class RepositoryError(Exception):
    """Any storage failure not covered by a more specific sentinel."""


class RecordNotFoundError(RepositoryError):
    """No row matched the lookup, update or delete."""


class RecordConflictError(RepositoryError):
    """The store rejected a write on a unique or integrity constraint."""
