"""
OrderDesk Backend: Error Code Catalogue
=======================================

What:  Every machine-readable error code the API can emit, with its default
       message, HTTP status and category.
Who:   exceptions.py (status lookup), responses.py (default messages),
       middleware (pipeline rejections) and GET /error-codes.

Categories:
    GENERAL   request-level failures (validation, auth, limits, internals)
    USER      user-module business failures
    DATABASE  storage failures surfaced to clients
"""

from dataclasses import dataclass
from typing import Dict, List


# ── General ───────────────────────────────────────────────────────────────
INTERNAL_ERROR = "INTERNAL_ERROR"
BAD_REQUEST = "BAD_REQUEST"
VALIDATION_ERROR = "VALIDATION_ERROR"
INVALID = "INVALID"
NOT_FOUND = "NOT_FOUND"
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
REQUEST_TIMEOUT = "REQUEST_TIMEOUT"
REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
MISSING_CONTENT_TYPE = "MISSING_CONTENT_TYPE"
INVALID_CONTENT_TYPE = "INVALID_CONTENT_TYPE"
SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

# ── User ──────────────────────────────────────────────────────────────────
USER_NOT_FOUND = "USER_NOT_FOUND"
EMAIL_EXISTS = "EMAIL_EXISTS"
USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
USER_INACTIVE = "USER_INACTIVE"

# ── Database ──────────────────────────────────────────────────────────────
DATABASE_ERROR = "DATABASE_ERROR"
RECORD_NOT_FOUND = "RECORD_NOT_FOUND"
DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
CONSTRAINT_VIOLATION = "CONSTRAINT_VIOLATION"

GENERIC_INTERNAL_MESSAGE = "An internal error occurred"


@dataclass(frozen=True)
class ErrorCodeInfo:
    code: str
    message: str
    http_status: int
    category: str

    def as_dict(self) -> Dict[str, object]:
        return {"code": self.code, "message": self.message, "httpStatus": self.http_status}


def _entry(code: str, message: str, http_status: int, category: str) -> ErrorCodeInfo:
    return ErrorCodeInfo(code=code, message=message, http_status=http_status, category=category)


ERROR_CATALOG: Dict[str, ErrorCodeInfo] = {
    info.code: info
    for info in (
        _entry(INTERNAL_ERROR, "Internal server error", 500, "GENERAL"),
        _entry(BAD_REQUEST, "Bad request", 400, "GENERAL"),
        _entry(VALIDATION_ERROR, "Validation failed", 400, "GENERAL"),
        _entry(INVALID, "Invalid request", 400, "GENERAL"),
        _entry(NOT_FOUND, "Resource not found", 404, "GENERAL"),
        _entry(UNAUTHORIZED, "Unauthorized", 401, "GENERAL"),
        _entry(FORBIDDEN, "Forbidden", 403, "GENERAL"),
        _entry(METHOD_NOT_ALLOWED, "Method not allowed", 405, "GENERAL"),
        _entry(RATE_LIMIT_EXCEEDED, "Rate limit exceeded", 429, "GENERAL"),
        _entry(REQUEST_TIMEOUT, "Request timeout", 504, "GENERAL"),
        _entry(REQUEST_TOO_LARGE, "Request body too large", 413, "GENERAL"),
        _entry(MISSING_CONTENT_TYPE, "Content-Type header is required", 400, "GENERAL"),
        _entry(INVALID_CONTENT_TYPE, "Content-Type must be application/json", 415, "GENERAL"),
        _entry(SERVICE_UNAVAILABLE, "Service unavailable", 503, "GENERAL"),
        _entry(USER_NOT_FOUND, "User not found", 404, "USER"),
        _entry(EMAIL_EXISTS, "Email already exists", 400, "USER"),
        _entry(USER_ALREADY_EXISTS, "User already exists", 400, "USER"),
        _entry(INVALID_CREDENTIALS, "Invalid credentials", 401, "USER"),
        _entry(USER_INACTIVE, "User account is inactive", 403, "USER"),
        _entry(DATABASE_ERROR, "Database error", 500, "DATABASE"),
        _entry(RECORD_NOT_FOUND, "Record not found", 404, "DATABASE"),
        _entry(DUPLICATE_ENTRY, "Duplicate entry", 400, "DATABASE"),
        _entry(CONSTRAINT_VIOLATION, "Constraint violation", 400, "DATABASE"),
    )
}


def http_status_for(code: str) -> int:
    """HTTP status for `code`; unknown codes are treated as internal errors."""
    info = ERROR_CATALOG.get(code)
    return info.http_status if info else 500


def default_message(code: str) -> str:
    info = ERROR_CATALOG.get(code)
    return info.message if info else GENERIC_INTERNAL_MESSAGE


def catalog_by_category() -> Dict[str, List[Dict[str, object]]]:
    """Catalogue grouped by category, codes sorted, for GET /error-codes."""
    grouped: Dict[str, List[Dict[str, object]]] = {}
    for code in sorted(ERROR_CATALOG):
        info = ERROR_CATALOG[code]
        grouped.setdefault(info.category, []).append(info.as_dict())
    return grouped
