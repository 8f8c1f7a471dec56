"""Error catalogue consistency and exception → HTTP status mapping."""

import pytest

from orderdesk import error_codes
from orderdesk.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    OrderDeskError,
    RateLimitExceededError,
    RequestTimeoutError,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
)


class TestCatalog:
    def test_keys_match_entry_codes(self):
        for code, info in error_codes.ERROR_CATALOG.items():
            assert info.code == code
            assert info.message
            assert 400 <= info.http_status <= 599

    def test_unknown_code_is_internal(self):
        assert error_codes.http_status_for("NO_SUCH_CODE") == 500
        assert error_codes.default_message("NO_SUCH_CODE") == error_codes.GENERIC_INTERNAL_MESSAGE

    def test_grouped_by_category_and_sorted(self):
        grouped = error_codes.catalog_by_category()
        assert set(grouped) == {"GENERAL", "USER", "DATABASE"}
        for entries in grouped.values():
            codes = [entry["code"] for entry in entries]
            assert codes == sorted(codes)
        user_codes = {entry["code"] for entry in grouped["USER"]}
        assert {"USER_NOT_FOUND", "EMAIL_EXISTS"} <= user_codes

    def test_entry_dict_uses_camel_case_status(self):
        info = error_codes.ERROR_CATALOG[error_codes.REQUEST_TOO_LARGE]
        assert info.as_dict() == {
            "code": "REQUEST_TOO_LARGE",
            "message": "Request body too large",
            "httpStatus": 413,
        }


class TestExceptionStatus:
    @pytest.mark.parametrize(
        "exc, code, status",
        [
            (NotFoundError(), "NOT_FOUND", 404),
            (NotFoundError(code=error_codes.USER_NOT_FOUND), "USER_NOT_FOUND", 404),
            (ConflictError(), "DUPLICATE_ENTRY", 400),
            (ConflictError(code=error_codes.EMAIL_EXISTS), "EMAIL_EXISTS", 400),
            (ValidationError(), "VALIDATION_ERROR", 400),
            (ValidationError(code=error_codes.INVALID), "INVALID", 400),
            (UnauthorizedError(), "UNAUTHORIZED", 401),
            (ForbiddenError(), "FORBIDDEN", 403),
            (RateLimitExceededError(retry_after=3), "RATE_LIMIT_EXCEEDED", 429),
            (RequestTimeoutError(), "REQUEST_TIMEOUT", 504),
            (ServiceUnavailableError(), "SERVICE_UNAVAILABLE", 503),
            (InternalError(), "INTERNAL_ERROR", 500),
            (InternalError(code=error_codes.DATABASE_ERROR), "DATABASE_ERROR", 500),
        ],
    )
    def test_status_follows_code(self, exc, code, status):
        assert exc.code == code
        assert exc.status_code == status

    def test_not_found_message_names_resource(self):
        exc = NotFoundError(resource="user", resource_id="u1")
        assert exc.message == "User not found"
        assert exc.context == {"resource": "user", "resource_id": "u1"}

    def test_default_message_comes_from_catalog(self):
        assert OrderDeskError(code=error_codes.EMAIL_EXISTS).message == "Email already exists"

    def test_validation_field_lands_in_context(self):
        exc = ValidationError("User is inactive", field="userId", code=error_codes.INVALID)
        assert exc.field == "userId"
        assert exc.context["field"] == "userId"

    def test_retry_after_is_kept(self):
        exc = RateLimitExceededError(retry_after=7)
        assert exc.retry_after == 7
        assert exc.context["retry_after"] == 7
