"""
OrderDesk Backend: Request Validation Middleware
================================================

What:  Cheap header checks before any body is read.

Rules (in order):
    1. Content-Length above the configured maximum  → 413 REQUEST_TOO_LARGE
       A chunked body (no Content-Length) is read here and measured instead;
       Starlette replays the buffered body to the handler.
    2. Body-carrying method (POST/PUT/PATCH) with a body:
         no Content-Type                            → 400 MISSING_CONTENT_TYPE
         Content-Type other than application/json   → 415 INVALID_CONTENT_TYPE

    GET, HEAD, DELETE and OPTIONS, and requests with an empty body, skip the
    Content-Type rule.
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from orderdesk import error_codes
from orderdesk.responses import fail

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}
JSON_MEDIA_TYPE = "application/json"


def _content_length(request: Request) -> Optional[int]:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class RequestValidationMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, max_body_size: int = 10 * 1024 * 1024):
        super().__init__(app)
        self.max_body_size = max_body_size

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        length = _content_length(request)
        if length is not None and length > self.max_body_size:
            logger.warning("Rejected %d byte body on %s", length, request.url.path)
            return fail(
                error_codes.REQUEST_TOO_LARGE,
                f"Request body exceeds {self.max_body_size} bytes",
            )

        chunked = length is None and "transfer-encoding" in request.headers
        if chunked:
            size = len(await request.body())
            if size > self.max_body_size:
                logger.warning("Rejected %d byte chunked body on %s", size, request.url.path)
                return fail(
                    error_codes.REQUEST_TOO_LARGE,
                    f"Request body exceeds {self.max_body_size} bytes",
                )

        has_body = bool(length) or chunked
        if request.method in BODY_METHODS and has_body:
            content_type = request.headers.get("content-type", "")
            if not content_type.strip():
                return fail(error_codes.MISSING_CONTENT_TYPE)
            media_type = content_type.split(";", 1)[0].strip().lower()
            if media_type != JSON_MEDIA_TYPE:
                return fail(error_codes.INVALID_CONTENT_TYPE)

        return await call_next(request)
