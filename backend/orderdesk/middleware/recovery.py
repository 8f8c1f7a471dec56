"""
Failure recovery, in two places:

- RecoveryMiddleware, the innermost stage: any exception escaping the router
  becomes a logged 500 INTERNAL_ERROR envelope, so the outer stages (logging,
  metrics, request id, headers) still see a response.
- unhandled_exception_handler, registered on the app for `Exception`: Starlette
  runs it outside every middleware, so a fault raised by a pipeline stage
  itself still yields the envelope, the security headers and the request id.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from orderdesk import error_codes
from orderdesk.middleware.request_id import REQUEST_ID_HEADER, request_id_var
from orderdesk.middleware.security import SECURITY_HEADERS
from orderdesk.responses import fail

logger = logging.getLogger(__name__)


class RecoveryMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "[%s] Unhandled error on %s %s: %s",
                request_id_var.get(""),
                request.method,
                request.url.path,
                exc,
                exc_info=True,
            )
            return fail(error_codes.INTERNAL_ERROR, error_codes.GENERIC_INTERNAL_MESSAGE)


async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    rid = getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER, "")
    logger.error(
        "[%s] Pipeline failure on %s %s: %s",
        rid,
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    headers = dict(SECURITY_HEADERS)
    if rid:
        headers[REQUEST_ID_HEADER] = rid
    return fail(error_codes.INTERNAL_ERROR, error_codes.GENERIC_INTERNAL_MESSAGE, headers=headers)
