"""
OrderDesk Backend: Request ID Middleware
========================================

What:  Gives every request a correlation id and echoes it back.
How:   Reuses an inbound X-Request-ID header or generates a UUID4, stores it
       in a ContextVar (for loggers and inner middleware) and in
       request.state (for handlers), and sets it on the response.
When:  Third stage, after security headers and CORS, so that rate-limit
       rejections, logs and metrics all carry the id.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Coroutine-local: concurrent requests on one event loop each see their own id.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
