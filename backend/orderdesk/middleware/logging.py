"""
OrderDesk Backend: Request Logging Middleware
=============================================

What:  One access-log line per request on the `orderdesk.access` logger.
How:   Times the inner pipeline with perf_counter and logs method, path,
       query, status, latency, client ip, user agent and request id.

Levels:
    5xx → ERROR, 4xx → WARNING, otherwise INFO.
    Requests slower than SLOW_REQUEST_SECONDS are logged at WARNING at least
    and flagged `slow=True`.

Privacy:
    Bodies and Authorization headers are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from orderdesk.middleware.request_id import request_id_var

logger = logging.getLogger("orderdesk.access")

SLOW_REQUEST_SECONDS = 1.0


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start_time

        status = response.status_code
        slow = duration >= SLOW_REQUEST_SECONDS
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400 or slow:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        logger.log(
            log_level,
            "%s %s %d %.1fms%s from %s",
            request.method,
            request.url.path,
            status,
            duration * 1000,
            " SLOW" if slow else "",
            client_ip,
            extra={
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query,
                "status": status,
                "duration_ms": round(duration * 1000, 2),
                "slow": slow,
                "client_ip": client_ip,
                "user_agent": request.headers.get("user-agent", ""),
                "request_id": rid,
            },
        )
        return response
