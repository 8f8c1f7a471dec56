"""HTTP metrics stage: one observation per request that reaches it."""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from orderdesk.metrics import observe_http


def route_label(request: Request) -> str:
    """Route template ("/users/{user_id}") when matched, raw path otherwise."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or request.url.path


def _size(value: str) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        observe_http(
            method=request.method,
            path=route_label(request),
            status=response.status_code,
            duration=time.perf_counter() - start,
            request_size=_size(request.headers.get("content-length", "0")),
            response_size=_size(response.headers.get("content-length", "0")),
        )
        return response
