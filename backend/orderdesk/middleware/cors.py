"""
OrderDesk Backend: CORS Middleware
==================================

What:  Cross-origin headers and preflight short-circuit.

Policy:
    - Allowed origins come from CORS_ORIGINS (comma-separated).
    - An empty list means "every origin" in development and "no origin" in
      production.
    - An allowed Origin is echoed back with credentials enabled; without an
      Origin header and with every origin allowed, "*" is sent.
    - OPTIONS requests end here with 204 and never reach a handler.
"""

from typing import Dict, Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

ALLOW_METHODS = "POST, OPTIONS, GET, PUT, DELETE, PATCH"
ALLOW_HEADERS = (
    "Content-Type, Content-Length, Accept-Encoding, X-CSRF-Token, Authorization, "
    "accept, origin, Cache-Control, X-Requested-With, X-Request-ID"
)
EXPOSE_HEADERS = "X-Request-ID, Retry-After"
MAX_AGE = "86400"


class CORSMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        allowed_origins: Iterable[str] = (),
        production: bool = False,
    ):
        super().__init__(app)
        self.allowed_origins = {origin for origin in allowed_origins if origin}
        self.allow_all = "*" in self.allowed_origins or (
            not self.allowed_origins and not production
        )

    def _allow_origin_value(self, origin: Optional[str]) -> Optional[str]:
        if origin:
            if self.allow_all or origin in self.allowed_origins:
                return origin
            return None
        return "*" if self.allow_all else None

    def _headers(self, origin: Optional[str]) -> Dict[str, str]:
        headers = {
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Access-Control-Expose-Headers": EXPOSE_HEADERS,
            "Access-Control-Max-Age": MAX_AGE,
        }
        allowed = self._allow_origin_value(origin)
        if allowed:
            headers["Access-Control-Allow-Origin"] = allowed
            if allowed != "*":
                headers["Access-Control-Allow-Credentials"] = "true"
                headers["Vary"] = "Origin"
        return headers

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        headers = self._headers(request.headers.get("origin"))

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response
