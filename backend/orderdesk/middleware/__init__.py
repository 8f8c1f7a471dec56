"""
OrderDesk Backend: Middleware Pipeline
======================================

What:  The nine request stages and the function that installs them.

Execution order (outermost first):

    Request
      │
      ▼
    1. SecurityHeaders   headers on every response, never aborts
    2. CORS              origin policy; OPTIONS → 204 here
    3. RequestID         X-Request-ID in / out, ContextVar for logs
    4. RateLimit         per-client token bucket; 429 before any work
    5. Timeout           one 504 on deadline, handler abandoned
    6. Validation        413 / 400 / 415 on size and Content-Type
    7. Metrics           Prometheus HTTP series
    8. Logging           one access line per request
    9. Recovery          unhandled exception → 500 envelope
      │
      ▼
    Router → handler

Starlette runs the most recently added middleware first, so
`register_middleware()` adds them innermost first.
"""

from fastapi import FastAPI

from orderdesk.config import Settings
from orderdesk.middleware.cors import CORSMiddleware
from orderdesk.middleware.logging import RequestLoggingMiddleware
from orderdesk.middleware.metrics import MetricsMiddleware
from orderdesk.middleware.rate_limit import RateLimiter, RateLimitMiddleware
from orderdesk.middleware.recovery import RecoveryMiddleware
from orderdesk.middleware.request_id import RequestIDMiddleware
from orderdesk.middleware.security import SecurityHeadersMiddleware
from orderdesk.middleware.timeout import TimeoutMiddleware
from orderdesk.middleware.validation import RequestValidationMiddleware


def register_middleware(app: FastAPI, config: Settings, limiter: RateLimiter) -> None:
    app.add_middleware(RecoveryMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestValidationMiddleware, max_body_size=config.max_request_size_bytes)
    app.add_middleware(TimeoutMiddleware, timeout_seconds=config.request_timeout_seconds)
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allowed_origins=config.cors_origins_list,
        production=config.is_production,
    )
    app.add_middleware(SecurityHeadersMiddleware)
