"""
OrderDesk Backend: Prometheus Metrics
=====================================

What:  Module-level prometheus_client collectors for HTTP traffic and
       business operations, plus the `instrumented` decorator for services.
Who:   MetricsMiddleware (HTTP series), UserService / OrderService (business
       series), GET /metrics (exposition).

HTTP series (labels: method, path, status):
    http_requests_total                counter
    http_request_duration_seconds      histogram
    http_request_size_bytes            histogram (method, path)
    http_response_size_bytes           histogram

Business series (labels: operation, module[, error_code]):
    business_operations_total          counter, every call
    business_operation_duration_seconds histogram
    business_errors_total              counter, failed calls by error code
"""

import functools
import time
from typing import Any, Awaitable, Callable, TypeVar

from prometheus_client import REGISTRY, CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from orderdesk import error_codes
from orderdesk.exceptions import OrderDeskError

SIZE_BUCKETS = (100, 500, 1000, 5000, 10000, 50000, 100000)

# ── HTTP ──────────────────────────────────────────────────────────────────
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status"],
)
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path", "status"],
)
HTTP_REQUEST_SIZE = Histogram(
    "http_request_size_bytes",
    "HTTP request body size in bytes",
    ["method", "path"],
    buckets=SIZE_BUCKETS,
)
HTTP_RESPONSE_SIZE = Histogram(
    "http_response_size_bytes",
    "HTTP response body size in bytes",
    ["method", "path", "status"],
    buckets=SIZE_BUCKETS,
)

# ── Business ──────────────────────────────────────────────────────────────
BUSINESS_OPERATIONS_TOTAL = Counter(
    "business_operations_total",
    "Total number of business operations",
    ["operation", "module"],
)
BUSINESS_OPERATION_DURATION = Histogram(
    "business_operation_duration_seconds",
    "Business operation latency in seconds",
    ["operation", "module"],
)
BUSINESS_ERRORS_TOTAL = Counter(
    "business_errors_total",
    "Total number of failed business operations",
    ["operation", "module", "error_code"],
)


def observe_http(
    method: str, path: str, status: int, duration: float, request_size: int, response_size: int
) -> None:
    status_label = str(status)
    HTTP_REQUESTS_TOTAL.labels(method, path, status_label).inc()
    HTTP_REQUEST_DURATION.labels(method, path, status_label).observe(duration)
    HTTP_REQUEST_SIZE.labels(method, path).observe(request_size)
    HTTP_RESPONSE_SIZE.labels(method, path, status_label).observe(response_size)


F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def instrumented(module: str, operation: str) -> Callable[[F], F]:
    """
    Count, time and error-classify an async service method.

    Application errors are labelled with their catalogue code; anything else
    is labelled INTERNAL_ERROR. The exception itself always propagates.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            BUSINESS_OPERATIONS_TOTAL.labels(operation, module).inc()
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            except OrderDeskError as e:
                BUSINESS_ERRORS_TOTAL.labels(operation, module, e.code).inc()
                raise
            except Exception:
                BUSINESS_ERRORS_TOTAL.labels(operation, module, error_codes.INTERNAL_ERROR).inc()
                raise
            finally:
                BUSINESS_OPERATION_DURATION.labels(operation, module).observe(
                    time.perf_counter() - start
                )

        return wrapper  # type: ignore[return-value]

    return decorator


def render_latest() -> bytes:
    return generate_latest(REGISTRY)


__all__ = [
    "CONTENT_TYPE_LATEST",
    "instrumented",
    "observe_http",
    "render_latest",
]
