"""
OrderDesk Backend: Rate Limiting Middleware
===========================================

What:  Per-client token bucket limiter and the middleware that applies it.
How:   One bucket per client address. A bucket holds at most `burst` tokens
       and refills continuously at `rate` tokens per second; each request
       takes one token or is rejected with 429 before any handler work.

Algorithm: Token Bucket
    tokens = min(burst, tokens + elapsed * rate)
    allow  = tokens >= 1   (then tokens -= 1)

    A fresh client can send `burst` requests back to back; after that it is
    admitted at `rate` requests per second.

Concurrency:
    - Looking up an existing bucket is a plain dict read, no lock.
    - Creating a bucket takes the table lock and re-checks (double-checked
      insert), so two racing first requests share one bucket.
    - Each bucket has its own lock around refill-and-take.
    - `sweep()` runs from a background task (see run_sweeper) and drops
      buckets not used since the previous sweep.

Scope:
    In-memory and per process. Several workers each enforce their own limit.
"""

import asyncio
import logging
import math
import threading
import time
from typing import Callable, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from orderdesk.exceptions import RateLimitExceededError
from orderdesk.responses import fail

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TokenBucket:
    def __init__(self, rate: float, burst: int, clock: Clock = time.monotonic):
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens = float(burst)
        self._updated = clock()
        self.last_used = self._updated

    def _refill(self, now: float) -> None:
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
        self._updated = now

    def allow(self) -> bool:
        with self._lock:
            now = self._clock()
            self._refill(now)
            self.last_used = now
            if self._tokens >= 1.0:
                self._tokens -= 1.0
                return True
            return False

    def retry_after(self) -> int:
        """Whole seconds until the next token, at least 1."""
        with self._lock:
            missing = max(0.0, 1.0 - self._tokens)
        return max(1, math.ceil(missing / self.rate))


class RateLimiter:
    """Table of token buckets keyed by client address."""

    def __init__(self, rate: float, burst: int, clock: Clock = time.monotonic):
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def bucket(self, key: str) -> TokenBucket:
        bucket = self._buckets.get(key)
        if bucket is not None:
            return bucket
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(self.rate, self.burst, self._clock)
                self._buckets[key] = bucket
            return bucket

    def allow(self, key: str) -> bool:
        return self.bucket(key).allow()

    def __len__(self) -> int:
        return len(self._buckets)

    def sweep(self) -> int:
        """Drop buckets unused since the previous sweep; returns how many."""
        with self._lock:
            cutoff = self._last_sweep
            stale = [key for key, bucket in self._buckets.items() if bucket.last_used < cutoff]
            for key in stale:
                del self._buckets[key]
            self._last_sweep = self._clock()
        if stale:
            logger.debug("Rate limiter dropped %d idle client buckets", len(stale))
        return len(stale)

    async def run_sweeper(self, interval: float) -> None:
        """Sweep every `interval` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.sweep()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests from clients whose bucket is empty.

    Excluded paths: health probes, so orchestrators are never throttled.

    Response on rate limit:
        HTTP 429, RATE_LIMIT_EXCEEDED envelope, Retry-After header
    """

    EXCLUDED_PATHS = {"/health", "/health/live", "/health/ready"}

    def __init__(self, app: ASGIApp, limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.limiter = limiter or RateLimiter(rate=100.0, burst=200)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket = self.limiter.bucket(client_ip)
        if not bucket.allow():
            exc = RateLimitExceededError(retry_after=bucket.retry_after())
            logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            return fail(exc.code, exc.message, headers={"Retry-After": str(exc.retry_after)})

        return await call_next(request)
