"""
OrderDesk Backend: Request Timeout Middleware
=============================================

What:  Bounds the time between entering the inner pipeline and the response
       starting. On expiry the client receives exactly one 504
       REQUEST_TIMEOUT envelope.
How:   Pure ASGI (not BaseHTTPMiddleware): the rest of the chain runs as its
       own asyncio task and this stage waits on it with a deadline.

           ┌──────────────┐  asyncio.wait(timeout)  ┌───────────────────┐
           │ this stage   │────────────────────────▶│ inner task        │
           │              │◀── done: pass through ──│ validation...     │
           │              │                         │ ...handler        │
           └──────┬───────┘                         └───────────────────┘
                  │ deadline hit, response not started
                  ▼
           send 504; the task keeps running, its writes are discarded

Abandoned handlers:
    The inner task is not cancelled (a handler may be mid-transaction). It is
    kept referenced until it finishes, everything it sends afterwards is
    dropped, and its outcome is logged.

    If the response already started when the deadline hits, it cannot be
    replaced, so the stage waits for it to finish.
"""

import asyncio
import logging
from typing import Set

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from orderdesk.exceptions import RequestTimeoutError
from orderdesk.responses import fail

logger = logging.getLogger(__name__)


class TimeoutMiddleware:
    def __init__(self, app: ASGIApp, timeout_seconds: float = 30.0):
        self.app = app
        self.timeout_seconds = timeout_seconds
        self._abandoned: Set[asyncio.Task] = set()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        state = {"started": False, "timed_out": False}

        async def guarded_send(message: Message) -> None:
            if state["timed_out"]:
                return
            if message["type"] == "http.response.start":
                state["started"] = True
            await send(message)

        task = asyncio.ensure_future(self.app(scope, receive, guarded_send))
        done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)
        if task in done:
            task.result()
            return

        if state["started"]:
            await task
            return

        state["timed_out"] = True
        self._abandon(task, scope)
        logger.warning(
            "Request timed out after %.1fs: %s %s",
            self.timeout_seconds,
            scope.get("method", ""),
            scope.get("path", ""),
        )
        exc = RequestTimeoutError("Request timeout")
        response = fail(exc.code, exc.message)
        await response(scope, receive, send)

    def _abandon(self, task: asyncio.Task, scope: Scope) -> None:
        self._abandoned.add(task)
        path = scope.get("path", "")

        def _finished(t: asyncio.Task) -> None:
            self._abandoned.discard(t)
            if t.cancelled():
                logger.info("Abandoned request %s was cancelled", path)
                return
            exc = t.exception()
            if exc is not None:
                logger.error(
                    "Abandoned request %s failed after timeout",
                    path,
                    exc_info=(type(exc), exc, exc.__traceback__),
                )
            else:
                logger.info("Abandoned request %s finished after timeout", path)

        task.add_done_callback(_finished)
