"""
OrderDesk Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn orderdesk.main:app`), the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware (outermost → innermost):                     │
    │  Security → CORS → RequestID → RateLimit → Timeout →     │
    │  Validation → Metrics → Logging → Recovery               │
    │                                                          │
    │  Routes:                                                 │
    │  /users  /orders  /health  /metrics  /error-codes        │
    │                                                          │
    │  Module registry (app.state.registry):                   │
    │  user module ──UserCapability──▶ order module            │
    │                                                          │
    │  Exception handlers → JSON envelope                      │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, rate-limiter sweeper task
    Shutdown: stop the sweeper, dispose the engine
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from orderdesk import __version__, error_codes
from orderdesk.config import Settings, settings
from orderdesk.database import async_session_factory, engine
from orderdesk.exceptions import OrderDeskError
from orderdesk.logging_setup import setup_logging
from orderdesk.middleware import register_middleware
from orderdesk.middleware.rate_limit import RateLimiter
from orderdesk.middleware.recovery import unhandled_exception_handler
from orderdesk.middleware.request_id import request_id_var
from orderdesk.registry import ModuleRegistry
from orderdesk.responses import fail
from orderdesk.routes import error_codes as error_codes_routes
from orderdesk.routes import health, metrics, orders, users
from orderdesk.services.order_adapter import OrderServiceAdapter
from orderdesk.services.user_adapter import UserServiceAdapter

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config)
    logger.info("OrderDesk %s starting (env=%s)", __version__, config.env)

    sweeper = asyncio.create_task(
        app.state.rate_limiter.run_sweeper(config.rate_limit_cleanup_interval)
    )
    logger.info("Server ready at http://%s:%d", config.server_host, config.server_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("OrderDesk shutting down...")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await app.state.engine.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Validation failed"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to envelope responses.

    Handler hierarchy:
        OrderDeskError          → status from the error catalogue
        RequestValidationError  → 400 VALIDATION_ERROR
        HTTPException           → unknown route / method, same envelope
        anything else           → RecoveryMiddleware (500); a fault raised by a
                                  pipeline stage reaches
                                  unhandled_exception_handler instead

    In production, 5xx messages are replaced with a generic phrase; the
    detail stays in the log.
    """

    @app.exception_handler(OrderDeskError)
    async def handle_app_error(request: Request, exc: OrderDeskError):
        rid = request_id_var.get("")
        status = exc.status_code
        message = exc.message
        if status >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, exc.code, exc.message, exc.context)
            if request.app.state.settings.is_production:
                message = error_codes.GENERIC_INTERNAL_MESSAGE
        else:
            logger.info("[%s] %s: %s", rid, exc.code, exc.message)
        return fail(exc.code, message, status_code=status)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.info("[%s] Validation error: %s", request_id_var.get(""), message)
        return fail(error_codes.VALIDATION_ERROR, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            code = error_codes.NOT_FOUND
        elif exc.status_code == 405:
            code = error_codes.METHOD_NOT_ALLOWED
        elif exc.status_code >= 500:
            code = error_codes.INTERNAL_ERROR
        else:
            code = error_codes.BAD_REQUEST
        return fail(code, str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    app.add_exception_handler(Exception, unhandled_exception_handler)


# ══════════════════════════════════════════════════════════════════════════
# Module Registration
# ══════════════════════════════════════════════════════════════════════════

def register_modules(registry: ModuleRegistry, session_factory: async_sessionmaker) -> None:
    """Fill the registry in module order (user, then order) and freeze it."""
    registry.register_user_module(UserServiceAdapter(session_factory))
    registry.set_order_service(OrderServiceAdapter(session_factory, registry))
    registry.freeze()


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Settings = settings,
    bind: Optional[AsyncEngine] = None,
    session_factory: Optional[async_sessionmaker] = None,
) -> FastAPI:
    """
    Assemble the application.

    Args:
        config:          Settings to use (defaults to the environment)
        bind:            Engine for health reporting and shutdown
        session_factory: Factory for request sessions and capability calls
    """
    app = FastAPI(
        title="OrderDesk API",
        description="Users and orders CRUD service.",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )

    app.state.settings = config
    app.state.engine = bind or engine
    app.state.session_factory = session_factory or async_session_factory
    app.state.rate_limiter = RateLimiter(rate=config.rate_limit_rps, burst=config.rate_limit_burst)
    app.state.registry = ModuleRegistry()

    register_modules(app.state.registry, app.state.session_factory)
    register_middleware(app, config, app.state.rate_limiter)
    register_exception_handlers(app)

    app.include_router(users.router)
    app.include_router(orders.router)
    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(error_codes_routes.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn on the configured address."""
    import uvicorn

    uvicorn.run(
        "orderdesk.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_config=None,
    )
