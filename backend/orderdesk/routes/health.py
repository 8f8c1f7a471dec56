"""
OrderDesk Backend: Health Check Routes
======================================

What:  Probes for load balancers, orchestrators and humans.

    GET /health        full report: database, pool counters, version, uptime
    GET /health/ready  200 when the database answers, 503 otherwise
    GET /health/live   200 while the process serves requests

/health answers 503 with SERVICE_UNAVAILABLE when the database does not
respond; the report is still attached as `data`.

The rate limiter skips these paths.
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from orderdesk import __version__, error_codes
from orderdesk.database import ping, pool_status
from orderdesk.responses import fail, success
from orderdesk.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

_start_time = time.time()


async def _database_reachable(request: Request) -> bool:
    try:
        await ping(request.app.state.session_factory)
    except Exception as e:
        logger.warning("Health check: database unreachable: %s", e)
        return False
    return True


@router.get("", summary="Service health check")
async def health_check(request: Request):
    connected = await _database_reachable(request)
    report = HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        environment=request.app.state.settings.env,
        database="connected" if connected else "disconnected",
        pool=pool_status(request.app.state.engine),
        uptime_seconds=round(time.time() - _start_time, 2),
        timestamp=datetime.now(timezone.utc),
    )
    if not connected:
        return fail(error_codes.SERVICE_UNAVAILABLE, "Database ping failed", data=report)
    return success(report)


@router.get("/ready", summary="Readiness probe")
async def readiness(request: Request):
    if not await _database_reachable(request):
        return fail(error_codes.SERVICE_UNAVAILABLE, "Database is not reachable")
    return success({"status": "ready"})


@router.get("/live", summary="Liveness probe")
async def liveness():
    return success({"status": "alive"})
