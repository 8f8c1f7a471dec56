"""Prometheus scrape endpoint; the one response outside the JSON envelope."""

from fastapi import APIRouter
from fastapi.responses import Response

from orderdesk.metrics import CONTENT_TYPE_LATEST, render_latest

router = APIRouter(tags=["Metrics"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=render_latest(), media_type=CONTENT_TYPE_LATEST)
