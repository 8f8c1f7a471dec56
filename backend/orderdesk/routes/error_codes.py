"""GET /error-codes: the error catalogue grouped by category."""

from fastapi import APIRouter

from orderdesk.error_codes import catalog_by_category
from orderdesk.responses import success

router = APIRouter(tags=["Meta"])


@router.get("/error-codes", summary="List error codes")
async def list_error_codes():
    return success({"categories": catalog_by_category()})
