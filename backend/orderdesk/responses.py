"""
OrderDesk Backend: Response Envelope
====================================

What:  Builders for the uniform JSON envelope every endpoint returns
       (except GET /metrics).

Envelope:
    {
        "isSuccess": true | false,
        "data":       ...,                          # optional (unhealthy /health keeps its report)
        "error":      {"code": ..., "message": ...}, # failure only
        "pagination": {"page", "pageSize", "total", "totalPages"}  # lists only
    }
"""

from typing import Any, Dict, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from orderdesk import error_codes
from orderdesk.schemas.common import PageResult

_NO_DATA = object()


def error_body(code: str, message: Optional[str] = None) -> Dict[str, Any]:
    return {
        "isSuccess": False,
        "error": {"code": code, "message": message or error_codes.default_message(code)},
    }


def success(data: Any = _NO_DATA, status_code: int = 200) -> JSONResponse:
    body: Dict[str, Any] = {"isSuccess": True}
    if data is not _NO_DATA:
        body["data"] = jsonable_encoder(data, by_alias=True)
    return JSONResponse(status_code=status_code, content=body)


def created(data: Any) -> JSONResponse:
    return success(data, status_code=201)


def paginated(result: PageResult) -> JSONResponse:
    body = {
        "isSuccess": True,
        "data": jsonable_encoder(result.items, by_alias=True),
        "pagination": {
            "page": result.page,
            "pageSize": result.limit,
            "total": result.total,
            "totalPages": result.total_pages,
        },
    }
    return JSONResponse(status_code=200, content=body)


def fail(
    code: str,
    message: Optional[str] = None,
    status_code: Optional[int] = None,
    headers: Optional[Mapping[str, str]] = None,
    data: Any = _NO_DATA,
) -> JSONResponse:
    """Error envelope; the status defaults to the catalogue entry for `code`."""
    body = error_body(code, message)
    if data is not _NO_DATA:
        body["data"] = jsonable_encoder(data, by_alias=True)
    return JSONResponse(
        status_code=status_code or error_codes.http_status_for(code),
        content=body,
        headers=dict(headers) if headers else None,
    )
