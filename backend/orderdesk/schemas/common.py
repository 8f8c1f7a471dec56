"""
OrderDesk Backend: Shared Pydantic Schemas
==========================================

What:  Base model for the camelCase API contract, the paged result carrier
       and the health payload.

Naming:
    Python attributes stay snake_case; JSON uses camelCase through the alias
    generator. `populate_by_name` lets tests and internal callers build
    models with either spelling.
"""

from datetime import datetime
from typing import Any, Dict, Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


ItemT = TypeVar("ItemT")


class PageResult(BaseModel, Generic[ItemT]):
    """
    One page of a list operation.

    `limit` is the normalized page size actually used; `total_pages` is
    ceil(total / limit), 0 for an empty result.
    """

    items: List[ItemT]
    page: int
    limit: int
    total: int
    total_pages: int


class HealthResponse(CamelModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    environment: str
    database: str = Field(description="connected or disconnected")
    pool: Dict[str, Any] = Field(default_factory=dict)
    uptime_seconds: float
    timestamp: datetime
