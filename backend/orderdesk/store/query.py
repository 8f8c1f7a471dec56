"""
OrderDesk Backend: Query Builder
================================

What:  Small fluent builder for the filter / order / page queries the
       repositories run.
How:   Every field name is validated (identifier pattern, SQL keyword
       blacklist, must be a real column of the model) before it is turned
       into a column expression. Values always travel as bound parameters.

Example:
    query = (
        Query(session, User)
        .like(UserColumn.NAME, "ali")
        .eq(UserColumn.STATUS, 1)
        .order_by(UserColumn.CREATED_AT, descending=True)
    )
    total = await query.count()
    users = await query.page(1, 20).all()
"""

import re
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.database import Base


ModelT = TypeVar("ModelT", bound=Base)

_FIELD_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_.]*$")
_TOKEN_SPLIT = re.compile(r"[_.]")

SQL_KEYWORDS = frozenset({
    "SELECT", "INSERT", "UPDATE", "DELETE", "DROP", "CREATE",
    "ALTER", "EXEC", "EXECUTE", "UNION", "SCRIPT",
})
SPECIAL_TOKENS = ("--", "/*", "*/", ";")


class InvalidFieldError(ValueError):
    """A field name failed validation and was not used in the statement."""


def is_valid_field_name(field: str) -> bool:
    """
    True when `field` looks like a plain column reference.

    Keywords are compared per `_`/`.` separated token, so `created_at`
    passes while `drop_table` and `users.delete` do not.
    """
    if not field or not _FIELD_PATTERN.match(field):
        return False
    if any(token in field for token in SPECIAL_TOKENS):
        return False
    return not any(part.upper() in SQL_KEYWORDS for part in _TOKEN_SPLIT.split(field))


class Query(Generic[ModelT]):
    """Accumulates conditions for `model`; `count()` ignores paging and order."""

    def __init__(self, session: AsyncSession, model: Type[ModelT]):
        self._session = session
        self._model = model
        self._conditions: List[Any] = []
        self._ordering: List[Any] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None

    def _column(self, field: str):
        if not is_valid_field_name(field):
            raise InvalidFieldError(f"Invalid field name: {field!r}")
        # "users.name" style qualifiers are accepted for the model's own table
        table_name, _, column_name = field.rpartition(".")
        table = self._model.__table__
        if table_name and table_name != table.name:
            raise InvalidFieldError(f"Field {field!r} does not belong to {table.name}")
        if column_name not in table.c:
            raise InvalidFieldError(f"Unknown field {field!r} for {table.name}")
        return table.c[column_name]

    def eq(self, field: str, value: Any) -> "Query[ModelT]":
        """Equality filter; a None value leaves the query unchanged."""
        if value is not None:
            self._conditions.append(self._column(field) == value)
        return self

    def like(self, field: str, value: Optional[str]) -> "Query[ModelT]":
        """Case-insensitive substring filter; empty values are ignored."""
        if value:
            self._conditions.append(self._column(field).icontains(value, autoescape=True))
        return self

    def order_by(self, field: str, descending: bool = False) -> "Query[ModelT]":
        column = self._column(field)
        self._ordering.append(column.desc() if descending else column.asc())
        return self

    def page(self, page: int, size: int) -> "Query[ModelT]":
        """1-based paging; callers pass already-normalized values."""
        self._limit = size
        self._offset = (page - 1) * size
        return self

    def _filtered(self, stmt):
        if self._conditions:
            stmt = stmt.where(*self._conditions)
        return stmt

    async def count(self) -> int:
        stmt = self._filtered(select(func.count()).select_from(self._model))
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def all(self) -> List[ModelT]:
        stmt = self._filtered(select(self._model))
        if self._ordering:
            stmt = stmt.order_by(*self._ordering)
        if self._limit is not None:
            stmt = stmt.limit(self._limit).offset(self._offset or 0)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
