"""
OrderDesk Backend: Repository Base
==================================

What:  Shared CRUD plumbing for the per-entity repositories.
How:   Every statement runs inside `storage_errors()`, which converts driver
       and ORM failures into the repository sentinels:

           IntegrityError              → RecordConflictError
           NoResultFound / 0 rows      → RecordNotFoundError
           any other SQLAlchemyError   → RepositoryError

       Services see only those three types and never a SQLAlchemy class.
"""

import logging
from contextlib import contextmanager
from typing import Generic, Iterator, List, Sequence, Tuple, Type, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from orderdesk.database import Base
from orderdesk.exceptions import RecordConflictError, RecordNotFoundError, RepositoryError
from orderdesk.models.user import utcnow
from orderdesk.store.query import Query

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
RepoT = TypeVar("RepoT", bound="SQLAlchemyRepository")


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except RepositoryError:
        raise
    except IntegrityError as e:
        logger.info("%s rejected by constraint: %s", action, e.orig)
        raise RecordConflictError(f"{action}: constraint violation") from e
    except (NoResultFound, StaleDataError) as e:
        raise RecordNotFoundError(f"{action}: record not found") from e
    except SQLAlchemyError as e:
        logger.error("%s failed: %s", action, e)
        raise RepositoryError(f"{action} failed: {e}") from e


class SQLAlchemyRepository(Generic[ModelT]):
    """
    CRUD over one model, bound to one AsyncSession.

    Subclasses set `model` and `updatable_fields`. Writes only flush; the
    service that owns the unit of work calls `commit()` (or runs the writes
    inside `transaction()`) before it returns.
    """

    model: Type[ModelT]
    updatable_fields: Sequence[str] = ()

    def __init__(self, session: AsyncSession):
        self.session = session

    def with_transaction(self: RepoT, session: AsyncSession) -> RepoT:
        """Repository of the same kind bound to `session` (an open transaction)."""
        return type(self)(session)

    def query(self) -> Query[ModelT]:
        return Query(self.session, self.model)

    async def create(self, entity: ModelT) -> None:
        with storage_errors(f"create {self.model.__tablename__}"):
            self.session.add(entity)
            await self.session.flush()

    async def commit(self) -> None:
        """Make the pending writes of this session durable."""
        with storage_errors(f"commit {self.model.__tablename__}"):
            await self.session.commit()

    async def update(self, entity: ModelT) -> None:
        """
        Write `updatable_fields` of `entity` back to its row.

        Raises RecordNotFoundError when no row has the entity's id.
        """
        entity.updated_at = utcnow()
        values = {field: getattr(entity, field) for field in self.updatable_fields}
        values["updated_at"] = entity.updated_at
        with storage_errors(f"update {self.model.__tablename__}"):
            result = await self.session.execute(
                update(self.model).where(self.model.id == entity.id).values(**values)
            )
        if result.rowcount == 0:
            raise RecordNotFoundError(f"{self.model.__tablename__} {entity.id} not found")

    async def delete(self, entity_id: str) -> None:
        with storage_errors(f"delete {self.model.__tablename__}"):
            result = await self.session.execute(
                delete(self.model).where(self.model.id == entity_id)
            )
        if result.rowcount == 0:
            raise RecordNotFoundError(f"{self.model.__tablename__} {entity_id} not found")

    async def find_by_id(self, entity_id: str) -> ModelT:
        with storage_errors(f"find {self.model.__tablename__}"):
            result = await self.session.execute(
                select(self.model).where(self.model.id == entity_id)
            )
            return result.scalar_one()

    async def exists(self, entity_id: str) -> bool:
        with storage_errors(f"exists {self.model.__tablename__}"):
            result = await self.session.execute(
                select(self.model.id).where(self.model.id == entity_id).limit(1)
            )
            return result.scalar_one_or_none() is not None

    async def _fetch_page(
        self, query: Query[ModelT], page: int, limit: int
    ) -> Tuple[List[ModelT], int]:
        """Total matching rows plus one newest-first page of them."""
        with storage_errors(f"list {self.model.__tablename__}"):
            total = await query.count()
            rows = await query.order_by("created_at", descending=True).page(page, limit).all()
        return rows, total
