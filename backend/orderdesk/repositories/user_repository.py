"""User data access: CRUD plus email lookup and filtered listing."""

from typing import List, Optional, Tuple

from sqlalchemy import select

from orderdesk.models.user import User, UserColumn
from orderdesk.repositories.base import SQLAlchemyRepository, storage_errors


class UserRepository(SQLAlchemyRepository[User]):
    model = User
    updatable_fields = (UserColumn.NAME, UserColumn.EMAIL, UserColumn.STATUS)

    async def find_by_email(self, email: str) -> User:
        """Exact, case-sensitive match; RecordNotFoundError when absent."""
        with storage_errors("find users by email"):
            result = await self.session.execute(select(User).where(User.email == email))
            return result.scalar_one()

    async def find_all_with_filters(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[User], int]:
        query = (
            self.query()
            .like(UserColumn.NAME, name)
            .like(UserColumn.EMAIL, email)
        )
        return await self._fetch_page(query, page, limit)
