"""
OrderDesk Backend: User Service (Business Logic)
================================================

What:  User rules on top of UserRepository: email uniqueness, partial
       updates, paginated listing and response shaping.
How:   Repository sentinels are translated here, exactly once:

           RecordNotFoundError   → NotFoundError(USER_NOT_FOUND)
           RecordConflictError   → ConflictError(EMAIL_EXISTS)
           RepositoryError       → InternalError

Who:   /users route handlers, and UserServiceAdapter (which exposes this
       service to other modules through the registry).
"""

import logging
from typing import Optional

from orderdesk import error_codes
from orderdesk.exceptions import (
    ConflictError,
    InternalError,
    NotFoundError,
    RecordConflictError,
    RecordNotFoundError,
    RepositoryError,
)
from orderdesk.metrics import instrumented
from orderdesk.models.user import User, UserStatus, new_id
from orderdesk.repositories.user_repository import UserRepository
from orderdesk.schemas.common import PageResult
from orderdesk.schemas.user import UpdateUserRequest, UserResponse, supplied_fields
from orderdesk.services.pagination import (
    DEFAULT_USER_PAGE_SIZE,
    normalize_pagination,
    total_pages,
)

logger = logging.getLogger(__name__)

MODULE = "user"


def _user_not_found(user_id: str) -> NotFoundError:
    return NotFoundError(resource="user", resource_id=user_id, code=error_codes.USER_NOT_FOUND)


def _email_exists(email: str) -> ConflictError:
    return ConflictError(code=error_codes.EMAIL_EXISTS, context={"email": email})


def _storage_failure(action: str, e: RepositoryError) -> InternalError:
    logger.error("User %s failed: %s", action, e)
    return InternalError(
        message=f"Failed to {action} user",
        code=error_codes.DATABASE_ERROR,
        context={"error": str(e)},
    )


def to_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


class UserService:
    """
    Responsibilities:
        - create():   uniqueness check, then insert as active
        - update():   overwrite only supplied fields; re-check a changed email
        - delete():   hard delete
        - get_by_id(), get_all(), exists()
    """

    def __init__(self, repository: UserRepository):
        self.repository = repository

    async def _email_taken(self, email: str) -> bool:
        try:
            await self.repository.find_by_email(email)
        except RecordNotFoundError:
            return False
        except RepositoryError as e:
            raise _storage_failure("check email for", e) from e
        return True

    async def _load(self, user_id: str) -> User:
        try:
            return await self.repository.find_by_id(user_id)
        except RecordNotFoundError:
            raise _user_not_found(user_id)
        except RepositoryError as e:
            raise _storage_failure("load", e) from e

    @instrumented(MODULE, "create")
    async def create(self, name: str, email: str) -> UserResponse:
        if await self._email_taken(email):
            raise _email_exists(email)

        user = User(id=new_id(), name=name, email=email, status=int(UserStatus.ACTIVE))
        try:
            await self.repository.create(user)
            await self.repository.commit()
        except RecordConflictError:
            # Lost a race with a concurrent create of the same email.
            raise _email_exists(email)
        except RepositoryError as e:
            raise _storage_failure("create", e) from e

        logger.info("User created: %s", user.id)
        return to_response(user)

    @instrumented(MODULE, "update")
    async def update(self, user_id: str, changes: UpdateUserRequest) -> UserResponse:
        user = await self._load(user_id)
        fields = supplied_fields(changes)

        new_email = fields.get("email")
        if new_email is not None and new_email != user.email and await self._email_taken(new_email):
            raise _email_exists(new_email)

        for field, value in fields.items():
            setattr(user, field, value)

        try:
            await self.repository.update(user)
            await self.repository.commit()
        except RecordNotFoundError:
            raise _user_not_found(user_id)
        except RecordConflictError:
            raise _email_exists(new_email or user.email)
        except RepositoryError as e:
            raise _storage_failure("update", e) from e

        logger.info("User updated: %s (%s)", user_id, ", ".join(sorted(fields)) or "no changes")
        return to_response(user)

    @instrumented(MODULE, "delete")
    async def delete(self, user_id: str) -> None:
        try:
            await self.repository.delete(user_id)
            await self.repository.commit()
        except RecordNotFoundError:
            raise _user_not_found(user_id)
        except RepositoryError as e:
            raise _storage_failure("delete", e) from e
        logger.info("User deleted: %s", user_id)

    @instrumented(MODULE, "get_by_id")
    async def get_by_id(self, user_id: str) -> UserResponse:
        return to_response(await self._load(user_id))

    async def exists(self, user_id: str) -> bool:
        try:
            return await self.repository.exists(user_id)
        except RepositoryError as e:
            raise _storage_failure("verify", e) from e

    @instrumented(MODULE, "get_all")
    async def get_all(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PageResult[UserResponse]:
        page, limit = normalize_pagination(page, limit, DEFAULT_USER_PAGE_SIZE)
        try:
            users, total = await self.repository.find_all_with_filters(
                name=name, email=email, page=page, limit=limit
            )
        except RepositoryError as e:
            raise _storage_failure("list", e) from e

        return PageResult[UserResponse](
            items=[to_response(user) for user in users],
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages(total, limit),
        )
