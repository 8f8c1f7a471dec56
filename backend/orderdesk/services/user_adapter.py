"""
OrderDesk Backend: User Module Capability Adapter
=================================================

What:  Exposes UserService to other modules as a UserCapability.
How:   Each call opens its own session from the application's session
       factory, so a capability call never joins the caller's transaction.
       Failures are reduced to the registry vocabulary:

           user missing          → NotFoundError(USER_NOT_FOUND)
           anything else failing → InternalError
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import async_sessionmaker

from orderdesk import error_codes
from orderdesk.exceptions import InternalError, NotFoundError, OrderDeskError
from orderdesk.registry import UserCapability, UserInfo
from orderdesk.repositories.user_repository import UserRepository
from orderdesk.services.user_service import UserService

logger = logging.getLogger(__name__)


class UserServiceAdapter(UserCapability):
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _service(self, action: str) -> AsyncIterator[UserService]:
        try:
            async with self._session_factory() as session:
                yield UserService(UserRepository(session))
        except OrderDeskError:
            raise
        except Exception as e:
            logger.error("User capability %s failed: %s", action, e)
            raise InternalError(f"Failed to {action} user") from e

    async def verify_user_exists(self, user_id: str) -> None:
        async with self._service("verify") as service:
            found = await service.exists(user_id)
        if not found:
            raise NotFoundError(resource="user", resource_id=user_id, code=error_codes.USER_NOT_FOUND)

    async def get_user_by_id(self, user_id: str) -> UserInfo:
        async with self._service("look up") as service:
            user = await service.get_by_id(user_id)
        return UserInfo(id=user.id, name=user.name, email=user.email, status=user.status)
