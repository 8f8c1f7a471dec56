"""FastAPI dependencies wiring request sessions into services."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.config import Settings
from orderdesk.database import get_db_session
from orderdesk.registry import ModuleRegistry
from orderdesk.repositories.order_repository import OrderRepository
from orderdesk.repositories.user_repository import UserRepository
from orderdesk.services.order_service import OrderService
from orderdesk.services.user_service import UserService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> ModuleRegistry:
    return request.app.state.registry


def get_user_service(db: AsyncSession = Depends(get_db_session)) -> UserService:
    return UserService(UserRepository(db))


def get_order_service(
    db: AsyncSession = Depends(get_db_session),
    registry: ModuleRegistry = Depends(get_registry),
    config: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(
        OrderRepository(db),
        registry,
        db=db,
        strict_user_status_check=config.strict_user_status_check,
    )
