"""Exposes OrderService to other modules as an OrderLookup."""

from sqlalchemy.ext.asyncio import async_sessionmaker

from orderdesk.exceptions import InternalError, OrderDeskError
from orderdesk.registry import ModuleRegistry, OrderInfo, OrderLookup
from orderdesk.repositories.order_repository import OrderRepository
from orderdesk.services.order_service import OrderService


class OrderServiceAdapter(OrderLookup):
    def __init__(self, session_factory: async_sessionmaker, registry: ModuleRegistry):
        self._session_factory = session_factory
        self._registry = registry

    async def get_by_id(self, order_id: str) -> OrderInfo:
        try:
            async with self._session_factory() as session:
                service = OrderService(OrderRepository(session), self._registry)
                order = await service.get_entity(order_id)
        except OrderDeskError:
            raise
        except Exception as e:
            raise InternalError("Failed to look up order") from e
        return OrderInfo(
            id=order.id,
            user_id=order.user_id,
            product_name=order.product_name,
            quantity=order.quantity,
            amount=order.amount,
            status=order.status,
        )
