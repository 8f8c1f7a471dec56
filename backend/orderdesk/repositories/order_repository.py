"""Order data access: CRUD plus per-user and filtered listings."""

from typing import List, Optional, Tuple

from orderdesk.models.order import Order, OrderColumn
from orderdesk.repositories.base import SQLAlchemyRepository


class OrderRepository(SQLAlchemyRepository[Order]):
    model = Order
    updatable_fields = (
        OrderColumn.PRODUCT_NAME,
        OrderColumn.QUANTITY,
        OrderColumn.AMOUNT,
        OrderColumn.STATUS,
    )

    async def find_by_user_id(
        self, user_id: str, page: int = 1, limit: int = 10
    ) -> Tuple[List[Order], int]:
        query = self.query().eq(OrderColumn.USER_ID, user_id)
        return await self._fetch_page(query, page, limit)

    async def find_all_with_filters(
        self,
        user_id: Optional[str] = None,
        product_name: Optional[str] = None,
        status: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Order], int]:
        query = (
            self.query()
            .eq(OrderColumn.USER_ID, user_id or None)
            .like(OrderColumn.PRODUCT_NAME, product_name)
            .eq(OrderColumn.STATUS, status)
        )
        return await self._fetch_page(query, page, limit)
