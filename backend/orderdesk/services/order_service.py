"""
OrderDesk Backend: Order Service (Business Logic)
=================================================

What:  Order rules on top of OrderRepository, including the cross-module
       user checks and the user enrichment of every response.
How:   The service never imports the user module. It reads two registry
       slots:

           user_getter    create(): one lookup gives existence and status
                          responses: userName / userEmail (best effort)
           user_verifier  create() fallback and get_by_user_id(): existence

Create flow:

    ┌───────────────┐   ┌──────────────────────┐   ┌──────────────────┐
    │ user check    │──▶│ insert (transaction  │──▶│ shape + enrich   │
    │ via registry  │   │ when a session is    │   │ (never fails)    │
    └───────────────┘   │ held, else commit)   │   └──────────────────┘
                        └──────────────────────┘

User check matrix:
    getter registered      lookup; 404 propagates; inactive → INVALID
    verifier only          existence only, status check skipped (warning);
                           STRICT_USER_STATUS_CHECK refuses with 503
    nothing registered     proceed (503 when strict)
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk import error_codes
from orderdesk.database import transaction
from orderdesk.exceptions import (
    InternalError,
    NotFoundError,
    OrderDeskError,
    RecordNotFoundError,
    RepositoryError,
    ServiceUnavailableError,
    ValidationError,
)
from orderdesk.metrics import instrumented
from orderdesk.models.order import Order, OrderStatus, status_text
from orderdesk.models.user import UserStatus, new_id
from orderdesk.registry import ModuleRegistry
from orderdesk.repositories.order_repository import OrderRepository
from orderdesk.schemas.common import PageResult
from orderdesk.schemas.order import CreateOrderRequest, OrderResponse, UpdateOrderRequest
from orderdesk.schemas.user import supplied_fields
from orderdesk.services.pagination import (
    DEFAULT_ORDER_PAGE_SIZE,
    normalize_pagination,
    total_pages,
)

logger = logging.getLogger(__name__)

MODULE = "order"

UserLabel = Tuple[str, str]
_NO_USER: UserLabel = ("", "")


def _order_not_found(order_id: str) -> NotFoundError:
    return NotFoundError(
        resource="order", resource_id=order_id, message="Order not found", code=error_codes.NOT_FOUND
    )


def _storage_failure(action: str, e: RepositoryError) -> InternalError:
    logger.error("Order %s failed: %s", action, e)
    return InternalError(
        message=f"Failed to {action} order",
        code=error_codes.DATABASE_ERROR,
        context={"error": str(e)},
    )


class OrderService:
    """
    Args:
        repository: OrderRepository bound to the request session
        registry:   Capability registry (user slots may be empty)
        db:         Session used to open a transaction for creates; None
                    falls back to a plain insert and commit on the repository
        strict_user_status_check: refuse creates whose user status cannot
                    be checked
    """

    def __init__(
        self,
        repository: OrderRepository,
        registry: ModuleRegistry,
        db: Optional[AsyncSession] = None,
        strict_user_status_check: bool = False,
    ):
        self.repository = repository
        self.registry = registry
        self.db = db
        self.strict_user_status_check = strict_user_status_check

    # ── Cross-module checks ───────────────────────────────────────────────
    async def _check_user_can_order(self, user_id: str) -> None:
        getter = self.registry.user_getter
        if getter is not None:
            try:
                user = await getter.get_user_by_id(user_id)
            except OrderDeskError:
                raise
            except Exception as e:
                raise InternalError("Failed to verify user") from e
            if user.status != UserStatus.ACTIVE:
                raise ValidationError(
                    message="User is inactive",
                    field="userId",
                    code=error_codes.INVALID,
                )
            return

        verifier = self.registry.user_verifier
        if verifier is not None:
            await self._verify_user(user_id)

        if self.strict_user_status_check:
            raise ServiceUnavailableError("User status cannot be verified")

        if verifier is not None:
            logger.warning(
                "Only existence of user %s was verified; status check skipped", user_id
            )
        else:
            logger.debug("No user module registered; skipping user check for %s", user_id)

    async def _verify_user(self, user_id: str) -> None:
        verifier = self.registry.user_verifier
        if verifier is None:
            return
        try:
            await verifier.verify_user_exists(user_id)
        except OrderDeskError:
            raise
        except Exception as e:
            raise InternalError("Failed to verify user") from e

    async def _user_labels(self, user_ids: Iterable[str]) -> Dict[str, UserLabel]:
        """Best-effort name/email per user id; failures leave empty strings."""
        labels: Dict[str, UserLabel] = {}
        getter = self.registry.user_getter
        for user_id in user_ids:
            if user_id in labels:
                continue
            labels[user_id] = _NO_USER
            if getter is None:
                continue
            try:
                user = await getter.get_user_by_id(user_id)
            except Exception as e:
                logger.warning("Could not load user %s for order response: %s", user_id, e)
                continue
            labels[user_id] = (user.name, user.email)
        return labels

    # ── Shaping ───────────────────────────────────────────────────────────
    @staticmethod
    def _shape(order: Order, label: UserLabel = _NO_USER) -> OrderResponse:
        return OrderResponse(
            id=order.id,
            user_id=order.user_id,
            user_name=label[0],
            user_email=label[1],
            product_name=order.product_name,
            quantity=order.quantity,
            amount=order.amount,
            status=order.status,
            status_text=status_text(order.status),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    async def _respond(self, order: Order) -> OrderResponse:
        labels = await self._user_labels([order.user_id])
        return self._shape(order, labels[order.user_id])

    async def _page(self, orders, total: int, page: int, limit: int) -> PageResult[OrderResponse]:
        labels = await self._user_labels(order.user_id for order in orders)
        return PageResult[OrderResponse](
            items=[self._shape(order, labels[order.user_id]) for order in orders],
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages(total, limit),
        )

    async def get_entity(self, order_id: str) -> Order:
        """The stored order; NotFoundError when absent."""
        try:
            return await self.repository.find_by_id(order_id)
        except RecordNotFoundError:
            raise _order_not_found(order_id)
        except RepositoryError as e:
            raise _storage_failure("load", e) from e

    # ── Operations ────────────────────────────────────────────────────────
    @instrumented(MODULE, "create")
    async def create(self, request: CreateOrderRequest) -> OrderResponse:
        await self._check_user_can_order(request.user_id)

        order = Order(
            id=new_id(),
            user_id=request.user_id,
            product_name=request.product_name,
            quantity=request.quantity,
            amount=request.amount,
            status=int(OrderStatus.PENDING),
        )
        try:
            if self.db is not None:
                async with transaction(self.db) as tx:
                    await self.repository.with_transaction(tx).create(order)
            else:
                await self.repository.create(order)
                await self.repository.commit()
        except RepositoryError as e:
            raise _storage_failure("create", e) from e

        logger.info("Order created: %s for user %s", order.id, order.user_id)
        return await self._respond(order)

    @instrumented(MODULE, "update")
    async def update(self, order_id: str, changes: UpdateOrderRequest) -> OrderResponse:
        order = await self.get_entity(order_id)
        fields = supplied_fields(changes)
        for field, value in fields.items():
            setattr(order, field, value)

        try:
            await self.repository.update(order)
            await self.repository.commit()
        except RecordNotFoundError:
            raise _order_not_found(order_id)
        except RepositoryError as e:
            raise _storage_failure("update", e) from e

        logger.info("Order updated: %s (%s)", order_id, ", ".join(sorted(fields)) or "no changes")
        return await self._respond(order)

    @instrumented(MODULE, "delete")
    async def delete(self, order_id: str) -> None:
        try:
            await self.repository.delete(order_id)
            await self.repository.commit()
        except RecordNotFoundError:
            raise _order_not_found(order_id)
        except RepositoryError as e:
            raise _storage_failure("delete", e) from e
        logger.info("Order deleted: %s", order_id)

    @instrumented(MODULE, "get_by_id")
    async def get_by_id(self, order_id: str) -> OrderResponse:
        return await self._respond(await self.get_entity(order_id))

    @instrumented(MODULE, "get_all")
    async def get_all(
        self,
        user_id: Optional[str] = None,
        product_name: Optional[str] = None,
        status: Optional[int] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> PageResult[OrderResponse]:
        page, limit = normalize_pagination(page, limit, DEFAULT_ORDER_PAGE_SIZE)
        try:
            orders, total = await self.repository.find_all_with_filters(
                user_id=user_id,
                product_name=product_name,
                status=status,
                page=page,
                limit=limit,
            )
        except RepositoryError as e:
            raise _storage_failure("list", e) from e
        return await self._page(orders, total, page, limit)

    @instrumented(MODULE, "get_by_user_id")
    async def get_by_user_id(
        self, user_id: str, page: Optional[int] = None, limit: Optional[int] = None
    ) -> PageResult[OrderResponse]:
        await self._verify_user(user_id)
        page, limit = normalize_pagination(page, limit, DEFAULT_ORDER_PAGE_SIZE)
        try:
            orders, total = await self.repository.find_by_user_id(user_id, page=page, limit=limit)
        except RepositoryError as e:
            raise _storage_failure("list", e) from e
        return await self._page(orders, total, page, limit)
