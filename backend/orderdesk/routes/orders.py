"""
OrderDesk Backend: Order Routes
===============================

    POST   /orders                 create                     201
    GET    /orders                 list (userId, productName, status, page, limit)
    GET    /orders/user/{user_id}  orders of one user (404 for unknown user)
    GET    /orders/{order_id}      fetch one
    PUT    /orders/{order_id}      partial update
    DELETE /orders/{order_id}      delete
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from orderdesk.dependencies import get_order_service
from orderdesk.responses import created, paginated, success
from orderdesk.schemas.order import CreateOrderRequest, UpdateOrderRequest
from orderdesk.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", status_code=201, summary="Create an order")
async def create_order(
    payload: CreateOrderRequest,
    service: OrderService = Depends(get_order_service),
):
    return created(await service.create(payload))


@router.get("", summary="List orders")
async def list_orders(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    product_name: Optional[str] = Query(default=None, alias="productName"),
    status: Optional[int] = Query(default=None),
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    service: OrderService = Depends(get_order_service),
):
    result = await service.get_all(
        user_id=user_id,
        product_name=product_name,
        status=status,
        page=page,
        limit=limit,
    )
    return paginated(result)


@router.get("/user/{user_id}", summary="List orders of a user")
async def list_user_orders(
    user_id: str,
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    service: OrderService = Depends(get_order_service),
):
    return paginated(await service.get_by_user_id(user_id, page=page, limit=limit))


@router.get("/{order_id}", summary="Get an order")
async def get_order(order_id: str, service: OrderService = Depends(get_order_service)):
    return success(await service.get_by_id(order_id))


@router.put("/{order_id}", summary="Update an order")
async def update_order(
    order_id: str,
    payload: UpdateOrderRequest,
    service: OrderService = Depends(get_order_service),
):
    return success(await service.update(order_id, payload))


@router.delete("/{order_id}", summary="Delete an order")
async def delete_order(order_id: str, service: OrderService = Depends(get_order_service)):
    await service.delete(order_id)
    return success()
