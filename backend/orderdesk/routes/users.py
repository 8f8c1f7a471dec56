"""
OrderDesk Backend: User Routes
==============================

    POST   /users            create          201
    GET    /users            list (name, email, page, limit)
    GET    /users/{user_id}  fetch one
    PUT    /users/{user_id}  partial update
    DELETE /users/{user_id}  delete          {"isSuccess": true}

Handlers only translate HTTP into service calls and service results into the
envelope; errors propagate to the global exception handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from orderdesk.dependencies import get_user_service
from orderdesk.responses import created, paginated, success
from orderdesk.schemas.user import CreateUserRequest, UpdateUserRequest
from orderdesk.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", status_code=201, summary="Create a user")
async def create_user(
    payload: CreateUserRequest,
    service: UserService = Depends(get_user_service),
):
    return created(await service.create(name=payload.name, email=payload.email))


@router.get("", summary="List users")
async def list_users(
    name: Optional[str] = Query(default=None),
    email: Optional[str] = Query(default=None),
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    service: UserService = Depends(get_user_service),
):
    return paginated(await service.get_all(name=name, email=email, page=page, limit=limit))


@router.get("/{user_id}", summary="Get a user")
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return success(await service.get_by_id(user_id))


@router.put("/{user_id}", summary="Update a user")
async def update_user(
    user_id: str,
    payload: UpdateUserRequest,
    service: UserService = Depends(get_user_service),
):
    return success(await service.update(user_id, payload))


@router.delete("/{user_id}", summary="Delete a user")
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    await service.delete(user_id)
    return success()
