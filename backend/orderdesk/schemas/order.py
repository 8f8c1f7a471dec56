"""API contract for /orders."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field, field_serializer

from orderdesk.schemas.common import CamelModel


class CreateOrderRequest(CamelModel):
    user_id: str = Field(min_length=1, max_length=36)
    product_name: str = Field(min_length=1, max_length=255)
    quantity: int = Field(ge=1)
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class UpdateOrderRequest(CamelModel):
    product_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    quantity: Optional[int] = Field(default=None, ge=1)
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    status: Optional[Literal[1, 2, 3]] = None


class OrderResponse(CamelModel):
    """
    An order as returned to clients.

    `user_name` / `user_email` come from the user module and are empty
    strings whenever that lookup is unavailable or fails.
    """

    id: str
    user_id: str
    user_name: str = ""
    user_email: str = ""
    product_name: str
    quantity: int
    amount: Decimal
    status: int
    status_text: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        return float(amount)
