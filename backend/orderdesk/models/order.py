"""
OrderDesk Backend: Order SQLAlchemy Model
=========================================

What:  ORM model for the `orders` table, its status enum and column names.

Table Design:
    - user_id: indexed, deliberately no foreign key. The order module checks
      the user through the module registry instead, and deleting a user
      leaves its orders untouched.
    - amount: NUMERIC(10, 2), never negative
    - status: 1 pending (default) / 2 completed / 3 cancelled
"""

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import TIMESTAMP, Index, Integer, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.database import Base
from orderdesk.models.user import new_id, utcnow


class OrderStatus(enum.IntEnum):
    PENDING = 1
    COMPLETED = 2
    CANCELLED = 3

    @property
    def text(self) -> str:
        return self.name.lower()


def status_text(status: int) -> str:
    """Lowercase label for a stored status; "unknown" for anything else."""
    try:
        return OrderStatus(status).text
    except ValueError:
        return "unknown"


class OrderColumn:
    """Column names accepted by the query builder for `orders`."""

    ID = "id"
    USER_ID = "user_id"
    PRODUCT_NAME = "product_name"
    QUANTITY = "quantity"
    AMOUNT = "amount"
    STATUS = "status"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=int(OrderStatus.PENDING),
        server_default=text("1"),
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_orders_user_id", "user_id"),
        Index("idx_orders_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, user_id={self.user_id}, "
            f"status={self.status}, amount={self.amount})>"
        )
