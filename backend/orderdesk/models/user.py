"""
OrderDesk Backend: User SQLAlchemy Model
========================================

What:  ORM model for the `users` table plus its column-name constants.
Who:   UserRepository (CRUD), Alembic (schema), the query builder (field
       validation against real columns).

Table Design:
    - id: 36-char UUID string, generated in Python at creation time
    - email: unique index; equality is exact (case-sensitive)
    - status: 1 active (default) / 0 inactive
    - created_at / updated_at: UTC, written only by the persistence layer
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from orderdesk.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class UserStatus(enum.IntEnum):
    INACTIVE = 0
    ACTIVE = 1


class UserColumn:
    """Column names accepted by the query builder for `users`."""

    ID = "id"
    NAME = "name"
    EMAIL = "email"
    STATUS = "status"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class User(Base):
    """
    A registered user.

    Lifecycle:
        1. Created active with a fresh UUID
        2. Partially updated (name, email, status)
        3. Hard-deleted; orders referencing the id are left in place
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Uniqueness is enforced by the index below as well as by UserService,
    # so a race between two creates still ends in a conflict, not a duplicate.
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=int(UserStatus.ACTIVE),
        server_default=text("1"),
    )

    # ── Timestamps ────────────────────────────────────────────────────────
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
        Index("idx_users_email", "email", unique=True),
        Index("idx_users_created_at", created_at.desc()),
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', status={self.status})>"
