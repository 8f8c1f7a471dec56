"""
OrderDesk Backend: Repositories
===============================

One repository per entity, bound to an AsyncSession. Repositories translate
storage failures into RecordNotFoundError / RecordConflictError /
RepositoryError and leave commits to the session owner.
"""

from orderdesk.repositories.order_repository import OrderRepository  # noqa: F401
from orderdesk.repositories.user_repository import UserRepository  # noqa: F401
