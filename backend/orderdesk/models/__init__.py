# Importing the models registers both tables on Base.metadata.
from orderdesk.models.order import Order, OrderColumn, OrderStatus  # noqa: F401
from orderdesk.models.user import User, UserColumn, UserStatus  # noqa: F401
