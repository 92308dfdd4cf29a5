"""Database models"""

from cantina.models.customer import Customer
from cantina.models.order import (
    Order,
    OrderItem,
    OrderCounter,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from cantina.models.debt import Debt
from cantina.models.user import User, UserRole

__all__ = [
    "Customer",
    "Order",
    "OrderItem",
    "OrderCounter",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "Debt",
    "User",
    "UserRole",
]
