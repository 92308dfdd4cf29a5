"""Pydantic schemas for request/response validation"""

from cantina.schemas.auth import (
    Token,
    AdminSetupRequest,
    UserResponse,
)
from cantina.schemas.customer import (
    IdentifyRequest,
    CustomerResponse,
    RecalculateDebtResponse,
)
from cantina.schemas.order import (
    OrderCreate,
    OrderItemCreate,
    OrderStatusUpdate,
    PaymentStatusUpdate,
    OrderCreateResponse,
    OrderItemResponse,
    OrderSummary,
    CustomerOrderResponse,
    OrderResponse,
    OrderListResponse,
)
from cantina.schemas.debt import (
    DebtResponse,
    CustomerDebtResponse,
    DebtDetailResponse,
)
from cantina.schemas.pix import PixChargeResponse

__all__ = [
    "Token",
    "AdminSetupRequest",
    "UserResponse",
    "IdentifyRequest",
    "CustomerResponse",
    "RecalculateDebtResponse",
    "OrderCreate",
    "OrderItemCreate",
    "OrderStatusUpdate",
    "PaymentStatusUpdate",
    "OrderCreateResponse",
    "OrderItemResponse",
    "OrderSummary",
    "CustomerOrderResponse",
    "OrderResponse",
    "OrderListResponse",
    "DebtResponse",
    "CustomerDebtResponse",
    "DebtDetailResponse",
    "PixChargeResponse",
]
