"""Order schemas"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from cantina.models.order import OrderStatus, PaymentMethod, PaymentStatus
from cantina.money import Money
from cantina.schemas.customer import CustomerResponse


def _non_negative(v: Decimal) -> Decimal:
    if v < 0:
        raise ValueError("amount must not be negative")
    return v


class OrderItemCreate(BaseModel):
    """Create order item"""
    product_id: int
    product_name: str = Field(min_length=1, max_length=255)
    quantity: int = Field(ge=1)
    unit_price: Money
    flavor: Optional[str] = Field(default=None, max_length=100)
    subtotal: Optional[Money] = None  # Computed from unit_price * quantity when omitted

    @field_validator("unit_price")
    @classmethod
    def check_unit_price(cls, v: Decimal) -> Decimal:
        return _non_negative(v)


class OrderCreate(BaseModel):
    """Create order request"""
    customer_id: UUID
    items: List[OrderItemCreate] = Field(min_length=1)
    total_amount: Money
    payment_method: PaymentMethod
    is_walk_in: bool = False
    notes: Optional[str] = None

    @field_validator("total_amount")
    @classmethod
    def check_total(cls, v: Decimal) -> Decimal:
        return _non_negative(v)


class OrderStatusUpdate(BaseModel):
    """Update order status request"""
    status: OrderStatus


class PaymentStatusUpdate(BaseModel):
    """Update payment status request"""
    status: PaymentStatus


class OrderCreateResponse(BaseModel):
    order_id: UUID
    order_number: int


class OrderItemResponse(BaseModel):
    """Order item in response"""
    product_id: int
    product_name: str
    unit_price: Money
    quantity: int
    flavor: Optional[str]
    subtotal: Money

    class Config:
        from_attributes = True


class OrderSummary(BaseModel):
    """Order fields without related rows"""
    id: UUID
    customer_id: UUID
    order_number: int
    business_day: date
    total_amount: Money
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    order_status: OrderStatus
    is_walk_in: bool
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerOrderResponse(OrderSummary):
    """Order in a customer's history"""
    items: List[OrderItemResponse]


class OrderResponse(OrderSummary):
    """Fully materialized order"""
    items: List[OrderItemResponse]
    customer: CustomerResponse


class OrderListResponse(BaseModel):
    """Paginated order list"""
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int
