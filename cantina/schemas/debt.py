"""Debt schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel

from cantina.money import Money
from cantina.schemas.customer import CustomerResponse
from cantina.schemas.order import OrderSummary


class DebtResponse(BaseModel):
    id: UUID
    customer_id: UUID
    order_id: UUID
    amount: Money
    is_paid: bool
    paid_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerDebtResponse(DebtResponse):
    """Debt listed on a customer's page"""
    order: OrderSummary


class DebtDetailResponse(DebtResponse):
    """Debt listed on the admin debt screen"""
    customer: CustomerResponse
    order: OrderSummary
