"""Customer API endpoints"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.api.auth import require_admin
from cantina.database import get_db
from cantina.errors import NotFoundError
from cantina.models.user import User
from cantina.schemas.customer import CustomerResponse, IdentifyRequest, RecalculateDebtResponse
from cantina.schemas.debt import CustomerDebtResponse
from cantina.schemas.order import CustomerOrderResponse
from cantina.services import customers as customer_service

router = APIRouter()


@router.post("/identify", response_model=CustomerResponse)
async def identify(
    request: IdentifyRequest,
    db: AsyncSession = Depends(get_db),
):
    """Simplified login: find the customer by phone or register a new one"""
    return await customer_service.identify_customer(db, request.name, request.phone)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get customer details"""
    customer = await customer_service.get_customer(db, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


@router.get("/{customer_id}/orders", response_model=List[CustomerOrderResponse])
async def get_history(
    customer_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Order history, newest first"""
    return await customer_service.get_customer_history(db, customer_id)


@router.get("/{customer_id}/debts", response_model=List[CustomerDebtResponse])
async def get_debts(
    customer_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Pay-later debts of the customer, paid and unpaid"""
    return await customer_service.get_customer_debts(db, customer_id)


@router.post("/{customer_id}/recalculate-debt", response_model=RecalculateDebtResponse)
async def recalculate_debt(
    customer_id: UUID,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Rebuild the customer's debt total from the unpaid debt records"""
    previous, total = await customer_service.recalculate_customer_debt(db, customer_id)
    return RecalculateDebtResponse(
        customer_id=customer_id,
        previous_total_debt=previous,
        total_debt=total,
    )
