"""Debt management API endpoints"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.api.auth import require_admin
from cantina.database import get_db
from cantina.models.user import User
from cantina.schemas.debt import DebtDetailResponse, DebtResponse
from cantina.services import payments as payment_service

router = APIRouter()


@router.get("", response_model=List[DebtDetailResponse])
async def list_debts(
    only_unpaid: bool = True,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List debts with customer and order"""
    return await payment_service.list_debts(db, only_unpaid=only_unpaid)


@router.post("/{debt_id}/pay", response_model=DebtResponse)
async def mark_as_paid(
    debt_id: UUID,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Settle a debt; calling it again on a paid debt changes nothing"""
    return await payment_service.mark_debt_as_paid(db, debt_id)
