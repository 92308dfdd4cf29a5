"""PIX charge endpoint"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.database import get_db
from cantina.schemas.pix import PixChargeResponse
from cantina.services.charges import build_order_charge

router = APIRouter()


@router.get("/orders/{order_id}", response_model=PixChargeResponse)
async def generate_charge(
    order_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """
    Generate the PIX payload for an order.

    The amount is read from the stored order, so the response does not
    echo it back.
    """
    payload, order = await build_order_charge(db, order_id)
    return PixChargeResponse(payload=payload, order_id=order.id, order_number=order.order_number)
