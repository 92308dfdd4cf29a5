"""PIX schemas"""

from uuid import UUID
from pydantic import BaseModel


class PixChargeResponse(BaseModel):
    """Payload for the PIX QR code; the amount comes from the stored order"""
    payload: str
    order_id: UUID
    order_number: int
