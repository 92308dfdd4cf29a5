"""PIX charges for stored orders"""

from typing import Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from cantina.config import Settings, settings as default_settings
from cantina.errors import BadRequestError, ConfigurationError, InvalidStateError, NotFoundError
from cantina.models.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from cantina.money import round_money
from cantina.pix import generate_payload, validate_pix_key
from cantina.services.orders import get_order

logger = structlog.get_logger()


def configured_pix_key(settings: Settings) -> str:
    """The merchant key; errors never include the key itself"""
    pix_key = settings.pix_key.strip()
    if not pix_key:
        raise ConfigurationError("PIX key is not configured. Contact the administrator.")
    if not validate_pix_key(pix_key):
        raise ConfigurationError("PIX key is invalid. Check the configuration.")
    return pix_key


async def build_order_charge(
    db: AsyncSession,
    order_id: UUID,
    settings: Settings = default_settings,
) -> Tuple[str, Order]:
    """
    Build the PIX payload for an order.

    The amount always comes from the stored order total, never from the
    client.
    """
    pix_key = configured_pix_key(settings)

    order = await get_order(db, order_id)
    if not order:
        raise NotFoundError("Order not found")

    amount = round_money(order.total_amount)
    if amount <= 0:
        raise BadRequestError("Order has an invalid amount")

    if order.order_status == OrderStatus.CANCELLED:
        raise InvalidStateError("Cannot generate a PIX charge for a cancelled order")

    if order.payment_status == PaymentStatus.PAID and order.payment_method != PaymentMethod.PIX:
        raise InvalidStateError("Order has already been paid")

    payload = generate_payload(
        pix_key=pix_key,
        description=f"Pedido #{order.order_number} - {settings.pix_merchant_name}",
        merchant_name=settings.pix_merchant_name,
        merchant_city=settings.pix_merchant_city,
        amount=amount,
        transaction_id=f"ORDER{order.id.hex[:20].upper()}",
    )

    logger.info("PIX charge generated", order_id=str(order.id), order_number=order.order_number)
    return payload, order
