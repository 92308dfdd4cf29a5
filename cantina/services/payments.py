"""
Payment reconciliation: keeps order payment status, pay-later debts and
customer totals in step.

Both entry points (``update_payment_status`` from the order screen and
``mark_debt_as_paid`` from the debt screen) go through
``apply_payment_transition`` so they always reach the same end state.

    pending -> paid   pay-later: debt paid, total_debt -= amount, total_spent += amount
                      otherwise: total_spent += total
    paid -> pending   exact mirror of the above
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from cantina.database import degrade_on_store_error, transaction
from cantina.errors import BadRequestError, InvalidStateError, NotFoundError
from cantina.models.debt import Debt
from cantina.models.order import Order, OrderStatus, PaymentMethod, PaymentStatus
from cantina.money import round_money
from cantina.services.customers import adjust_customer_totals
from cantina.services.orders import (
    cancel_order,
    load_order,
    lock_debt_for_order,
    lock_order,
    publish_order,
)

logger = structlog.get_logger()


async def apply_payment_transition(
    db: AsyncSession,
    order: Order,
    debt: Optional[Debt],
    target: PaymentStatus,
) -> bool:
    """
    Move ``order`` to ``target`` (pending or paid) and apply the matching
    debt and customer-total effects. Returns False when nothing changed.

    For pay-later orders the debt row decides whether the effect still has
    to be applied, so a repeated call never credits the customer twice and
    a debt that drifted from its order is brought back in line.
    """
    if target not in (PaymentStatus.PENDING, PaymentStatus.PAID):
        raise BadRequestError(f"Unsupported payment transition to {target.value}")

    settled = target == PaymentStatus.PAID

    if order.payment_method == PaymentMethod.PAY_LATER and debt is not None:
        if debt.is_paid == settled and order.payment_status == target:
            return False

        order.payment_status = target
        if debt.is_paid != settled:
            amount = round_money(debt.amount)
            debt.is_paid = settled
            debt.paid_at = datetime.utcnow() if settled else None
            if settled:
                await adjust_customer_totals(db, order.customer_id, spent_delta=amount, debt_delta=-amount)
            else:
                await adjust_customer_totals(db, order.customer_id, spent_delta=-amount, debt_delta=amount)
        return True

    if order.payment_status == target:
        return False

    if order.payment_method == PaymentMethod.PAY_LATER:
        logger.warning("Pay-later order has no debt record", order_id=str(order.id))

    order.payment_status = target
    amount = round_money(order.total_amount)
    await adjust_customer_totals(db, order.customer_id, spent_delta=amount if settled else -amount)
    return True


async def update_payment_status(db: AsyncSession, order_id: UUID, status: PaymentStatus) -> Order:
    """Admin confirmation or correction of an order's payment"""
    if status == PaymentStatus.CANCELLED:
        order = await cancel_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    async with transaction(db, "update_payment_status", order_id=str(order_id), status=status.value):
        order = await lock_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        if order.order_status == OrderStatus.CANCELLED or order.payment_status == PaymentStatus.CANCELLED:
            raise InvalidStateError("Order is cancelled")

        previous = order.payment_status
        debt = None
        if order.payment_method == PaymentMethod.PAY_LATER:
            debt = await lock_debt_for_order(db, order.id)

        changed = await apply_payment_transition(db, order, debt, status)

    order = await load_order(db, order_id)
    if changed:
        logger.info(
            "Payment status updated",
            order_id=str(order_id),
            previous=previous.value,
            status=status.value,
            payment_method=order.payment_method.value,
        )
        publish_order(order, payment_status=status)
    return order


async def mark_debt_as_paid(db: AsyncSession, debt_id: UUID) -> Debt:
    """
    Settle a pay-later debt. Idempotent: a debt that is already paid is
    returned unchanged.

    Locks are taken order first, then debt, like every other payment path.
    """
    async with transaction(db, "mark_debt_as_paid", debt_id=str(debt_id)):
        order_id = await db.scalar(select(Debt.order_id).where(Debt.id == debt_id))
        if order_id is None:
            raise NotFoundError("Debt not found")

        order = await lock_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")

        result = await db.execute(
            select(Debt)
            .where(Debt.id == debt_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        debt = result.scalar_one_or_none()
        if not debt:
            # Removed by a cancel that committed while we waited for the order
            raise NotFoundError("Debt not found")

        changed = False
        if not debt.is_paid:
            changed = await apply_payment_transition(db, order, debt, PaymentStatus.PAID)

    if changed:
        logger.info(
            "Debt marked as paid",
            debt_id=str(debt_id),
            order_id=str(debt.order_id),
            customer_id=str(debt.customer_id),
            amount=str(debt.amount),
        )
        order = await load_order(db, debt.order_id)
        publish_order(order, payment_status=PaymentStatus.PAID)

    return debt


@degrade_on_store_error(list)
async def list_debts(db: AsyncSession, only_unpaid: bool = True) -> List[Debt]:
    """Debts with customer and order, newest first"""
    query = select(Debt).options(selectinload(Debt.customer), selectinload(Debt.order))
    if only_unpaid:
        query = query.where(Debt.is_paid.is_(False))
    result = await db.execute(query.order_by(Debt.created_at.desc()))
    return list(result.scalars().all())
