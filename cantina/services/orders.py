"""
Order lifecycle: creation, numbering, kitchen status and cancellation

Each write runs in one transaction (see ``cantina.database.transaction``);
events are published only after the commit and never fail the operation.
"""

from datetime import date, datetime
from typing import List, Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from cantina import events
from cantina.config import settings
from cantina.database import degrade_on_store_error, transaction
from cantina.errors import InvalidStateError, NotFoundError
from cantina.models.customer import Customer
from cantina.models.debt import Debt
from cantina.models.order import (
    ORDER_STATUS_SEQUENCE,
    Order,
    OrderCounter,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from cantina.money import round_money
from cantina.schemas.order import OrderCreate, OrderResponse
from cantina.services.customers import adjust_customer_totals

logger = structlog.get_logger()


def business_day() -> date:
    """Today's date at the canteen; order numbers restart at local midnight"""
    return datetime.now(ZoneInfo(settings.timezone)).date()


def _dialect_insert(db: AsyncSession):
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def next_order_number(db: AsyncSession, day: date) -> int:
    """
    Allocate the next order number of ``day``.

    One upsert on the per-day counter row: the first order of a day inserts
    it, seeded from any orders already numbered that day; later orders
    increment it. The row stays locked until the surrounding transaction
    ends, and concurrent first orders of a day both get a number.
    """
    counters = OrderCounter.__table__
    seed = (
        select(func.coalesce(func.max(Order.order_number), 0) + 1)
        .where(Order.business_day == day)
        .scalar_subquery()
    )
    stmt = _dialect_insert(db)(counters).values(day=day, last_number=seed)
    stmt = stmt.on_conflict_do_update(
        index_elements=[counters.c.day],
        set_={"last_number": counters.c.last_number + 1},
    ).returning(counters.c.last_number)
    return int(await db.scalar(stmt))


async def lock_order(db: AsyncSession, order_id: UUID) -> Optional[Order]:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def lock_debt_for_order(db: AsyncSession, order_id: UUID) -> Optional[Debt]:
    result = await db.execute(
        select(Debt)
        .where(Debt.order_id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def load_order(db: AsyncSession, order_id: UUID) -> Optional[Order]:
    """Load an order with its items and customer"""
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items), selectinload(Order.customer))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@degrade_on_store_error(lambda: None)
async def get_order(db: AsyncSession, order_id: UUID) -> Optional[Order]:
    """Read-path lookup; None when the order is missing or the store is down"""
    return await load_order(db, order_id)


@degrade_on_store_error(lambda: ([], 0))
async def list_orders(
    db: AsyncSession,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    customer_id: Optional[UUID] = None,
    order_status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    page: int = 1,
    page_size: int = 50,
) -> Tuple[List[Order], int]:
    """Filtered orders, newest first, with the total count"""
    query = select(Order)
    count_query = select(func.count(Order.id))

    conditions = []
    if start:
        conditions.append(Order.created_at >= start)
    if end:
        conditions.append(Order.created_at <= end)
    if customer_id:
        conditions.append(Order.customer_id == customer_id)
    if order_status:
        conditions.append(Order.order_status == order_status)
    if payment_status:
        conditions.append(Order.payment_status == payment_status)

    if conditions:
        query = query.where(*conditions)
        count_query = count_query.where(*conditions)

    total = await db.scalar(count_query)

    query = (
        query.options(selectinload(Order.items), selectinload(Order.customer))
        .order_by(Order.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(query)
    return list(result.scalars().all()), total


def publish_order(
    order: Order,
    created: bool = False,
    order_status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
) -> None:
    """Send the notifications for a committed change; failures are only logged"""
    try:
        data = OrderResponse.model_validate(order).model_dump(mode="json")
        if created:
            events.order_created(data)
            return
        if order_status is not None:
            events.order_status_changed(order.id, order_status.value)
        if payment_status is not None:
            events.payment_status_changed(order.id, payment_status.value)
        events.order_updated(order.id, data)
    except Exception as e:
        logger.error("Failed to publish order event", order_id=str(order.id), error=str(e))


async def create_order(db: AsyncSession, data: OrderCreate) -> Order:
    """
    Place an order with its items.

    Payment always starts pending. A pay-later order also opens a debt for
    the full total and adds it to the customer's ``total_debt``.
    """
    async with transaction(db, "create_order", customer_id=str(data.customer_id)):
        customer = await db.get(Customer, data.customer_id)
        if not customer:
            raise NotFoundError("Customer not found")

        day = business_day()
        order_number = await next_order_number(db, day)
        total_amount = round_money(data.total_amount)

        order = Order(
            customer_id=customer.id,
            order_number=order_number,
            business_day=day,
            total_amount=total_amount,
            payment_method=data.payment_method,
            payment_status=PaymentStatus.PENDING,
            order_status=OrderStatus.AWAITING_PAYMENT,
            is_walk_in=data.is_walk_in,
            notes=data.notes,
        )
        order.items = [
            OrderItem(
                position=position,
                product_id=item.product_id,
                product_name=item.product_name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                flavor=item.flavor,
                subtotal=item.subtotal if item.subtotal is not None else round_money(item.unit_price * item.quantity),
            )
            for position, item in enumerate(data.items)
        ]
        db.add(order)
        await db.flush()

        if data.payment_method == PaymentMethod.PAY_LATER:
            db.add(Debt(customer_id=customer.id, order_id=order.id, amount=total_amount, is_paid=False))
            await adjust_customer_totals(db, customer.id, debt_delta=total_amount)

    logger.info(
        "Order created",
        order_id=str(order.id),
        order_number=order_number,
        customer_id=str(data.customer_id),
        payment_method=data.payment_method.value,
        total_amount=str(total_amount),
        item_count=len(data.items),
    )

    order = await load_order(db, order.id)
    publish_order(order, created=True)
    return order


async def cancel_order(db: AsyncSession, order_id: UUID) -> Optional[Order]:
    """
    Cancel an order; unknown ids are ignored and return None.

    A still-pending payment becomes cancelled. An unpaid pay-later debt is
    removed and its amount taken off the customer's ``total_debt``; a debt
    that was already paid stays as history.
    """
    async with transaction(db, "cancel_order", order_id=str(order_id)):
        order = await lock_order(db, order_id)
        if not order:
            return None

        if order.order_status == OrderStatus.CANCELLED:
            return await load_order(db, order_id)

        order.order_status = OrderStatus.CANCELLED
        payment_cancelled = order.payment_status == PaymentStatus.PENDING
        if payment_cancelled:
            order.payment_status = PaymentStatus.CANCELLED

        debt_removed = False
        if order.payment_method == PaymentMethod.PAY_LATER:
            debt = await lock_debt_for_order(db, order.id)
            if debt and not debt.is_paid:
                await db.delete(debt)
                await adjust_customer_totals(db, order.customer_id, debt_delta=-round_money(order.total_amount))
                debt_removed = True

    logger.info("Order cancelled", order_id=str(order_id), debt_removed=debt_removed)

    order = await load_order(db, order_id)
    publish_order(
        order,
        order_status=OrderStatus.CANCELLED,
        payment_status=PaymentStatus.CANCELLED if payment_cancelled else None,
    )
    return order


async def update_order_status(db: AsyncSession, order_id: UUID, status: OrderStatus) -> Order:
    """
    Move an order forward through the kitchen statuses.

    Skipping ahead is allowed, going back is not. Cancelling goes through
    ``cancel_order``.
    """
    if status == OrderStatus.CANCELLED:
        order = await cancel_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    async with transaction(db, "update_order_status", order_id=str(order_id), status=status.value):
        order = await lock_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")

        current = order.order_status
        if current == OrderStatus.CANCELLED:
            raise InvalidStateError("Order is cancelled")
        if ORDER_STATUS_SEQUENCE.index(status) < ORDER_STATUS_SEQUENCE.index(current):
            raise InvalidStateError(f"Order status cannot go back from {current.value} to {status.value}")

        changed = status != current
        order.order_status = status

    order = await load_order(db, order_id)
    if changed:
        logger.info("Order status updated", order_id=str(order_id), previous=current.value, status=status.value)
        publish_order(order, order_status=status)
    return order
