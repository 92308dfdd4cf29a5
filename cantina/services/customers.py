"""Customer registry and running-total maintenance"""

from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
import structlog

from cantina.database import degrade_on_store_error, transaction
from cantina.errors import NotFoundError
from cantina.models.customer import Customer
from cantina.models.debt import Debt
from cantina.models.order import Order
from cantina.money import ZERO, round_money

logger = structlog.get_logger()


def _floored(column, delta: Decimal):
    value = column + delta
    return case((value < 0, 0), else_=value)


async def adjust_customer_totals(
    db: AsyncSession,
    customer_id: UUID,
    spent_delta: Decimal = ZERO,
    debt_delta: Decimal = ZERO,
) -> None:
    """
    Add deltas to a customer's running totals in one UPDATE.

    The increment happens in SQL (``total = total + delta``) so concurrent
    orders for the same customer do not overwrite each other. Results are
    floored at zero.
    """
    spent_delta = round_money(spent_delta)
    debt_delta = round_money(debt_delta)
    if not spent_delta and not debt_delta:
        return

    await db.execute(
        update(Customer)
        .where(Customer.id == customer_id)
        .values(
            total_spent=_floored(Customer.total_spent, spent_delta),
            total_debt=_floored(Customer.total_debt, debt_delta),
        )
        .execution_options(synchronize_session="fetch")
    )
    logger.debug(
        "Customer totals adjusted",
        customer_id=str(customer_id),
        spent_delta=str(spent_delta),
        debt_delta=str(debt_delta),
    )


async def identify_customer(db: AsyncSession, name: str, phone: str) -> Customer:
    """
    Find the customer owning ``phone`` or register a new one.

    ``phone`` must already be normalized to digits; the name of an existing
    customer is left as first registered.
    """
    result = await db.execute(select(Customer).where(Customer.phone == phone))
    customer = result.scalar_one_or_none()
    if customer:
        logger.debug("Customer found", customer_id=str(customer.id))
        return customer

    try:
        async with transaction(db, "identify_customer", phone=phone):
            customer = Customer(name=name.strip(), phone=phone, total_spent=ZERO, total_debt=ZERO)
            db.add(customer)
            await db.flush()
    except IntegrityError:
        # Registered concurrently by another request
        result = await db.execute(select(Customer).where(Customer.phone == phone))
        return result.scalar_one()

    logger.info("New customer created", customer_id=str(customer.id), name=customer.name, phone=phone)
    return customer


@degrade_on_store_error(lambda: None)
async def get_customer(db: AsyncSession, customer_id: UUID) -> Optional[Customer]:
    result = await db.execute(
        select(Customer)
        .where(Customer.id == customer_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@degrade_on_store_error(list)
async def get_customer_history(db: AsyncSession, customer_id: UUID) -> List[Order]:
    """Orders of a customer, newest first, with their items"""
    result = await db.execute(
        select(Order)
        .where(Order.customer_id == customer_id)
        .options(selectinload(Order.items))
        .order_by(Order.created_at.desc())
    )
    return list(result.scalars().all())


@degrade_on_store_error(list)
async def get_customer_debts(db: AsyncSession, customer_id: UUID) -> List[Debt]:
    result = await db.execute(
        select(Debt)
        .where(Debt.customer_id == customer_id)
        .options(selectinload(Debt.order))
        .order_by(Debt.created_at.desc())
    )
    return list(result.scalars().all())


async def _unpaid_debt_total(db: AsyncSession, customer_id: UUID) -> Decimal:
    total = await db.scalar(
        select(func.coalesce(func.sum(Debt.amount), 0))
        .where(Debt.customer_id == customer_id, Debt.is_paid.is_(False))
    )
    return round_money(total)


async def recalculate_customer_debt(db: AsyncSession, customer_id: UUID) -> Tuple[Decimal, Decimal]:
    """
    Overwrite ``total_debt`` with the sum of the customer's unpaid debts.

    This is the authoritative value; use it to repair drift in the running
    counter. Returns ``(previous, recalculated)``.
    """
    async with transaction(db, "recalculate_customer_debt", customer_id=str(customer_id)):
        result = await db.execute(
            select(Customer)
            .where(Customer.id == customer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        customer = result.scalar_one_or_none()
        if not customer:
            raise NotFoundError("Customer not found")

        previous = round_money(customer.total_debt)
        total = await _unpaid_debt_total(db, customer_id)
        customer.total_debt = total

    if previous != total:
        logger.warning(
            "Customer debt drift corrected",
            customer_id=str(customer_id),
            previous=str(previous),
            total_debt=str(total),
        )
    else:
        logger.debug("Customer debt recalculated", customer_id=str(customer_id), total_debt=str(total))

    return previous, total


async def reconcile_all_customers(db: AsyncSession) -> int:
    """Recompute every customer's debt total; returns how many were corrected"""
    corrected = 0
    async with transaction(db, "reconcile_all_customers"):
        result = await db.execute(
            select(Customer).with_for_update().execution_options(populate_existing=True)
        )
        customers = result.scalars().all()
        sums = await db.execute(
            select(Debt.customer_id, func.sum(Debt.amount))
            .where(Debt.is_paid.is_(False))
            .group_by(Debt.customer_id)
        )
        expected = {customer_id: round_money(total) for customer_id, total in sums.all()}

        for customer in customers:
            total = expected.get(customer.id, ZERO)
            if round_money(customer.total_debt) != total:
                logger.warning(
                    "Customer debt drift corrected",
                    customer_id=str(customer.id),
                    previous=str(customer.total_debt),
                    total_debt=str(total),
                )
                customer.total_debt = total
                corrected += 1

    logger.info("Customer debts reconciled", corrected=corrected)
    return corrected
