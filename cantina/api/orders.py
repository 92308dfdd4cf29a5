"""Order management API endpoints"""

from typing import Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cantina.api.auth import require_admin
from cantina.database import get_db
from cantina.errors import NotFoundError
from cantina.models.order import OrderStatus, PaymentStatus
from cantina.models.user import User
from cantina.schemas.order import (
    OrderCreate,
    OrderCreateResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    PaymentStatusUpdate,
)
from cantina.services import orders as order_service
from cantina.services import payments as payment_service

router = APIRouter()


@router.post("", response_model=OrderCreateResponse, status_code=201)
async def create_order(
    order_data: OrderCreate,
    db: AsyncSession = Depends(get_db),
):
    """Place a new order"""
    order = await order_service.create_order(db, order_data)
    return OrderCreateResponse(order_id=order.id, order_number=order.order_number)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    customer_id: Optional[UUID] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List orders with filters and pagination"""
    orders, total = await order_service.list_orders(
        db,
        start=from_date,
        end=to_date,
        customer_id=customer_id,
        order_status=status,
        payment_status=payment_status,
        page=page,
        page_size=page_size,
    )
    return OrderListResponse(
        items=[OrderResponse.model_validate(order) for order in orders],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get order details with items and customer"""
    order = await order_service.get_order(db, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_status(
    order_id: UUID,
    update: OrderStatusUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Advance the kitchen status of an order"""
    return await order_service.update_order_status(db, order_id, update.status)


@router.patch("/{order_id}/payment-status", response_model=OrderResponse)
async def update_payment_status(
    order_id: UUID,
    update: PaymentStatusUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Confirm or revert a payment"""
    return await payment_service.update_payment_status(db, order_id, update.status)


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: UUID,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an order and release its unpaid debt"""
    order = await order_service.cancel_order(db, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order
