"""Order models"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Text, Integer, Boolean, Numeric, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from cantina.database import Base


class PaymentMethod(str, enum.Enum):
    PIX = "pix"
    CASH = "cash"
    CARD = "card"
    PAY_LATER = "pay_later"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class OrderStatus(str, enum.Enum):
    """Kitchen progress; moves forward only, cancelled is terminal"""
    AWAITING_PAYMENT = "awaiting_payment"
    PREPARING = "preparing"
    READY = "ready"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ORDER_STATUS_SEQUENCE = [
    OrderStatus.AWAITING_PAYMENT,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.DELIVERED,
]


class Order(Base):
    """Customer orders"""
    __tablename__ = "orders"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    
    # Sequential per business day, starting at 1
    order_number = Column(Integer, nullable=False)
    business_day = Column(Date, nullable=False, index=True)
    
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    order_status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.AWAITING_PAYMENT)
    
    is_walk_in = Column(Boolean, nullable=False, default=False)  # Placed at the counter by staff
    notes = Column(Text)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    customer = relationship("Customer", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.position")
    debt = relationship("Debt", back_populates="order", uselist=False)


class OrderItem(Base):
    """Snapshot of a product line at the time the order was placed"""
    __tablename__ = "order_items"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    
    product_id = Column(Integer, nullable=False)  # Catalog id, no foreign key
    product_name = Column(String(255), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    flavor = Column(String(100))
    subtotal = Column(Numeric(10, 2), nullable=False)
    
    # Relationships
    order = relationship("Order", back_populates="items")


class OrderCounter(Base):
    """Last order number handed out per business day"""
    __tablename__ = "order_counters"
    
    day = Column(Date, primary_key=True)
    last_number = Column(Integer, nullable=False, default=0)
