"""Debt model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, Boolean, DateTime, ForeignKey, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from cantina.database import Base


class Debt(Base):
    """Outstanding balance of a pay-later order (one per order)"""
    __tablename__ = "debts"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    order_id = Column(UUID(as_uuid=True), ForeignKey("orders.id"), unique=True, nullable=False)
    
    amount = Column(Numeric(10, 2), nullable=False)  # Copied from the order total
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    customer = relationship("Customer", back_populates="debts")
    order = relationship("Order", back_populates="debt")
