"""Customer model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from cantina.database import Base


class Customer(Base):
    """Canteen customers, identified by phone number (digits only)"""
    __tablename__ = "customers"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), unique=True, nullable=False, index=True)
    
    # Running counters, see services.customers.recalculate_customer_debt
    total_spent = Column(Numeric(10, 2), nullable=False, default=0)
    total_debt = Column(Numeric(10, 2), nullable=False, default=0)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    orders = relationship("Order", back_populates="customer")
    debts = relationship("Debt", back_populates="customer")
