"""User model for admin authentication"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID
import enum

from cantina.database import Base


class UserRole(str, enum.Enum):
    """User roles; only admins reach the management endpoints"""
    ADMIN = "admin"
    USER = "user"


class User(Base):
    """Dashboard users"""
    __tablename__ = "users"
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    
    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    
    # Profile
    full_name = Column(String(255))
    
    # Role
    role = Column(Enum(UserRole), default=UserRole.USER)
    
    # Status
    is_active = Column(Boolean, default=True)
    
    # Timestamps
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
