"""Customer schemas"""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from cantina.money import Money


def normalize_phone(phone: str) -> str:
    """Keep only the digits of a phone number"""
    return "".join(ch for ch in phone if ch.isdigit())


class IdentifyRequest(BaseModel):
    """Customer identification by name and phone"""
    name: str = Field(min_length=2, max_length=255)
    phone: str

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("name must have at least 2 characters")
        return v

    @field_validator("phone")
    @classmethod
    def phone_digits(cls, v: str) -> str:
        digits = normalize_phone(v)
        if not 8 <= len(digits) <= 15:
            raise ValueError("invalid phone number")
        return digits


class CustomerResponse(BaseModel):
    """Customer response"""
    id: UUID
    name: str
    phone: str
    total_spent: Money
    total_debt: Money
    created_at: datetime

    class Config:
        from_attributes = True


class RecalculateDebtResponse(BaseModel):
    customer_id: UUID
    previous_total_debt: Money
    total_debt: Money
