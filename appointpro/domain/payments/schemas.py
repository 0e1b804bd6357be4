"""Payment domain schemas - Pydantic models for validation"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ...config import DEFAULT_CURRENCY


class PaymentCreate(BaseModel):
    amount: Decimal
    currency: str = DEFAULT_CURRENCY
    description: str
    order_id: str
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError("Amount must be greater than zero")
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v):
        v = (v or "").strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError("Currency must be a 3-letter code")
        return v

    @field_validator("description", "order_id")
    @classmethod
    def validate_required_text(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Field is required")
        return v


class PaymentCreatedResponse(BaseModel):
    success: bool = True
    payment_id: str
    payment_url: Optional[str] = None
    status: str
    message: str = "Payment created successfully"


class PaymentStatusResponse(BaseModel):
    payment_id: str
    status: str
    gateway_status: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    order_id: Optional[str] = None


class PaymentWebhook(BaseModel):
    # Some deliveries only carry the order reference
    payment_id: Optional[str] = None
    status: str
    order_id: Optional[str] = None
