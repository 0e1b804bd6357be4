"""Availability domain schemas - Pydantic models for validation"""

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator


class AvailableDateCreate(BaseModel):
    date: dt.date
    is_available: bool = True
    max_appointments: int = 10
    service_category_id: Optional[int] = None

    @field_validator("max_appointments")
    @classmethod
    def validate_capacity(cls, v):
        if v < 0:
            raise ValueError("max_appointments cannot be negative")
        return v


class AvailableDateUpdate(BaseModel):
    """Partial update - unset fields are left alone, explicit null clears the category"""

    date: Optional[dt.date] = None
    is_available: Optional[bool] = None
    max_appointments: Optional[int] = None
    service_category_id: Optional[int] = None


class AvailableDateResponse(BaseModel):
    id: int
    date: dt.date
    formatted_date: str
    day_name: str
    day_short: str
    month_short: str
    day_number: str
    year: str
    is_available: bool
    max_appointments: int
    service_category_id: Optional[int] = None
    service_category_name: Optional[str] = None
    service_category_slug: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class TimeSlotCreate(BaseModel):
    """Times arrive as HH:MM strings and are checked by the service"""

    date: dt.date
    start_time: str
    end_time: str
    is_available: bool = True
    extra_price: Decimal = Decimal("0.00")
    service_category_id: Optional[int] = None

    @field_validator("extra_price")
    @classmethod
    def validate_extra_price(cls, v):
        if v < 0:
            raise ValueError("extra_price cannot be negative")
        return v


class TimeSlotUpdate(BaseModel):
    date: Optional[dt.date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_available: Optional[bool] = None
    extra_price: Optional[Decimal] = None
    service_category_id: Optional[int] = None


class TimeSlotResponse(BaseModel):
    id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    is_available: bool
    extra_price: Decimal
    service_category_id: Optional[int] = None
    service_category_name: Optional[str] = None
    service_category_slug: Optional[str] = None
    created_at: Optional[dt.datetime] = None
