"""Appointment domain schemas - Pydantic models for validation"""

import datetime as dt
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict


class AppointmentCreate(BaseModel):
    """
    Booking request. Required fields are checked by the booking engine so a
    missing value is reported as a domain validation error, not a schema error.
    """

    service: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None
    location: Optional[Union[dict[str, Any], str]] = None
    price: Optional[Decimal] = None
    notes: Optional[str] = None
    room_type: Optional[str] = None
    room_type_slug: Optional[str] = None
    property_type: Optional[str] = None
    property_type_slug: Optional[str] = None
    quantity: Optional[int] = None
    service_category: Optional[str] = None
    service_category_slug: Optional[str] = None
    extra_price: Optional[Decimal] = None
    cod_fee: Optional[Decimal] = None
    payment_method: Optional[str] = None
    status: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """Owner reschedule/cancel - only supplied fields change"""

    status: Optional[str] = None
    appointment_date: Optional[str] = None
    appointment_time: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str


class AppointmentResponse(BaseModel):
    id: int
    user_id: int
    service: str
    appointment_date: dt.date
    appointment_time: str
    status: str
    location: Union[dict[str, Any], str]
    price: Decimal
    notes: Optional[str] = None
    room_type: Optional[str] = None
    room_type_slug: Optional[str] = None
    property_type: Optional[str] = None
    property_type_slug: Optional[str] = None
    quantity: int
    service_category: Optional[str] = None
    service_category_slug: Optional[str] = None
    extra_price: Decimal
    cod_fee: Decimal
    payment_method: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AdminAppointmentResponse(AppointmentResponse):
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None


class AppointmentCreatedResponse(BaseModel):
    message: str
    appointment_id: int
    appointment: AppointmentResponse
