"""Appointment router - FastAPI endpoints for booking and appointment management"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    AdminAppointmentResponse,
    AppointmentCreate,
    AppointmentCreatedResponse,
    AppointmentResponse,
    AppointmentUpdate,
    StatusUpdate,
)
from .service import BookingEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user/appointments", tags=["Appointments"])
admin_router = APIRouter(prefix="/api/admin/appointments", tags=["Appointments Admin"])


def get_booking_engine(db: Session = Depends(get_db)) -> BookingEngine:
    """Dependency injection for BookingEngine"""
    return BookingEngine(db)


@router.get("", response_model=list[AppointmentResponse])
def list_appointments(
    current_user: User = Depends(get_current_user),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.list_for_user(current_user)


@router.get("/upcoming", response_model=list[AppointmentResponse])
def list_upcoming_appointments(
    current_user: User = Depends(get_current_user),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """Future appointments that are not completed or cancelled, soonest first"""
    return engine.list_upcoming(current_user)


@router.get("/past", response_model=list[AppointmentResponse])
def list_past_appointments(
    current_user: User = Depends(get_current_user),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.list_past(current_user)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.get_for_owner(appointment_id, current_user)


@router.post("", response_model=AppointmentCreatedResponse, status_code=201)
def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    engine: BookingEngine = Depends(get_booking_engine),
):
    appointment = engine.create_appointment(data, current_user)
    return AppointmentCreatedResponse(
        message="Appointment created successfully",
        appointment_id=appointment.id,
        appointment=AppointmentResponse.model_validate(appointment),
    )


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    engine: BookingEngine = Depends(get_booking_engine),
):
    """Reschedule or cancel one of the caller's appointments"""
    return engine.update_appointment(appointment_id, current_user, data)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=list[AdminAppointmentResponse])
def admin_list_appointments(
    _admin: User = Depends(require_admin),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return [
        AdminAppointmentResponse(
            **AppointmentResponse.model_validate(a).model_dump(),
            customer_name=a.user.full_name if a.user else None,
            customer_phone=a.user.phone if a.user else None,
        )
        for a in engine.list_all()
    ]


@admin_router.put("/{appointment_id}/status", response_model=AppointmentResponse)
def admin_set_status(
    appointment_id: int,
    data: StatusUpdate,
    _admin: User = Depends(require_admin),
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.set_status(appointment_id, data.status)
