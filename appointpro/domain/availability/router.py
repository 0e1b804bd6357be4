"""Availability router - public listings and admin management of dates and slots"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import AvailableDate, AvailableTimeSlot, User
from ...shared.errors import ValidationFailed
from ...shared.validators import strip_time_part
from .filters import parse_category_filter
from .schemas import (
    AvailableDateCreate,
    AvailableDateResponse,
    AvailableDateUpdate,
    TimeSlotCreate,
    TimeSlotResponse,
    TimeSlotUpdate,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Availability"])
admin_router = APIRouter(prefix="/api/admin", tags=["Availability Admin"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def _parse_query_date(value: Optional[str], required: bool = True) -> Optional[date]:
    if not value:
        if required:
            raise ValidationFailed("Date parameter is required", error_code="DATE_REQUIRED")
        return None
    try:
        return date.fromisoformat(strip_time_part(value.strip()))
    except ValueError as e:
        raise ValidationFailed("Invalid date. Use YYYY-MM-DD format", error_code="INVALID_DATE") from e


def _date_response(row: AvailableDate) -> AvailableDateResponse:
    category = row.service_category
    return AvailableDateResponse(
        id=row.id,
        date=row.date,
        formatted_date=row.date.strftime("%B %d, %Y"),
        day_name=row.date.strftime("%A"),
        day_short=row.date.strftime("%a"),
        month_short=row.date.strftime("%b"),
        day_number=row.date.strftime("%d"),
        year=row.date.strftime("%Y"),
        is_available=row.is_available,
        max_appointments=row.max_appointments,
        service_category_id=row.service_category_id,
        service_category_name=category.name if category else None,
        service_category_slug=category.slug if category else None,
        created_at=row.created_at,
    )


def _slot_response(row: AvailableTimeSlot) -> TimeSlotResponse:
    category = row.service_category
    return TimeSlotResponse(
        id=row.id,
        date=row.date,
        start_time=row.start_time,
        end_time=row.end_time,
        is_available=row.is_available,
        extra_price=row.extra_price,
        service_category_id=row.service_category_id,
        service_category_name=category.name if category else None,
        service_category_slug=category.slug if category else None,
        created_at=row.created_at,
    )


# ============================================================================
# PUBLIC
# ============================================================================


@router.get("/available-dates", response_model=list[AvailableDateResponse])
def list_available_dates(
    category_id: Optional[str] = Query(None, alias="categoryId"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Open dates from today on. categoryId: omit for all, empty or 'null' for uncategorized."""
    dates = service.list_available_dates(parse_category_filter(category_id))
    return [_date_response(d) for d in dates]


@router.get("/available-time-slots", response_model=list[TimeSlotResponse])
def list_available_time_slots(
    date_param: Optional[str] = Query(None, alias="date"),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    service: AvailabilityService = Depends(get_availability_service),
):
    day = _parse_query_date(date_param)
    slots = service.list_available_time_slots(day, parse_category_filter(category_id))
    return [_slot_response(s) for s in slots]


# ============================================================================
# ADMIN - DATES
# ============================================================================


@admin_router.get("/available-dates", response_model=list[AvailableDateResponse])
def admin_list_dates(
    _admin: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return [_date_response(d) for d in service.list_all_dates()]


@admin_router.post("/available-dates", response_model=AvailableDateResponse, status_code=201)
def admin_create_date(
    data: AvailableDateCreate,
    admin: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return _date_response(service.create_date(data, admin))


@admin_router.put("/available-dates/{date_id}", response_model=AvailableDateResponse)
def admin_update_date(
    date_id: int,
    data: AvailableDateUpdate,
    _admin: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return _date_response(service.update_date(date_id, data))


@admin_router.delete("/available-dates/{date_id}")
def admin_delete_date(
    date_id: int,
    _admin: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    service.delete_date(date_id)
    return {"message": "Available date deleted successfully"}


# ============================================================================
# ADMIN - TIME SLOTS
# ============================================================================


@admin_router.get("/available-time-slots", response_model=list[TimeSlotResponse])
def admin_list_slots(
    date_param: Optional[str] = Query(None, alias="date"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    _admin: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    day = _parse_query_date(date_param, required=False)
    return [_slot_response(s) for s in service.list_slots_for_admin(day, category_id)]


@admin_router.post("/available-time-slots", response_model=TimeSlotResponse, status_code=201)
def admin_create_slot(
    data: TimeSlotCreate,
    admin: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return _slot_response(service.create_time_slot(data, admin))


@admin_router.put("/available-time-slots/{slot_id}", response_model=TimeSlotResponse)
def admin_update_slot(
    slot_id: int,
    data: TimeSlotUpdate,
    _admin: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    return _slot_response(service.update_time_slot(slot_id, data))


@admin_router.delete("/available-time-slots/{slot_id}")
def admin_delete_slot(
    slot_id: int,
    _admin: User = Depends(require_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    service.delete_time_slot(slot_id)
    return {"message": "Time slot deleted successfully"}
