"""
Booking engine - validates and records appointments and their status changes

Listed availability is advisory: booking does not re-check slot capacity or
overlap. The reservation policy is the single place a stricter rule can be
plugged in.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from ...config import STRICT_STATUS_TRANSITIONS
from ...models import APPOINTMENT_STATUSES, Appointment, User
from ...shared.errors import ConflictError, NotFoundOrForbidden, ValidationFailed
from ...shared.validators import normalize_appointment_date, normalize_appointment_time
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentUpdate

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("service", "appointment_date", "appointment_time", "location", "price")

ORDER_ID_PATTERN = re.compile(r"^appointment_(\d+)$")

# Documented lifecycle. Only enforced when STRICT_STATUS_TRANSITIONS is on.
STATUS_TRANSITIONS: dict[str, frozenset] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"in-progress", "cancelled"}),
    "in-progress": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}


def validate_status(status: Optional[str]) -> str:
    if status not in APPOINTMENT_STATUSES:
        raise ValidationFailed(
            f"Invalid status. Must be one of: {', '.join(APPOINTMENT_STATUSES)}",
            error_code="INVALID_STATUS",
        )
    return status


def check_transition(current: str, new: str, strict: bool = False) -> None:
    """Reject lifecycle edges outside STATUS_TRANSITIONS when strict; re-setting the same status is allowed"""
    validate_status(new)
    if not strict or current == new:
        return
    if new not in STATUS_TRANSITIONS.get(current, frozenset()):
        raise ConflictError(
            f"Cannot change status from {current} to {new}",
            error_code="INVALID_STATUS_TRANSITION",
            extra={"allowed": sorted(STATUS_TRANSITIONS.get(current, ()))},
        )


def parse_order_id(order_id: Optional[str]) -> Optional[int]:
    """Appointment id from an order reference like "appointment_42", else None"""
    if not order_id:
        return None
    match = ORDER_ID_PATTERN.match(order_id.strip())
    return int(match.group(1)) if match else None


class SlotReservationPolicy(ABC):
    """Hook run before an appointment is inserted. Raise ConflictError to refuse."""

    @abstractmethod
    def reserve(self, db: Session, booking: dict[str, Any]) -> None: ...


class AdvisoryReservation(SlotReservationPolicy):
    """Accepts every booking; concurrent bookings of the same slot both succeed"""

    def reserve(self, db: Session, booking: dict[str, Any]) -> None:
        return None


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, dict) and not value:
        return True
    return False


class BookingEngine:
    """Service layer for appointment business logic"""

    def __init__(
        self,
        db: Session,
        reservation: Optional[SlotReservationPolicy] = None,
        strict_transitions: Optional[bool] = None,
    ):
        self.db = db
        self.repo = AppointmentRepository()
        self.reservation = reservation or AdvisoryReservation()
        self.strict_transitions = (
            STRICT_STATUS_TRANSITIONS if strict_transitions is None else strict_transitions
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_for_user(self, user: User) -> list[Appointment]:
        return self.repo.list_for_user(self.db, user.id)

    def list_upcoming(self, user: User, now: Optional[datetime] = None) -> list[Appointment]:
        now = now or datetime.now()
        return self.repo.list_upcoming(self.db, user.id, now.date(), now.strftime("%H:%M:%S"))

    def list_past(self, user: User, now: Optional[datetime] = None) -> list[Appointment]:
        now = now or datetime.now()
        return self.repo.list_past(self.db, user.id, now.date(), now.strftime("%H:%M:%S"))

    def get_for_owner(self, appointment_id: int, user: User) -> Appointment:
        appointment = self.repo.get_for_owner(self.db, appointment_id, user.id)
        if not appointment:
            raise NotFoundOrForbidden("Appointment not found or not authorized")
        return appointment

    def list_all(self) -> list[Appointment]:
        return self.repo.list_all_with_customers(self.db)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_appointment(self, data: AppointmentCreate, user: User) -> Appointment:
        missing = [name for name in REQUIRED_FIELDS if _is_missing(getattr(data, name))]
        if missing:
            raise ValidationFailed(
                "All required fields must be provided",
                error_code="MISSING_REQUIRED_FIELD",
                extra={"missing_fields": missing},
            )

        try:
            appointment_time = normalize_appointment_time(data.appointment_time)
        except ValueError as e:
            raise ValidationFailed(
                "Invalid time format provided. Please select a valid time slot.",
                error_code="INVALID_TIME_FORMAT",
            ) from e

        try:
            appointment_date = normalize_appointment_date(data.appointment_date)
        except ValueError as e:
            raise ValidationFailed(
                "Invalid date format. Please provide date in YYYY-MM-DD format",
                error_code="INVALID_DATE_FORMAT",
            ) from e

        if data.price < 0:
            raise ValidationFailed("Price cannot be negative", error_code="INVALID_PRICE")

        status = "pending" if data.status is None else validate_status(data.status)

        booking = {
            "user_id": user.id,
            "service": data.service.strip(),
            "appointment_date": appointment_date,
            "appointment_time": appointment_time,
            "location": data.location,
            "price": data.price,
            "notes": data.notes or None,
            "room_type": data.room_type or None,
            "room_type_slug": data.room_type_slug or None,
            "property_type": data.property_type or None,
            "property_type_slug": data.property_type_slug or None,
            "quantity": data.quantity or 1,
            "service_category": data.service_category or None,
            "service_category_slug": data.service_category_slug or None,
            "extra_price": data.extra_price if data.extra_price is not None else Decimal("0.00"),
            "cod_fee": data.cod_fee if data.cod_fee is not None else Decimal("0.00"),
            "payment_method": data.payment_method or None,
            "status": status,
        }

        self.reservation.reserve(self.db, booking)

        appointment = self.repo.create(self.db, **booking)
        logger.info(
            f"📅 Appointment {appointment.id} booked by user {user.id} "
            f"for {appointment_date} {appointment_time} ({status})"
        )
        return appointment

    def update_appointment(self, appointment_id: int, user: User, data: AppointmentUpdate) -> Appointment:
        """Owner-only partial update of status, date and time"""
        appointment = self.get_for_owner(appointment_id, user)

        supplied = data.model_dump(exclude_unset=True, exclude_none=True)
        fields: dict[str, Any] = {}

        if "status" in supplied:
            check_transition(appointment.status, supplied["status"], self.strict_transitions)
            fields["status"] = supplied["status"]

        if "appointment_date" in supplied:
            try:
                fields["appointment_date"] = normalize_appointment_date(supplied["appointment_date"])
            except ValueError as e:
                raise ValidationFailed(
                    "Invalid date format. Please provide date in YYYY-MM-DD format",
                    error_code="INVALID_DATE_FORMAT",
                ) from e

        if "appointment_time" in supplied:
            try:
                fields["appointment_time"] = normalize_appointment_time(supplied["appointment_time"])
            except ValueError as e:
                raise ValidationFailed(
                    "Invalid time format provided. Please select a valid time slot.",
                    error_code="INVALID_TIME_FORMAT",
                ) from e

        if fields:
            logger.info(f"✏️ User {user.id} updated appointment {appointment_id}: {sorted(fields)}")
        return self.repo.update(self.db, appointment, fields)

    def set_status(self, appointment_id: int, status: str) -> Appointment:
        """Administrative status change"""
        validate_status(status)
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundOrForbidden("Appointment not found", error_code="APPOINTMENT_NOT_FOUND")

        check_transition(appointment.status, status, self.strict_transitions)
        logger.info(f"🔄 Appointment {appointment_id}: {appointment.status} -> {status}")
        return self.repo.update(self.db, appointment, {"status": status})

    def confirm_from_order(self, order_id: Optional[str]) -> Optional[Appointment]:
        """
        Apply a completed payment to its appointment.

        Orders named "appointment_<id>" force that appointment to confirmed
        whatever its current status. Other order ids are ignored.
        """
        appointment_id = parse_order_id(order_id)
        if appointment_id is None:
            logger.info(f"ℹ️ Order {order_id!r} is not an appointment order - nothing to confirm")
            return None

        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            logger.warning(f"⚠️ Paid order {order_id} refers to missing appointment {appointment_id}")
            return None

        appointment = self.repo.update(self.db, appointment, {"status": "confirmed"})
        logger.info(f"✅ Appointment {appointment_id} confirmed by payment")
        return appointment
