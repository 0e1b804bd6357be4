"""Availability service - Business rules for bookable dates and time slots"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import AvailableDate, AvailableTimeSlot, User
from ...shared.errors import ConflictError, NotFoundOrForbidden, ValidationFailed
from ...shared.validators import intervals_overlap, parse_slot_time
from .filters import CategoryFilter
from .repository import AvailabilityRepository
from .schemas import AvailableDateCreate, AvailableDateUpdate, TimeSlotCreate, TimeSlotUpdate

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Service layer for the availability registry"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    # ------------------------------------------------------------------
    # Public reads
    # ------------------------------------------------------------------

    def list_available_dates(self, flt: CategoryFilter, today: Optional[date] = None) -> list[AvailableDate]:
        return self.repo.list_open_dates(self.db, flt, today or date.today())

    def list_available_time_slots(self, day: date, flt: CategoryFilter) -> list[AvailableTimeSlot]:
        return self.repo.list_open_slots(self.db, day, flt)

    # ------------------------------------------------------------------
    # Dates (admin)
    # ------------------------------------------------------------------

    def list_all_dates(self) -> list[AvailableDate]:
        return self.repo.list_all_dates(self.db)

    def _require_category(self, category_id: Optional[int]) -> None:
        if category_id is not None and not self.repo.category_exists(self.db, category_id):
            raise ValidationFailed("Service category does not exist", error_code="INVALID_CATEGORY")

    def create_date(self, data: AvailableDateCreate, admin: User) -> AvailableDate:
        self._require_category(data.service_category_id)

        if self.repo.find_date(self.db, data.date, data.service_category_id):
            raise ConflictError("Date already exists", error_code="DATE_EXISTS")

        try:
            available_date = self.repo.create_date(self.db, **data.model_dump(), created_by=admin.id)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Date already exists", error_code="DATE_EXISTS") from e

        logger.info(f"📅 Admin {admin.id} added available date {available_date.date} (id={available_date.id})")
        return available_date

    def update_date(self, date_id: int, data: AvailableDateUpdate) -> AvailableDate:
        available_date = self.repo.get_date(self.db, date_id)
        if not available_date:
            raise NotFoundOrForbidden("Available date not found", error_code="DATE_NOT_FOUND")

        fields = data.model_dump(exclude_unset=True)
        # Only the category may be cleared with an explicit null
        fields = {k: v for k, v in fields.items() if v is not None or k == "service_category_id"}

        if "service_category_id" in fields:
            self._require_category(fields["service_category_id"])

        if "date" in fields or "service_category_id" in fields:
            new_day = fields.get("date", available_date.date)
            new_category = fields.get("service_category_id", available_date.service_category_id)
            if self.repo.find_date(self.db, new_day, new_category, exclude_id=available_date.id):
                raise ConflictError("Date already exists", error_code="DATE_EXISTS")

        try:
            return self.repo.update_date(self.db, available_date, fields)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Date already exists", error_code="DATE_EXISTS") from e

    def delete_date(self, date_id: int) -> None:
        available_date = self.repo.get_date(self.db, date_id)
        if not available_date:
            raise NotFoundOrForbidden("Available date not found", error_code="DATE_NOT_FOUND")
        self.repo.delete_date(self.db, available_date)
        logger.info(f"🗑️ Deleted available date {date_id}")

    # ------------------------------------------------------------------
    # Time slots (admin)
    # ------------------------------------------------------------------

    def list_slots_for_admin(self, day: Optional[date], category_id: Optional[int]) -> list[AvailableTimeSlot]:
        return self.repo.list_slots_for_admin(self.db, day, category_id)

    @staticmethod
    def _parse_times(start_raw, end_raw):
        try:
            start = parse_slot_time(start_raw)
            end = parse_slot_time(end_raw)
        except ValueError as e:
            raise ValidationFailed("Invalid time format. Use HH:MM format", error_code="INVALID_TIME_FORMAT") from e
        if start >= end:
            raise ValidationFailed("End time must be after start time", error_code="INVALID_TIME_RANGE")
        return start, end

    def _reject_overlap(self, day, category_id, start, end, exclude_id=None) -> None:
        clashes = [
            slot
            for slot in self.repo.list_scope_slots(self.db, day, category_id, exclude_id)
            if intervals_overlap(start, end, slot.start_time, slot.end_time)
        ]
        if clashes:
            logger.info(f"⚠️ Slot {start}-{end} on {day} overlaps slot(s) {[s.id for s in clashes]}")
            raise ConflictError(
                "Time slot overlaps with existing available slot",
                error_code="SLOT_OVERLAP",
                extra={"conflicting_slot_ids": [s.id for s in clashes]},
            )

    def create_time_slot(self, data: TimeSlotCreate, admin: User) -> AvailableTimeSlot:
        start, end = self._parse_times(data.start_time, data.end_time)
        self._require_category(data.service_category_id)
        self._reject_overlap(data.date, data.service_category_id, start, end)

        slot = self.repo.create_slot(
            self.db,
            date=data.date,
            start_time=start,
            end_time=end,
            is_available=data.is_available,
            extra_price=data.extra_price,
            service_category_id=data.service_category_id,
            created_by=admin.id,
        )
        logger.info(f"🕒 Created time slot {slot.id}: {data.date} {start}-{end}")
        return slot

    def update_time_slot(self, slot_id: int, data: TimeSlotUpdate) -> AvailableTimeSlot:
        slot = self.repo.get_slot(self.db, slot_id)
        if not slot:
            raise NotFoundOrForbidden("Time slot not found", error_code="SLOT_NOT_FOUND")

        fields = data.model_dump(exclude_unset=True)
        fields = {k: v for k, v in fields.items() if v is not None or k == "service_category_id"}

        if "service_category_id" in fields:
            self._require_category(fields["service_category_id"])

        time_changed = "start_time" in fields or "end_time" in fields
        scope_changed = "date" in fields or "service_category_id" in fields

        if time_changed:
            start, end = self._parse_times(
                fields.get("start_time", slot.start_time), fields.get("end_time", slot.end_time)
            )
            fields["start_time"], fields["end_time"] = start, end
        else:
            start, end = slot.start_time, slot.end_time

        if time_changed or scope_changed:
            self._reject_overlap(
                fields.get("date", slot.date),
                fields.get("service_category_id", slot.service_category_id),
                start,
                end,
                exclude_id=slot.id,
            )

        return self.repo.update_slot(self.db, slot, fields)

    def delete_time_slot(self, slot_id: int) -> None:
        slot = self.repo.get_slot(self.db, slot_id)
        if not slot:
            raise NotFoundOrForbidden("Time slot not found", error_code="SLOT_NOT_FOUND")
        self.repo.delete_slot(self.db, slot)
        logger.info(f"🗑️ Deleted time slot {slot_id}")
