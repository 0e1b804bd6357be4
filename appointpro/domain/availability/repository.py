"""Availability repository - Database operations for dates and time slots"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...database import build_partial_update
from ...models import AvailableDate, AvailableTimeSlot, ServiceCategory
from .filters import CategoryFilter, apply_filter, category_scope


class AvailabilityRepository:
    """Repository for availability database operations"""

    # ------------------------------------------------------------------
    # Dates
    # ------------------------------------------------------------------

    @staticmethod
    def list_open_dates(db: Session, flt: CategoryFilter, today: date) -> list[AvailableDate]:
        query = (
            db.query(AvailableDate)
            .options(joinedload(AvailableDate.service_category))
            .filter(AvailableDate.is_available.is_(True), AvailableDate.date >= today)
        )
        query = apply_filter(query, flt, AvailableDate.service_category_id)
        return query.order_by(AvailableDate.date.asc(), AvailableDate.id.asc()).all()

    @staticmethod
    def list_all_dates(db: Session) -> list[AvailableDate]:
        return (
            db.query(AvailableDate)
            .options(joinedload(AvailableDate.service_category))
            .order_by(AvailableDate.date.asc(), AvailableDate.id.asc())
            .all()
        )

    @staticmethod
    def get_date(db: Session, date_id: int) -> Optional[AvailableDate]:
        return db.query(AvailableDate).filter(AvailableDate.id == date_id).first()

    @staticmethod
    def find_date(
        db: Session, day: date, category_id: Optional[int], exclude_id: Optional[int] = None
    ) -> Optional[AvailableDate]:
        query = db.query(AvailableDate).filter(AvailableDate.date == day)
        query = apply_filter(query, category_scope(category_id), AvailableDate.service_category_id)
        if exclude_id is not None:
            query = query.filter(AvailableDate.id != exclude_id)
        return query.first()

    @staticmethod
    def create_date(db: Session, **data) -> AvailableDate:
        available_date = AvailableDate(**data)
        db.add(available_date)
        db.commit()
        db.refresh(available_date)
        return available_date

    @staticmethod
    def update_date(db: Session, available_date: AvailableDate, fields: dict) -> AvailableDate:
        stmt = build_partial_update(AvailableDate, AvailableDate.id == available_date.id, fields)
        if stmt is not None:
            db.execute(stmt)
            db.commit()
        db.refresh(available_date)
        return available_date

    @staticmethod
    def delete_date(db: Session, available_date: AvailableDate) -> None:
        db.delete(available_date)
        db.commit()

    # ------------------------------------------------------------------
    # Time slots
    # ------------------------------------------------------------------

    @staticmethod
    def list_open_slots(db: Session, day: date, flt: CategoryFilter) -> list[AvailableTimeSlot]:
        query = db.query(AvailableTimeSlot).filter(
            AvailableTimeSlot.date == day, AvailableTimeSlot.is_available.is_(True)
        )
        query = apply_filter(query, flt, AvailableTimeSlot.service_category_id)
        return query.order_by(AvailableTimeSlot.start_time.asc(), AvailableTimeSlot.id.asc()).all()

    @staticmethod
    def list_slots_for_admin(
        db: Session, day: Optional[date] = None, category_id: Optional[int] = None
    ) -> list[AvailableTimeSlot]:
        """Admin view; a category filter also includes the uncategorized slots"""
        query = db.query(AvailableTimeSlot).options(joinedload(AvailableTimeSlot.service_category))
        if day is not None:
            query = query.filter(AvailableTimeSlot.date == day)
        if category_id is not None:
            query = query.filter(
                (AvailableTimeSlot.service_category_id == category_id)
                | AvailableTimeSlot.service_category_id.is_(None)
            )
        return query.order_by(AvailableTimeSlot.date.desc(), AvailableTimeSlot.start_time.asc()).all()

    @staticmethod
    def get_slot(db: Session, slot_id: int) -> Optional[AvailableTimeSlot]:
        return db.query(AvailableTimeSlot).filter(AvailableTimeSlot.id == slot_id).first()

    @staticmethod
    def list_scope_slots(
        db: Session,
        day: date,
        category_id: Optional[int],
        exclude_id: Optional[int] = None,
    ) -> list[AvailableTimeSlot]:
        """Available slots sharing a date and category scope, optionally minus one slot"""
        query = db.query(AvailableTimeSlot).filter(
            AvailableTimeSlot.date == day,
            AvailableTimeSlot.is_available.is_(True),
        )
        query = apply_filter(query, category_scope(category_id), AvailableTimeSlot.service_category_id)
        if exclude_id is not None:
            query = query.filter(AvailableTimeSlot.id != exclude_id)
        return query.order_by(AvailableTimeSlot.start_time).all()

    @staticmethod
    def create_slot(db: Session, **data) -> AvailableTimeSlot:
        slot = AvailableTimeSlot(**data)
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    @staticmethod
    def update_slot(db: Session, slot: AvailableTimeSlot, fields: dict) -> AvailableTimeSlot:
        stmt = build_partial_update(AvailableTimeSlot, AvailableTimeSlot.id == slot.id, fields)
        if stmt is not None:
            db.execute(stmt)
            db.commit()
        db.refresh(slot)
        return slot

    @staticmethod
    def delete_slot(db: Session, slot: AvailableTimeSlot) -> None:
        db.delete(slot)
        db.commit()

    @staticmethod
    def category_exists(db: Session, category_id: int) -> bool:
        return db.query(ServiceCategory.id).filter(ServiceCategory.id == category_id).first() is not None
