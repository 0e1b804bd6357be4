"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from ...database import build_partial_update
from ...models import Appointment

CLOSED_STATUSES = ("completed", "cancelled")


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def list_for_user(db: Session, user_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.user_id == user_id)
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
            .all()
        )

    @staticmethod
    def list_upcoming(db: Session, user_id: int, today: date, now_time: str) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.user_id == user_id,
                or_(
                    Appointment.appointment_date > today,
                    and_(Appointment.appointment_date == today, Appointment.appointment_time >= now_time),
                ),
                Appointment.status.notin_(CLOSED_STATUSES),
            )
            .order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc())
            .all()
        )

    @staticmethod
    def list_past(db: Session, user_id: int, today: date, now_time: str) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.user_id == user_id,
                or_(
                    Appointment.appointment_date < today,
                    and_(Appointment.appointment_date == today, Appointment.appointment_time < now_time),
                    Appointment.status == "completed",
                ),
            )
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
            .all()
        )

    @staticmethod
    def list_all_with_customers(db: Session) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(joinedload(Appointment.user))
            .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_for_owner(db: Session, appointment_id: int, user_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id, Appointment.user_id == user_id)
            .first()
        )

    @staticmethod
    def create(db: Session, **data) -> Appointment:
        appointment = Appointment(**data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update(db: Session, appointment: Appointment, fields: dict) -> Appointment:
        stmt = build_partial_update(Appointment, Appointment.id == appointment.id, fields)
        if stmt is not None:
            db.execute(stmt)
            db.commit()
        db.refresh(appointment)
        return appointment
