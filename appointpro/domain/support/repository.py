"""Support repository - Database operations for support tickets"""

from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session, joinedload

from ...database import build_partial_update
from ...models import SupportTicket

STATUS_ORDER = case(
    {"open": 1, "in_progress": 2, "resolved": 3, "closed": 4},
    value=SupportTicket.status,
    else_=5,
)
PRIORITY_ORDER = case(
    {"high": 1, "medium": 2, "low": 3},
    value=SupportTicket.priority,
    else_=4,
)


class SupportTicketRepository:
    """Repository for support ticket database operations"""

    @staticmethod
    def list_for_user(db: Session, user_id: int) -> list[SupportTicket]:
        return (
            db.query(SupportTicket)
            .filter(SupportTicket.user_id == user_id)
            .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
            .all()
        )

    @staticmethod
    def get_for_user(db: Session, ticket_id: int, user_id: int) -> Optional[SupportTicket]:
        return (
            db.query(SupportTicket)
            .filter(SupportTicket.id == ticket_id, SupportTicket.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_by_id(db: Session, ticket_id: int) -> Optional[SupportTicket]:
        return db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()

    @staticmethod
    def list_for_admin(db: Session) -> list[SupportTicket]:
        """Open work first: status, then priority, then newest"""
        return (
            db.query(SupportTicket)
            .options(joinedload(SupportTicket.user))
            .order_by(
                STATUS_ORDER, PRIORITY_ORDER, SupportTicket.created_at.desc(), SupportTicket.id.desc()
            )
            .all()
        )

    @staticmethod
    def create(db: Session, **data) -> SupportTicket:
        ticket = SupportTicket(**data)
        db.add(ticket)
        db.commit()
        db.refresh(ticket)
        return ticket

    @staticmethod
    def update(db: Session, ticket_id: int, fields: dict) -> int:
        stmt = build_partial_update(SupportTicket, SupportTicket.id == ticket_id, fields)
        result = db.execute(stmt)
        db.commit()
        return result.rowcount

    @staticmethod
    def stats(db: Session) -> dict:
        def count_where(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        row = db.query(
            func.count(SupportTicket.id).label("total_tickets"),
            count_where(SupportTicket.status == "open").label("open_tickets"),
            count_where(SupportTicket.status == "in_progress").label("in_progress_tickets"),
            count_where(SupportTicket.status == "resolved").label("resolved_tickets"),
            count_where(SupportTicket.status == "closed").label("closed_tickets"),
            count_where(SupportTicket.priority == "high").label("high_priority_tickets"),
            count_where(SupportTicket.priority == "medium").label("medium_priority_tickets"),
            count_where(SupportTicket.priority == "low").label("low_priority_tickets"),
        ).one()
        return {key: int(value or 0) for key, value in row._mapping.items()}
