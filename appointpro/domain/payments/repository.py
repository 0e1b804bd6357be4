"""Payment repository - Database operations for payments"""

from typing import Optional

from sqlalchemy.orm import Session

from ...database import build_partial_update
from ...models import Payment


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def create(db: Session, **data) -> Payment:
        payment = Payment(**data)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    @staticmethod
    def get_by_payment_id(db: Session, payment_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.payment_id == payment_id).first()

    @staticmethod
    def get_for_owner(db: Session, payment_id: str, user_id: int) -> Optional[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.payment_id == payment_id, Payment.user_id == user_id)
            .first()
        )

    @staticmethod
    def set_status(db: Session, payment_id: str, status: str) -> int:
        """Update every row for a gateway payment id. Returns affected row count."""
        stmt = build_partial_update(Payment, Payment.payment_id == payment_id, {"status": status})
        result = db.execute(stmt)
        db.commit()
        return result.rowcount
