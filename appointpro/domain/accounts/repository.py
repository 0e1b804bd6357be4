"""Account repository - Database operations for users"""

from typing import Optional

from sqlalchemy.orm import Session

from ...database import build_partial_update
from ...models import User


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_phone(db: Session, phone: str) -> Optional[User]:
        return db.query(User).filter(User.phone == phone).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        user = User(**user_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_user(db: Session, user: User, fields: dict) -> User:
        """Apply a sparse set of column changes with a single UPDATE"""
        stmt = build_partial_update(User, User.id == user.id, fields)
        if stmt is not None:
            db.execute(stmt)
            db.commit()
        db.refresh(user)
        return user
