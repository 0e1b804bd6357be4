"""Catalog repository - Database operations for categories and property types"""

from typing import Optional

from sqlalchemy import delete, insert
from sqlalchemy.orm import Session

from ...models import PropertyType, ServiceCategory, service_category_property_types


class CatalogRepository:
    """Repository for catalog database operations"""

    @staticmethod
    def list_active_categories(db: Session) -> list[ServiceCategory]:
        return (
            db.query(ServiceCategory)
            .filter(ServiceCategory.is_active.is_(True))
            .order_by(ServiceCategory.sort_order, ServiceCategory.name)
            .all()
        )

    @staticmethod
    def get_category(db: Session, category_id: int) -> Optional[ServiceCategory]:
        return db.query(ServiceCategory).filter(ServiceCategory.id == category_id).first()

    @staticmethod
    def list_active_property_types(db: Session) -> list[PropertyType]:
        return (
            db.query(PropertyType)
            .filter(PropertyType.is_active.is_(True))
            .order_by(PropertyType.sort_order, PropertyType.name)
            .all()
        )

    @staticmethod
    def list_property_types_for_category(db: Session, category_id: int) -> list[PropertyType]:
        return (
            db.query(PropertyType)
            .join(
                service_category_property_types,
                service_category_property_types.c.property_type_id == PropertyType.id,
            )
            .filter(
                service_category_property_types.c.service_category_id == category_id,
                PropertyType.is_active.is_(True),
            )
            .order_by(PropertyType.sort_order, PropertyType.name)
            .all()
        )

    @staticmethod
    def existing_property_type_ids(db: Session, ids: list[int]) -> set[int]:
        if not ids:
            return set()
        rows = db.query(PropertyType.id).filter(PropertyType.id.in_(ids)).all()
        return {row[0] for row in rows}

    @staticmethod
    def replace_property_types(db: Session, category_id: int, property_type_ids: list[int]) -> None:
        """Delete then insert the links. Caller owns the transaction."""
        db.execute(
            delete(service_category_property_types).where(
                service_category_property_types.c.service_category_id == category_id
            )
        )
        if property_type_ids:
            db.execute(
                insert(service_category_property_types),
                [
                    {"service_category_id": category_id, "property_type_id": pt_id}
                    for pt_id in property_type_ids
                ],
            )
