"""Catalog service - Business logic for categories and property types"""

import logging

from sqlalchemy.orm import Session

from ...database import transaction
from ...models import PropertyType, ServiceCategory
from ...shared.errors import NotFoundOrForbidden, ValidationFailed
from .repository import CatalogRepository

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for the service catalog"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def list_categories(self) -> list[ServiceCategory]:
        return self.repo.list_active_categories(self.db)

    def list_property_types(self) -> list[PropertyType]:
        return self.repo.list_active_property_types(self.db)

    def _require_category(self, category_id: int) -> ServiceCategory:
        category = self.repo.get_category(self.db, category_id)
        if not category:
            raise NotFoundOrForbidden("Service category not found", error_code="CATEGORY_NOT_FOUND")
        return category

    def property_types_for_category(self, category_id: int) -> list[PropertyType]:
        self._require_category(category_id)
        return self.repo.list_property_types_for_category(self.db, category_id)

    def replace_property_types(self, category_id: int, property_type_ids: list[int]) -> list[PropertyType]:
        """
        Replace every property type linked to a category.

        The delete and the inserts commit together or not at all.
        """
        self._require_category(category_id)

        missing = set(property_type_ids) - self.repo.existing_property_type_ids(self.db, property_type_ids)
        if missing:
            raise ValidationFailed(
                "Unknown property type ids",
                error_code="INVALID_PROPERTY_TYPE",
                extra={"invalid_ids": sorted(missing)},
            )

        with transaction(self.db):
            self.repo.replace_property_types(self.db, category_id, property_type_ids)

        logger.info(
            f"🏷️ Category {category_id} property types replaced ({len(property_type_ids)} linked)"
        )
        return self.repo.list_property_types_for_category(self.db, category_id)
