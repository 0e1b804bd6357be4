"""Catalog router - service categories and property types"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from .schemas import (
    PropertyTypeAssignment,
    PropertyTypeAssignmentResponse,
    PropertyTypeResponse,
    ServiceCategoryResponse,
)
from .service import CatalogService

router = APIRouter(prefix="/api", tags=["Catalog"])
admin_router = APIRouter(prefix="/api/admin/service-categories", tags=["Catalog Admin"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


@router.get("/service-categories", response_model=list[ServiceCategoryResponse])
def list_service_categories(service: CatalogService = Depends(get_catalog_service)):
    return service.list_categories()


@router.get("/property-types", response_model=list[PropertyTypeResponse])
def list_property_types(service: CatalogService = Depends(get_catalog_service)):
    return service.list_property_types()


@router.get(
    "/service-categories/{category_id}/property-types", response_model=list[PropertyTypeResponse]
)
def list_category_property_types(
    category_id: int, service: CatalogService = Depends(get_catalog_service)
):
    return service.property_types_for_category(category_id)


@admin_router.put("/{category_id}/property-types", response_model=PropertyTypeAssignmentResponse)
def replace_category_property_types(
    category_id: int,
    data: PropertyTypeAssignment,
    _admin: User = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
):
    property_types = service.replace_property_types(category_id, data.property_type_ids)
    return PropertyTypeAssignmentResponse(
        message="Property types updated",
        service_category_id=category_id,
        property_types=[PropertyTypeResponse.model_validate(pt) for pt in property_types],
    )
