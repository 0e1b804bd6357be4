"""Catalog domain schemas - service categories and property types"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class PropertyTypeResponse(BaseModel):
    id: int
    name: str
    slug: str
    sort_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class ServiceCategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    sort_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class PropertyTypeAssignment(BaseModel):
    property_type_ids: list[int]

    @field_validator("property_type_ids")
    @classmethod
    def dedupe(cls, v):
        # Keep first occurrence order
        return list(dict.fromkeys(v))


class PropertyTypeAssignmentResponse(BaseModel):
    message: str
    service_category_id: int
    property_types: list[PropertyTypeResponse]
