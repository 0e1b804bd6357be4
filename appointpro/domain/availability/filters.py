"""
Category filter for availability queries

The categoryId query parameter has three meanings:
    absent          -> AllCategories (no filter)
    "" or "null"    -> Uncategorized (only rows without a category)
    "<int>"         -> SpecificCategory(id)
"""

from dataclasses import dataclass
from typing import Optional, Union

from ...shared.errors import ValidationFailed


@dataclass(frozen=True)
class AllCategories:
    def predicate(self, column):
        return None


@dataclass(frozen=True)
class Uncategorized:
    def predicate(self, column):
        return column.is_(None)


@dataclass(frozen=True)
class SpecificCategory:
    category_id: int

    def predicate(self, column):
        return column == self.category_id


CategoryFilter = Union[AllCategories, Uncategorized, SpecificCategory]


def parse_category_filter(raw: Optional[str]) -> CategoryFilter:
    if raw is None:
        return AllCategories()

    value = raw.strip()
    if value == "" or value.lower() == "null":
        return Uncategorized()

    try:
        return SpecificCategory(int(value))
    except ValueError as e:
        raise ValidationFailed(
            "categoryId must be an integer, empty or 'null'", error_code="INVALID_CATEGORY_FILTER"
        ) from e


def category_scope(category_id: Optional[int]) -> CategoryFilter:
    """The scope a stored row belongs to: its own category, or the uncategorized pool"""
    return Uncategorized() if category_id is None else SpecificCategory(category_id)


def apply_filter(query, flt: CategoryFilter, column):
    clause = flt.predicate(column)
    return query if clause is None else query.filter(clause)
