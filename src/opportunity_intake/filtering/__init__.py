"""Principal-driven product filtering."""

from .products import (
    OTHER_CATEGORY,
    ProductAvailabilityFilter,
    ProductGroup,
    group_by_category,
)

__all__ = [
    "OTHER_CATEGORY",
    "ProductAvailabilityFilter",
    "ProductGroup",
    "group_by_category",
]
