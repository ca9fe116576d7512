"""Product availability for a set of selected principals."""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from pydantic import BaseModel, Field

from opportunity_intake.models.catalog import Principal, Product

if TYPE_CHECKING:
    from opportunity_intake.store.base import CatalogDirectory

logger = logging.getLogger(__name__)

OTHER_CATEGORY = "Other"
AVAILABILITY_POLICIES = ("any", "all")


class ProductGroup(BaseModel):
    """Products sharing one category, for presentation."""

    category: str
    products: list[Product] = Field(default_factory=list)


def group_by_category(products: Iterable[Product]) -> list[ProductGroup]:
    """
    Partition products by category. Categories sort case-insensitively;
    uncategorized products land in a trailing "Other" bucket.
    Product order within a group is preserved.
    """
    buckets: dict[str, list[Product]] = {}
    other: list[Product] = []
    for product in products:
        category = (product.category or "").strip()
        if not category or category.lower() == OTHER_CATEGORY.lower():
            other.append(product)
        else:
            buckets.setdefault(category, []).append(product)
    groups = [
        ProductGroup(category=c, products=buckets[c])
        for c in sorted(buckets, key=lambda c: (c.lower(), c))
    ]
    if other:
        groups.append(ProductGroup(category=OTHER_CATEGORY, products=other))
    return groups


class ProductAvailabilityFilter:
    """
    Computes which products may be offered for the selected principals.
    policy="any": product linked to at least one selected principal (union).
    policy="all": product linked to every selected principal (intersection).
    Links come from Product.principal_ids and Principal.product_ids combined.
    """

    def __init__(
        self,
        products: Iterable[Product],
        principals: Iterable[Principal] = (),
        *,
        policy: str = "any",
        include_inactive: bool = False,
    ):
        if policy not in AVAILABILITY_POLICIES:
            raise ValueError(f"Unknown availability policy: {policy}. Available: {list(AVAILABILITY_POLICIES)}")
        self.policy = policy
        self.include_inactive = include_inactive
        self._products = list(products)
        self._links: dict[str, set[str]] = {p.id: set(p.principal_ids) for p in self._products}
        for principal in principals:
            for product_id in principal.product_ids:
                if product_id in self._links:
                    self._links[product_id].add(principal.id)

    @classmethod
    def from_directory(
        cls,
        directory: "CatalogDirectory",
        *,
        policy: str = "any",
        include_inactive: bool = False,
    ) -> "ProductAvailabilityFilter":
        """Snapshot principals and their products from a directory."""
        principals = directory.list_principals()
        products = directory.list_products_for_principals([p.id for p in principals])
        return cls(products, principals, policy=policy, include_inactive=include_inactive)

    def _is_linked(self, product_id: str, selected: set[str]) -> bool:
        linked = self._links.get(product_id, set())
        if self.policy == "all":
            return selected <= linked
        return bool(linked & selected)

    def available_products(self, principal_ids: Iterable[str]) -> list[Product]:
        """Products usable for the selection, in catalog order. Empty when nothing is selected."""
        selected = {pid for pid in principal_ids if pid}
        if not selected:
            return []
        return [
            p
            for p in self._products
            if (p.is_active or self.include_inactive) and self._is_linked(p.id, selected)
        ]

    def grouped_products(self, principal_ids: Iterable[str]) -> list[ProductGroup]:
        return group_by_category(self.available_products(principal_ids))

    def is_available(self, product_id: Optional[str], principal_ids: Iterable[str]) -> bool:
        if not product_id:
            return False
        return any(p.id == product_id for p in self.available_products(principal_ids))

    def revalidate_selection(
        self,
        product_id: Optional[str],
        principal_ids: Iterable[str],
    ) -> Optional[str]:
        """
        Keep product_id if still available for the selection, else None.
        Clearing an empty selection is a no-op.
        """
        if not product_id:
            return None
        principal_ids = list(principal_ids)
        if self.is_available(product_id, principal_ids):
            return product_id
        logger.debug("Clearing product %s: not available for principals %s", product_id, principal_ids)
        return None
