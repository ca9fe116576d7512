"""In-memory collaborators: catalog snapshot and opportunity repository."""

from itertools import count
from pathlib import Path
from typing import Iterable

import yaml

from opportunity_intake.models.catalog import Principal, Product
from opportunity_intake.models.draft import OpportunityPayload

from .base import CatalogDirectory, OpportunityRepository, PersistenceError


class InMemoryCatalog(CatalogDirectory):
    """Catalog held in memory; loadable from a YAML snapshot."""

    def __init__(self, principals: Iterable[Principal] = (), products: Iterable[Product] = ()):
        self._principals = list(principals)
        self._products = list(products)

    def list_principals(self) -> list[Principal]:
        return list(self._principals)

    def list_products_for_principals(self, principal_ids: list[str]) -> list[Product]:
        wanted = set(principal_ids)
        offered = {pid for p in self._principals if p.id in wanted for pid in p.product_ids}
        return [
            p for p in self._products if wanted.intersection(p.principal_ids) or p.id in offered
        ]

    @classmethod
    def from_dict(cls, data: dict) -> "InMemoryCatalog":
        principals = [Principal.model_validate(p) for p in data.get("principals", []) or []]
        products = [Product.model_validate(p) for p in data.get("products", []) or []]
        return cls(principals, products)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "InMemoryCatalog":
        """Load catalog from YAML with top-level 'principals' and 'products' lists."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Catalog file {path} must contain a mapping")
        return cls.from_dict(data)


class InMemoryOpportunityRepository(OpportunityRepository):
    """Dict-backed repository with sequential IDs (opp-1, opp-2, ...)."""

    def __init__(self, id_prefix: str = "opp"):
        self._id_prefix = id_prefix
        self._ids = count(1)
        self.records: dict[str, OpportunityPayload] = {}

    def create_opportunity(self, payload: OpportunityPayload) -> str:
        opportunity_id = f"{self._id_prefix}-{next(self._ids)}"
        self.records[opportunity_id] = payload
        return opportunity_id

    def update_opportunity(self, opportunity_id: str, payload: OpportunityPayload) -> None:
        if opportunity_id not in self.records:
            raise PersistenceError(f"Opportunity not found: {opportunity_id}")
        self.records[opportunity_id] = payload

    def name_exists(self, name: str) -> bool:
        return any(r.name == name for r in self.records.values())
