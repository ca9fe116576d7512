"""Collaborator interfaces: principal/product directory and opportunity persistence."""

from abc import ABC, abstractmethod
from typing import Optional

from opportunity_intake.models.catalog import Principal, Product
from opportunity_intake.models.draft import OpportunityPayload


class PersistenceError(Exception):
    """The persistence collaborator rejected or failed a request."""


class OpportunityRepository(ABC):
    """
    Persistence collaborator. One call per opportunity record;
    no batch API is assumed. Timeouts and retries belong here, not to callers.
    """

    @abstractmethod
    def create_opportunity(self, payload: OpportunityPayload) -> str:
        """
        Create one opportunity record and return its ID.
        """
        pass

    @abstractmethod
    def update_opportunity(self, opportunity_id: str, payload: OpportunityPayload) -> None:
        """
        Overwrite an existing opportunity record.
        """
        pass

    def name_exists(self, name: str) -> bool:
        """
        Whether an opportunity with this exact name already exists.
        Default: names are never reported as taken.
        """
        return False


class CatalogDirectory(ABC):
    """Read-only principal/product lookup, refreshed by the caller."""

    @abstractmethod
    def list_principals(self) -> list[Principal]:
        pass

    @abstractmethod
    def list_products_for_principals(self, principal_ids: list[str]) -> list[Product]:
        """
        Products linked to any of the given principals.
        """
        pass

    def get_principal(self, principal_id: str) -> Optional[Principal]:
        for principal in self.list_principals():
            if principal.id == principal_id:
                return principal
        return None
