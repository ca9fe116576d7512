"""Collaborator interfaces and adapters for catalog lookup and opportunity persistence."""

from opportunity_intake.store.base import (
    CatalogDirectory,
    OpportunityRepository,
    PersistenceError,
)
from opportunity_intake.store.memory import InMemoryCatalog, InMemoryOpportunityRepository
from opportunity_intake.store.rest import RestCatalogDirectory, RestOpportunityRepository

__all__ = [
    "CatalogDirectory",
    "InMemoryCatalog",
    "InMemoryOpportunityRepository",
    "OpportunityRepository",
    "PersistenceError",
    "RestCatalogDirectory",
    "RestOpportunityRepository",
]
