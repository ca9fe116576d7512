"""Pytest fixtures for opportunity-intake tests."""

from datetime import date

import pytest

from opportunity_intake.models.catalog import Principal, Product
from opportunity_intake.session import OpportunityIntake
from opportunity_intake.store import InMemoryCatalog, InMemoryOpportunityRepository

MARCH_2025 = date(2025, 3, 15)


@pytest.fixture
def principals() -> list[Principal]:
    """Three principals; Acme and Blue Ridge share a product."""
    return [
        Principal(
            id="p-acme",
            name="Acme Foods",
            organization_name="Acme Foods",
            organization_type="principal",
            product_ids=("prod-sauce",),
        ),
        Principal(id="p-blue", name="Blue Ridge Farms", organization_type="principal"),
        Principal(id="p-cold", name="Coldwater Dairy", organization_type="principal"),
    ]


@pytest.fixture
def products() -> list[Product]:
    """Catalog products across categories, one uncategorized and one inactive."""
    return [
        Product(id="prod-sauce", name="Smoky Sauce", category="Sauce"),
        Product(id="prod-rub", name="Dry Rub", category="Seasoning", principal_ids=("p-acme", "p-blue")),
        Product(id="prod-milk", name="Whole Milk", category="Dairy", principal_ids=("p-cold",)),
        Product(id="prod-box", name="Sampler Box", category=None, principal_ids=("p-blue",)),
        Product(id="prod-old", name="Retired Jerky", category="Protein", is_active=False, principal_ids=("p-acme",)),
    ]


@pytest.fixture
def catalog(principals: list[Principal], products: list[Product]) -> InMemoryCatalog:
    return InMemoryCatalog(principals, products)


@pytest.fixture
def repository() -> InMemoryOpportunityRepository:
    return InMemoryOpportunityRepository()


@pytest.fixture
def session(catalog: InMemoryCatalog, repository: InMemoryOpportunityRepository) -> OpportunityIntake:
    """Create-mode session with the clock fixed in March 2025."""
    intake = OpportunityIntake(catalog, repository, clock=lambda: MARCH_2025)
    intake.initialize()
    return intake


@pytest.fixture
def catalog_yaml() -> str:
    """Catalog snapshot in YAML form."""
    return """
principals:
  - id: p-acme
    name: Acme Foods
    product_ids: [prod-sauce]
  - id: p-blue
    name: Blue Ridge Farms
products:
  - id: prod-sauce
    name: Smoky Sauce
    category: Sauce
  - id: prod-rub
    name: Dry Rub
    category: Seasoning
    principal_ids: [p-acme, p-blue]
  - id: prod-box
    name: Sampler Box
    principal_ids: [p-blue]
"""
