"""Unit tests for the in-memory catalog and repository."""

import tempfile
from pathlib import Path

import pytest

from opportunity_intake.models.draft import OpportunityPayload
from opportunity_intake.stages import OpportunityStage
from opportunity_intake.store import InMemoryCatalog, InMemoryOpportunityRepository, PersistenceError


def _make_payload(**kwargs) -> OpportunityPayload:
    defaults = {
        "name": "Acme - Acme Foods - March 2025",
        "organization_name": "Acme",
        "principal_id": "p-acme",
        "stage": OpportunityStage.NEW_LEAD,
    }
    defaults.update(kwargs)
    return OpportunityPayload(**defaults)


class TestInMemoryCatalog:
    """Tests for InMemoryCatalog."""

    def test_products_for_principals(self, catalog) -> None:
        """Products linked from either side are returned, inactive included."""
        ids = [p.id for p in catalog.list_products_for_principals(["p-acme"])]
        assert ids == ["prod-sauce", "prod-rub", "prod-old"]

    def test_no_principals(self, catalog) -> None:
        assert catalog.list_products_for_principals([]) == []

    def test_get_principal(self, catalog) -> None:
        assert catalog.get_principal("p-blue").name == "Blue Ridge Farms"
        assert catalog.get_principal("p-none") is None

    def test_from_yaml(self, catalog_yaml) -> None:
        with tempfile.NamedTemporaryFile(suffix=".yaml", delete=False) as f:
            Path(f.name).write_text(catalog_yaml)
            loaded = InMemoryCatalog.from_yaml(f.name)
            Path(f.name).unlink()
        assert [p.id for p in loaded.list_principals()] == ["p-acme", "p-blue"]
        assert loaded.list_principals()[0].product_ids == ("prod-sauce",)
        ids = [p.id for p in loaded.list_products_for_principals(["p-blue"])]
        assert ids == ["prod-rub", "prod-box"]

    def test_from_dict_empty(self) -> None:
        empty = InMemoryCatalog.from_dict({})
        assert empty.list_principals() == []


class TestInMemoryOpportunityRepository:
    """Tests for InMemoryOpportunityRepository."""

    def test_sequential_ids(self) -> None:
        repository = InMemoryOpportunityRepository()
        assert repository.create_opportunity(_make_payload()) == "opp-1"
        assert repository.create_opportunity(_make_payload()) == "opp-2"
        assert len(repository.records) == 2

    def test_update_existing(self) -> None:
        repository = InMemoryOpportunityRepository()
        opp_id = repository.create_opportunity(_make_payload())
        repository.update_opportunity(opp_id, _make_payload(notes="updated"))
        assert repository.records[opp_id].notes == "updated"

    def test_update_missing_raises(self) -> None:
        with pytest.raises(PersistenceError, match="not found"):
            InMemoryOpportunityRepository().update_opportunity("opp-7", _make_payload())

    def test_name_exists(self) -> None:
        repository = InMemoryOpportunityRepository(id_prefix="o")
        repository.create_opportunity(_make_payload())
        assert repository.name_exists("Acme - Acme Foods - March 2025") is True
        assert repository.name_exists("Other") is False
