"""Tests for the opportunity-intake CLI."""

import json
from pathlib import Path

import pytest

from opportunity_intake.cli.main import main


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch) -> None:
    for key in ("REST_URL", "REST_API_KEY", "AVAILABILITY_POLICY"):
        monkeypatch.delenv(f"OPPORTUNITY_INTAKE_{key}", raising=False)


@pytest.fixture
def catalog_file(tmp_path: Path, catalog_yaml: str) -> Path:
    path = tmp_path / "catalog.yaml"
    path.write_text(catalog_yaml)
    return path


def _write_draft(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "draft.yaml"
    path.write_text(content)
    return path


class TestStagesCommand:
    """stages subcommand."""

    def test_prints_pipeline_table(self, capsys) -> None:
        assert main(["stages"]) == 0
        rows = json.loads(capsys.readouterr().out)
        assert len(rows) == 7
        assert rows[5]["stage"] == "Demo Scheduled"
        assert rows[5]["default_probability"] == 80

    def test_settings_file_overrides(self, tmp_path: Path, capsys) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text("pipeline:\n  stage_probabilities:\n    NewLead: 15\n")
        assert main(["--settings", str(settings), "stages"]) == 0
        rows = json.loads(capsys.readouterr().out)
        assert rows[0]["default_probability"] == 15


class TestProductsCommand:
    """products subcommand."""

    def test_lists_available_products(self, catalog_file: Path, capsys) -> None:
        assert main(["products", "--catalog", str(catalog_file), "--principal", "p-acme"]) == 0
        products = json.loads(capsys.readouterr().out)
        assert [p["id"] for p in products] == ["prod-sauce", "prod-rub"]

    def test_grouped(self, catalog_file: Path, capsys) -> None:
        argv = ["products", "--catalog", str(catalog_file), "--principal", "p-blue", "--grouped"]
        assert main(argv) == 0
        groups = json.loads(capsys.readouterr().out)
        assert [g["category"] for g in groups] == ["Seasoning", "Other"]

    def test_no_principals(self, catalog_file: Path, capsys) -> None:
        assert main(["products", "--catalog", str(catalog_file)]) == 0
        assert json.loads(capsys.readouterr().out) == []


class TestPreviewCommand:
    """preview subcommand."""

    def test_preview_names(self, tmp_path: Path, catalog_file: Path, capsys) -> None:
        draft = _write_draft(
            tmp_path,
            "organization_name: Acme\ncontext: Event\nselected_principals: [p-blue, p-acme]\n",
        )
        argv = ["preview", "--catalog", str(catalog_file), "--draft", str(draft), "--date", "2025-03-15"]
        assert main(argv) == 0
        previews = json.loads(capsys.readouterr().out)
        assert [p["generated_name"] for p in previews] == [
            "Acme - Blue Ridge Farms - Event/Trade Show - March 2025",
            "Acme - Acme Foods - Event/Trade Show - March 2025",
        ]

    def test_bad_date(self, tmp_path: Path, catalog_file: Path) -> None:
        draft = _write_draft(tmp_path, "organization_name: Acme\n")
        with pytest.raises(SystemExit):
            main(["preview", "--catalog", str(catalog_file), "--draft", str(draft), "--date", "15/03/2025"])


class TestSubmitCommand:
    """submit subcommand."""

    def test_submit_creates_records(self, tmp_path: Path, catalog_file: Path, capsys) -> None:
        draft = _write_draft(
            tmp_path,
            """
organizationName: Acme
context: Referral
selectedPrincipals: [p-acme, p-blue]
selectedProduct: prod-rub
stage: Initial Outreach
""",
        )
        argv = ["submit", "--catalog", str(catalog_file), "--draft", str(draft), "--date", "2025-03-15"]
        assert main(argv) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["created"] == ["opp-1", "opp-2"]
        assert output["succeeded"] is True
        assert output["summary"] == "2 of 2 created"

    def test_submit_blocked(self, tmp_path: Path, catalog_file: Path, capsys) -> None:
        draft = _write_draft(tmp_path, "organization_name: Acme\n")
        assert main(["submit", "--catalog", str(catalog_file), "--draft", str(draft)]) == 1
        captured = capsys.readouterr()
        assert "Please fix errors in Step 2" in captured.err
        assert "selected_principals" in json.loads(captured.out)["errors"]

    def test_submit_requires_catalog_without_rest(self, tmp_path: Path) -> None:
        draft = _write_draft(tmp_path, "organization_name: Acme\n")
        with pytest.raises(SystemExit, match="--catalog is required"):
            main(["submit", "--draft", str(draft)])
