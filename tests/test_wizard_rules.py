"""Unit tests for wizard field rules."""

from datetime import date

from opportunity_intake.models.draft import ManualName, OpportunityDraft
from opportunity_intake.stages import OpportunityStage
from opportunity_intake.wizard.rules import (
    FIELD_STEPS,
    STEP_RULES,
    ValidationContext,
    check_deal_owner,
    check_expected_close_date,
    check_notes,
    check_opportunity_name,
    check_organization_name,
    check_probability,
    check_selected_product,
    validate_step,
)

TODAY = date(2025, 3, 15)


def _make_draft(**kwargs) -> OpportunityDraft:
    """Draft that passes every step unless overridden."""
    defaults = {
        "organization_name": "Acme",
        "selected_principals": ["p-acme"],
        "selected_product": "prod-rub",
        "stage": OpportunityStage.NEW_LEAD,
        "probability_percent": 10,
    }
    defaults.update(kwargs)
    return OpportunityDraft(**defaults)


def _make_ctx(**kwargs) -> ValidationContext:
    defaults = {
        "resolved_name": "Acme - Acme Foods - March 2025",
        "available_product_ids": frozenset({"prod-rub", "prod-sauce"}),
        "today": TODAY,
    }
    defaults.update(kwargs)
    return ValidationContext(**defaults)


class TestStepOne:
    """Organization and name rules."""

    def test_organization_required(self) -> None:
        passed, message = check_organization_name(_make_draft(organization_name="   "), _make_ctx())
        assert passed is False
        assert message == "Organization is required"

    def test_organization_too_long(self) -> None:
        passed, _ = check_organization_name(_make_draft(organization_name="x" * 300), _make_ctx())
        assert passed is False

    def test_generated_name_accepted(self) -> None:
        passed, _ = check_opportunity_name(_make_draft(), _make_ctx())
        assert passed is True

    def test_blank_resolved_name_fails(self) -> None:
        passed, message = check_opportunity_name(_make_draft(), _make_ctx(resolved_name=" "))
        assert passed is False
        assert message == "Opportunity name is required"

    def test_manual_name_too_short(self) -> None:
        """Manual overrides are length-checked."""
        draft = _make_draft(name_source=ManualName(text="ab"))
        passed, message = check_opportunity_name(draft, _make_ctx(resolved_name="ab"))
        assert passed is False
        assert message == "Name must be at least 3 characters"

    def test_manual_name_too_long(self) -> None:
        draft = _make_draft(name_source=ManualName(text="n" * 256))
        passed, _ = check_opportunity_name(draft, _make_ctx(resolved_name="n" * 256))
        assert passed is False

    def test_generated_name_too_long(self) -> None:
        """Generated names get the same maximum length as manual ones."""
        passed, message = check_opportunity_name(_make_draft(), _make_ctx(resolved_name="n" * 256))
        assert passed is False
        assert message == "Name must be less than 255 characters"

    def test_short_generated_name_accepted(self) -> None:
        passed, _ = check_opportunity_name(_make_draft(), _make_ctx(resolved_name="ab"))
        assert passed is True


class TestStepThree:
    """Product, probability, date and free-text rules."""

    def test_product_required(self) -> None:
        passed, message = check_selected_product(_make_draft(selected_product=None), _make_ctx())
        assert passed is False
        assert message == "Product selection is required"

    def test_product_must_be_available(self) -> None:
        passed, message = check_selected_product(_make_draft(selected_product="prod-milk"), _make_ctx())
        assert passed is False
        assert "not available" in message

    def test_probability_optional(self) -> None:
        passed, _ = check_probability(_make_draft(probability_percent=None), _make_ctx())
        assert passed is True

    def test_probability_bounds(self) -> None:
        """Values bypassing model validation are still caught by the rule."""
        draft = _make_draft().model_copy(update={"probability_percent": 120})
        passed, message = check_probability(draft, _make_ctx())
        assert passed is False
        assert "100" in message

    def test_close_date_in_past(self) -> None:
        draft = _make_draft(expected_close_date=date(2025, 3, 14))
        passed, message = check_expected_close_date(draft, _make_ctx())
        assert passed is False
        assert message == "Close date should be in the future"

    def test_close_date_today_ok(self) -> None:
        passed, _ = check_expected_close_date(_make_draft(expected_close_date=TODAY), _make_ctx())
        assert passed is True

    def test_deal_owner_and_notes_length(self) -> None:
        assert check_deal_owner(_make_draft(deal_owner="o" * 101), _make_ctx())[0] is False
        assert check_notes(_make_draft(notes="n" * 2001), _make_ctx())[0] is False
        assert check_notes(_make_draft(notes="n" * 2000), _make_ctx())[0] is True


class TestValidateStep:
    """Tests for validate_step."""

    def test_valid_draft_has_no_errors(self) -> None:
        for step in STEP_RULES:
            assert validate_step(step, _make_draft(), _make_ctx()) == {}

    def test_step_two_requires_principal(self) -> None:
        errors = validate_step(2, _make_draft(selected_principals=[]), _make_ctx())
        assert errors == {"selected_principals": "At least one principal must be selected"}

    def test_errors_scoped_to_step(self) -> None:
        """Step 1 errors never mention step 3 fields."""
        draft = _make_draft(organization_name="", selected_product=None, stage=None)
        errors = validate_step(1, draft, _make_ctx())
        assert set(errors) == {"organization_name"}
        errors = validate_step(3, draft, _make_ctx())
        assert set(errors) == {"selected_product", "stage"}

    def test_unknown_step_is_empty(self) -> None:
        assert validate_step(9, _make_draft(), _make_ctx()) == {}

    def test_field_steps_cover_rules(self) -> None:
        for step, rules in STEP_RULES.items():
            for field_name, _ in rules:
                assert FIELD_STEPS[field_name] == step
