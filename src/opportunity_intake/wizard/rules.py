"""Field rules per wizard step: each returns (passed, message)."""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from opportunity_intake.models.draft import OpportunityDraft


@dataclass
class ValidationContext:
    """Derived state a rule needs beyond the draft itself."""

    resolved_name: str = ""
    available_product_ids: frozenset[str] = field(default_factory=frozenset)
    today: date = field(default_factory=date.today)
    name_min_length: int = 3
    name_max_length: int = 255
    deal_owner_max_length: int = 100
    notes_max_length: int = 2000


RuleFn = Callable[[OpportunityDraft, ValidationContext], tuple[bool, str]]


def _is_blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


def check_organization_name(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    if _is_blank(draft.organization_name):
        return False, "Organization is required"
    if len(draft.organization_name.strip()) > ctx.name_max_length:
        return False, f"Organization must be less than {ctx.name_max_length} characters"
    return True, "Organization set"


def check_opportunity_name(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    """
    Resolved name must be present and within the maximum length. The minimum
    length applies to manual overrides; generated names always carry a date.
    """
    name = (ctx.resolved_name or "").strip()
    if not name:
        return False, "Opportunity name is required"
    if len(name) > ctx.name_max_length:
        return False, f"Name must be less than {ctx.name_max_length} characters"
    if draft.auto_generate_name:
        return True, "Name generated"
    if len(name) < ctx.name_min_length:
        return False, f"Name must be at least {ctx.name_min_length} characters"
    return True, "Manual name set"


def check_selected_principals(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    if not draft.selected_principals:
        return False, "At least one principal must be selected"
    return True, f"{len(draft.selected_principals)} principal(s) selected"


def check_selected_product(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    if not draft.selected_product:
        return False, "Product selection is required"
    if draft.selected_product not in ctx.available_product_ids:
        return False, "Selected product is not available for the chosen principals"
    return True, "Product available"


def check_stage(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    if draft.stage is None:
        return False, "Stage is required"
    return True, f"Stage {draft.stage.value}"


def check_probability(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    pct = draft.probability_percent
    if pct is None:
        return True, "Probability not set"
    if pct < 0:
        return False, "Probability cannot be negative"
    if pct > 100:
        return False, "Probability cannot exceed 100%"
    return True, f"Probability {pct}%"


def check_expected_close_date(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    if draft.expected_close_date is None:
        return True, "Close date not set"
    if draft.expected_close_date < ctx.today:
        return False, "Close date should be in the future"
    return True, "Close date in the future"


def check_deal_owner(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    if len(draft.deal_owner or "") > ctx.deal_owner_max_length:
        return False, f"Deal owner name must be less than {ctx.deal_owner_max_length} characters"
    return True, "Deal owner ok"


def check_notes(draft: OpportunityDraft, ctx: ValidationContext) -> tuple[bool, str]:
    if len(draft.notes or "") > ctx.notes_max_length:
        return False, f"Notes must be less than {ctx.notes_max_length} characters"
    return True, "Notes ok"


# Step -> [(field, rule)]; a field reports only its first failing rule
STEP_RULES: dict[int, list[tuple[str, RuleFn]]] = {
    1: [
        ("organization_name", check_organization_name),
        ("opportunity_name", check_opportunity_name),
    ],
    2: [
        ("selected_principals", check_selected_principals),
    ],
    3: [
        ("selected_product", check_selected_product),
        ("stage", check_stage),
        ("probability_percent", check_probability),
        ("expected_close_date", check_expected_close_date),
        ("deal_owner", check_deal_owner),
        ("notes", check_notes),
    ],
}

FIELD_STEPS: dict[str, int] = {
    "organization_name": 1,
    "opportunity_name": 1,
    "auto_generate_name": 1,
    "name_source": 1,
    "context": 1,
    "custom_context": 1,
    "selected_principals": 2,
    "selected_product": 3,
    "stage": 3,
    "probability_percent": 3,
    "expected_close_date": 3,
    "deal_owner": 3,
    "notes": 3,
}


def validate_step(
    step: int,
    draft: OpportunityDraft,
    ctx: ValidationContext,
    rules: Optional[dict[int, list[tuple[str, RuleFn]]]] = None,
) -> dict[str, str]:
    """Field -> message for every failing field of the step. Empty when valid."""
    errors: dict[str, str] = {}
    for field_name, rule_fn in (rules or STEP_RULES).get(step, []):
        if field_name in errors:
            continue
        passed, message = rule_fn(draft, ctx)
        if not passed:
            errors[field_name] = message
    return errors
