"""Step state machine for stepped creation and single-page edit."""

from typing import Optional

from opportunity_intake.models.draft import OpportunityDraft
from opportunity_intake.models.results import WizardState

from .rules import STEP_RULES, RuleFn, ValidationContext, validate_step

WIZARD_MODES = ("create", "edit")


class WizardStateMachine:
    """
    Drives steps 1..N. In create mode, next() validates the current step
    and advances only when it passes; previous() never validates.
    In edit mode there is one virtual step covering every rule.
    Validation failures are returned as error maps, never raised.
    """

    def __init__(
        self,
        mode: str = "create",
        rules: Optional[dict[int, list[tuple[str, RuleFn]]]] = None,
    ):
        if mode not in WIZARD_MODES:
            raise ValueError(f"Unknown wizard mode: {mode}. Available: {list(WIZARD_MODES)}")
        self.mode = mode
        self._rules = rules or STEP_RULES
        self.step_count = max(self._rules)
        self.reset()

    def reset(self) -> None:
        """Back to step 1 (or the edit view) with no validity or errors recorded."""
        start = self.step_count if self.mode == "edit" else 1
        self._state = WizardState(mode=self.mode, current_step=start, step_count=self.step_count)

    @property
    def state(self) -> WizardState:
        return self._state.model_copy(deep=True)

    @property
    def current_step(self) -> int:
        return self._state.current_step

    @property
    def can_submit(self) -> bool:
        return self.mode == "edit" or self._state.current_step == self.step_count

    def validate_step(self, step: int, draft: OpportunityDraft, ctx: ValidationContext) -> dict[str, str]:
        """Run one step's rules and record its validity and errors."""
        errors = validate_step(step, draft, ctx, self._rules)
        self._state.step_errors[step] = errors
        self._state.step_validity[step] = not errors
        return errors

    def validate_all(self, draft: OpportunityDraft, ctx: ValidationContext) -> Optional[int]:
        """Validate every step; return the first failing step, or None when all pass."""
        first_failed: Optional[int] = None
        for step in range(1, self.step_count + 1):
            if self.validate_step(step, draft, ctx) and first_failed is None:
                first_failed = step
        return first_failed

    def next(self, draft: OpportunityDraft, ctx: ValidationContext) -> bool:
        """
        Validate the current step and advance on success (no-op past the last step).
        Edit mode validates everything and never moves.
        """
        if self.mode == "edit":
            return self.validate_all(draft, ctx) is None
        if self.validate_step(self._state.current_step, draft, ctx):
            return False
        if self._state.current_step < self.step_count:
            self._state.current_step += 1
        return True

    def previous(self) -> int:
        """Step back without validating (no-op on the first step). Returns the new step."""
        if self.mode == "create" and self._state.current_step > 1:
            self._state.current_step -= 1
        return self._state.current_step

    def record_field_error(self, field_name: str, step: int, message: str) -> None:
        """Attach an input error raised while assigning a field."""
        self._state.step_errors.setdefault(step, {})[field_name] = message
        self._state.step_validity[step] = False

    def revalidate_field(self, field_name: str, draft: OpportunityDraft, ctx: ValidationContext) -> None:
        """
        Refresh an error already recorded for field_name after its value changed:
        keep it (with the current rule message) while the field still fails,
        drop it once it passes. Fields without a recorded error are left alone.
        """
        for step, errors in self._state.step_errors.items():
            if field_name not in errors:
                continue
            message = None
            for name, rule_fn in self._rules.get(step, []):
                if name != field_name:
                    continue
                passed, rule_message = rule_fn(draft, ctx)
                if not passed:
                    message = rule_message
                    break
            if message:
                errors[field_name] = message
                continue
            del errors[field_name]
            if not errors:
                self._state.step_validity.pop(step, None)

    def set_submit_error(self, message: Optional[str]) -> None:
        self._state.submit_error = message
