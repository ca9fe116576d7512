"""Derived outputs: name previews, batch results and wizard state."""

from typing import Optional

from pydantic import BaseModel, Field


class OpportunityNamePreview(BaseModel):
    """Generated name for one selected principal. Never persisted on its own."""

    principal_id: str
    principal_name: str = ""
    generated_name: str
    name_template: str


class CreationFailure(BaseModel):
    """One principal whose opportunity record could not be created."""

    principal_id: str
    principal_name: str = ""
    error: str


class BatchCreationResult(BaseModel):
    """Aggregate of one submission fan-out, in principal selection order."""

    total_requested: int = 0
    created: list[str] = Field(default_factory=list, description="Created opportunity IDs")
    failures: list[CreationFailure] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """True when at least one record was created."""
        return len(self.created) > 0

    @property
    def created_id(self) -> Optional[str]:
        """The single created ID when exactly one record was requested."""
        if self.total_requested == 1 and self.created:
            return self.created[0]
        return None

    @property
    def total_created(self) -> int:
        return len(self.created)

    @property
    def total_failed(self) -> int:
        return len(self.failures)

    def summary(self) -> str:
        """Human-readable outcome, e.g. '8 of 10 created, 2 failed'."""
        text = f"{self.total_created} of {self.total_requested} created"
        if self.failures:
            reasons = "; ".join(f"{f.principal_name or f.principal_id}: {f.error}" for f in self.failures)
            text += f", {self.total_failed} failed: [{reasons}]"
        return text


class WizardState(BaseModel):
    """Transient step/validity/error state of one wizard session."""

    mode: str = Field(default="create", description="create | edit")
    current_step: int = 1
    step_count: int = 3
    step_validity: dict[int, bool] = Field(default_factory=dict)
    step_errors: dict[int, dict[str, str]] = Field(default_factory=dict)
    submit_error: Optional[str] = None

    @property
    def field_errors(self) -> dict[str, str]:
        """All steps' field errors merged (earlier steps win on collisions)."""
        merged: dict[str, str] = {}
        for step in sorted(self.step_errors):
            for field, message in self.step_errors[step].items():
                merged.setdefault(field, message)
        return merged

    @property
    def first_invalid_step(self) -> Optional[int]:
        for step in sorted(self.step_errors):
            if self.step_errors[step]:
                return step
        return None

    @property
    def blocking_message(self) -> Optional[str]:
        step = self.first_invalid_step
        return f"Please fix errors in Step {step}" if step is not None else None
