"""Multi-step validation for opportunity drafts."""

from .engine import WizardStateMachine
from .rules import FIELD_STEPS, STEP_RULES, ValidationContext, validate_step

__all__ = [
    "FIELD_STEPS",
    "STEP_RULES",
    "ValidationContext",
    "WizardStateMachine",
    "validate_step",
]
