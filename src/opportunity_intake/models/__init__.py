"""Data models for principals, products, drafts and submission results."""

from opportunity_intake.models.catalog import Principal, Product
from opportunity_intake.models.draft import (
    GeneratedName,
    ManualName,
    OpportunityContext,
    OpportunityDraft,
    OpportunityPayload,
)
from opportunity_intake.models.results import (
    BatchCreationResult,
    CreationFailure,
    OpportunityNamePreview,
    WizardState,
)

__all__ = [
    "BatchCreationResult",
    "CreationFailure",
    "GeneratedName",
    "ManualName",
    "OpportunityContext",
    "OpportunityDraft",
    "OpportunityNamePreview",
    "OpportunityPayload",
    "Principal",
    "Product",
    "WizardState",
]
