"""Opportunity intake: naming, product filtering, stage pipeline, wizard validation and batch creation."""

from opportunity_intake.batch import BatchCreationCoordinator
from opportunity_intake.config import IntakeSettings
from opportunity_intake.filtering import ProductAvailabilityFilter
from opportunity_intake.session import OpportunityIntake
from opportunity_intake.stages import OpportunityStage, StagePipeline
from opportunity_intake.wizard import WizardStateMachine

__all__ = [
    "BatchCreationCoordinator",
    "IntakeSettings",
    "OpportunityIntake",
    "OpportunityStage",
    "ProductAvailabilityFilter",
    "StagePipeline",
    "WizardStateMachine",
]
