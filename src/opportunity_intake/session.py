"""Caller-facing intake session: the only entry points a UI, CLI or API layer needs."""

import logging
from datetime import date
from typing import Any, Callable, Optional

from pydantic import ValidationError

from opportunity_intake.batch import BatchCreationCoordinator
from opportunity_intake.config import IntakeSettings
from opportunity_intake.filtering import ProductAvailabilityFilter, ProductGroup
from opportunity_intake.models.catalog import Principal, Product
from opportunity_intake.models.draft import GeneratedName, ManualName, OpportunityDraft
from opportunity_intake.models.results import BatchCreationResult, OpportunityNamePreview, WizardState
from opportunity_intake.naming import generate_name, generate_template
from opportunity_intake.store.base import CatalogDirectory, OpportunityRepository
from opportunity_intake.wizard import FIELD_STEPS, ValidationContext, WizardStateMachine

logger = logging.getLogger(__name__)

DraftListener = Callable[[str, OpportunityDraft], None]


def _error_message(error: ValidationError) -> str:
    errors = error.errors()
    return errors[0].get("msg", str(error)) if errors else str(error)


# Name-resolution pseudo-fields accepted by update_field alongside draft fields
_NAME_FIELDS = {
    "opportunity_name": "opportunity_name",
    "opportunityName": "opportunity_name",
    "auto_generate_name": "auto_generate_name",
    "autoGenerateName": "auto_generate_name",
}


class OpportunityIntake:
    """
    One wizard session over one OpportunityDraft.

    After every update_field the session re-runs, in order: stage probability
    stamping (stage changes only), product invalidation (principal changes
    only) and name preview generation. Listeners registered with subscribe()
    are notified after each applied change.
    """

    def __init__(
        self,
        directory: CatalogDirectory,
        repository: OpportunityRepository,
        *,
        settings: Optional[IntakeSettings] = None,
        mode: str = "create",
        opportunity_id: Optional[str] = None,
        clock: Callable[[], date] = date.today,
    ):
        if mode == "edit" and not opportunity_id:
            raise ValueError("opportunity_id is required in edit mode")
        self.settings = settings or IntakeSettings()
        self.pipeline = self.settings.stage_pipeline()
        self.mode = mode
        self.opportunity_id = opportunity_id
        self._directory = directory
        self._clock = clock
        self.wizard = WizardStateMachine(mode)
        self.coordinator = BatchCreationCoordinator(
            repository,
            unique_names=self.settings.unique_names,
            max_name_attempts=self.settings.max_name_attempts,
            clock=clock,
        )
        self._listeners: list[DraftListener] = []
        self._previews: list[OpportunityNamePreview] = []
        self.draft = OpportunityDraft()
        self.refresh_catalog()

    # -- catalog -----------------------------------------------------------

    def refresh_catalog(self) -> None:
        """Re-snapshot principals and products, then revalidate the draft against them."""
        principals = self._directory.list_principals()
        products = self._directory.list_products_for_principals([p.id for p in principals])
        self._principals: dict[str, Principal] = {p.id: p for p in principals}
        self._filter = ProductAvailabilityFilter(
            products,
            principals,
            policy=self.settings.availability_policy,
            include_inactive=self.settings.include_inactive_products,
        )
        self._invalidate_product()
        self._recompute_previews()

    def subscribe(self, listener: DraftListener) -> None:
        self._listeners.append(listener)

    # -- lifecycle ---------------------------------------------------------

    def initialize(self, seed: "dict | OpportunityDraft | None" = None) -> WizardState:
        """
        Start (or restart) the session, optionally pre-populated from caller context.
        Seed values that fail validation are left at their defaults and
        reported as field errors.
        """
        seed_errors: dict[str, str] = {}
        if isinstance(seed, OpportunityDraft):
            self.draft = seed.model_copy(deep=True)
        else:
            data = OpportunityDraft.fold_seed(seed)
            try:
                self.draft = OpportunityDraft.model_validate(data)
            except ValidationError:
                self.draft = OpportunityDraft()
                for key, value in data.items():
                    field_name = self._draft_field(key)
                    if field_name is None:
                        continue
                    try:
                        setattr(self.draft, field_name, value)
                    except ValidationError as e:
                        seed_errors[field_name] = _error_message(e)
        self.wizard.reset()
        for field_name, message in seed_errors.items():
            logger.debug("Seed value for %s rejected: %s", field_name, message)
            self.wizard.record_field_error(field_name, FIELD_STEPS.get(field_name, 1), message)
        if self.draft.stage is not None and self.draft.probability_percent is None:
            self.draft.probability_percent = self.pipeline.default_probability(self.draft.stage)
        self._invalidate_product()
        self._recompute_previews()
        return self.get_wizard_state()

    def reset(self) -> WizardState:
        return self.initialize()

    # -- mutation ----------------------------------------------------------

    @staticmethod
    def _draft_field(name: str) -> Optional[str]:
        """Draft field for a snake_case name or camelCase alias; None if unknown."""
        if name in OpportunityDraft.model_fields:
            return name
        for field_name, info in OpportunityDraft.model_fields.items():
            if info.alias == name:
                return field_name
        return None

    def _resolve_field(self, name: str) -> str:
        if name in _NAME_FIELDS:
            return _NAME_FIELDS[name]
        field_name = self._draft_field(name)
        if field_name is None:
            raise ValueError(f"Unknown draft field: {name}")
        return field_name

    def update_field(self, name: str, value: Any) -> bool:
        """
        Set one draft field. Invalid input is recorded as a field error and
        returns False; the draft keeps its previous value.
        """
        field_name = self._resolve_field(name)
        step = FIELD_STEPS.get(field_name, 1)
        previous_stage = self.draft.stage
        if field_name == "selected_product" and value:
            if not self._filter.is_available(str(value), self.draft.selected_principals):
                self.wizard.record_field_error(
                    field_name, step, "Selected product is not available for the chosen principals"
                )
                return False
        try:
            if field_name == "opportunity_name":
                self.draft.name_source = ManualName(text="" if value is None else str(value))
            elif field_name == "auto_generate_name":
                if value:
                    self.draft.name_source = GeneratedName()
                else:
                    self.draft.name_source = ManualName(text=self.resolved_name())
            else:
                setattr(self.draft, field_name, value)
        except ValidationError as e:
            self.wizard.record_field_error(field_name, step, _error_message(e))
            return False

        if field_name == "stage" and self.draft.stage is not None and self.draft.stage != previous_stage:
            self.draft.probability_percent = self.pipeline.default_probability(self.draft.stage)
        if field_name == "selected_principals":
            self._invalidate_product()
        self._recompute_previews()
        # The resolved name depends on most fields, so its error is refreshed too
        ctx = self._validation_context()
        for checked in dict.fromkeys((field_name, "opportunity_name")):
            self.wizard.revalidate_field(checked, self.draft, ctx)

        for listener in self._listeners:
            listener(field_name, self.draft)
        return True

    def _invalidate_product(self) -> None:
        kept = self._filter.revalidate_selection(self.draft.selected_product, self.draft.selected_principals)
        if kept != self.draft.selected_product:
            self.draft.selected_product = kept

    def _recompute_previews(self) -> None:
        self._previews = self.coordinator.previews(self.draft, self._principals)
        if self.draft.auto_generate_name:
            template = (
                self._previews[0].name_template
                if self._previews
                else generate_template(self.draft.organization_name, "", self.draft.context, self.draft.custom_context)
            )
            if self.draft.name_source.template != template:
                self.draft.name_source = GeneratedName(template=template)

    # -- navigation --------------------------------------------------------

    def resolved_name(self) -> str:
        """The name step 1 validates: the manual override, or the first generated name."""
        if not self.draft.auto_generate_name:
            return self.draft.manual_name or ""
        if self._previews:
            return self._previews[0].generated_name
        return generate_name(
            self.draft.organization_name,
            "",
            self.draft.context,
            self.draft.custom_context,
            date=self._clock(),
        )

    def _longest_name(self) -> str:
        """Longest name the submission would persist; length rules check this one."""
        if self.draft.auto_generate_name and self._previews:
            return max((p.generated_name for p in self._previews), key=len)
        return self.resolved_name()

    def _validation_context(self) -> ValidationContext:
        available = self._filter.available_products(self.draft.selected_principals)
        return ValidationContext(
            resolved_name=self._longest_name(),
            available_product_ids=frozenset(p.id for p in available),
            today=self._clock(),
            name_min_length=self.settings.name_min_length,
            name_max_length=self.settings.name_max_length,
            deal_owner_max_length=self.settings.deal_owner_max_length,
            notes_max_length=self.settings.notes_max_length,
        )

    def next(self) -> bool:
        return self.wizard.next(self.draft, self._validation_context())

    def previous(self) -> int:
        return self.wizard.previous()

    def submit(self) -> Optional[BatchCreationResult]:
        """
        Validate every step and hand the draft to the coordinator.
        Returns None when blocked (not on the last step, or validation failed);
        the wizard state then carries the step-scoped errors.
        """
        if not self.wizard.can_submit:
            logger.debug("Submit ignored on step %d of %d", self.wizard.current_step, self.wizard.step_count)
            return None
        self.wizard.set_submit_error(None)
        first_failed = self.wizard.validate_all(self.draft, self._validation_context())
        if first_failed is not None:
            logger.debug("Submit blocked by step %d: %s", first_failed, self.wizard.state.field_errors)
            return None

        if self.mode == "edit":
            result = self.coordinator.update(self.opportunity_id, self.draft, self._principals)
        else:
            result = self.coordinator.submit(self.draft, self._principals)

        if result.total_requested == 1 and not result.succeeded:
            self.wizard.set_submit_error(result.failures[0].error)
        return result

    # -- views -------------------------------------------------------------

    def get_preview(self) -> list[OpportunityNamePreview]:
        return [p.model_copy() for p in self._previews]

    def get_available_products(self) -> list[Product]:
        return self._filter.available_products(self.draft.selected_principals)

    def get_grouped_products(self) -> list[ProductGroup]:
        return self._filter.grouped_products(self.draft.selected_principals)

    def get_wizard_state(self) -> WizardState:
        return self.wizard.state

    def progress_percent(self) -> Optional[int]:
        """Pipeline progress of the draft's stage; None until a stage is chosen."""
        if self.draft.stage is None:
            return None
        return self.pipeline.progress_percent(self.draft.stage)
