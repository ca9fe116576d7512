"""Fan-out submission: one opportunity record per selected principal."""

import logging
from datetime import date
from typing import Callable, Mapping

from opportunity_intake.models.catalog import Principal
from opportunity_intake.models.draft import OpportunityContext, OpportunityDraft, OpportunityPayload
from opportunity_intake.models.results import BatchCreationResult, CreationFailure, OpportunityNamePreview
from opportunity_intake.naming import generate_batch_previews, generate_unique_name
from opportunity_intake.store.base import OpportunityRepository

logger = logging.getLogger(__name__)


class BatchCreationCoordinator:
    """
    Turns one validated draft into N creation calls, in selection order.
    Attempts are independent: a failed principal never stops the others,
    and failures are collected rather than raised. No automatic retries.
    A single principal is simply a batch of one.
    """

    def __init__(
        self,
        repository: OpportunityRepository,
        *,
        unique_names: bool = False,
        max_name_attempts: int = 10,
        clock: Callable[[], date] = date.today,
    ):
        self._repository = repository
        self.unique_names = unique_names
        self.max_name_attempts = max_name_attempts
        self._clock = clock

    def previews(self, draft: OpportunityDraft, principals: Mapping[str, Principal]) -> list[OpportunityNamePreview]:
        """Generated names for the draft's principals, in selection order."""
        ordered = [principals.get(pid) or Principal(id=pid) for pid in draft.selected_principals]
        return generate_batch_previews(
            draft.organization_name,
            ordered,
            draft.context,
            draft.custom_context,
            date=self._clock(),
        )

    def _resolve_name(self, draft: OpportunityDraft, preview: OpportunityNamePreview) -> str:
        if not draft.auto_generate_name:
            return (draft.manual_name or "").strip()
        if not self.unique_names:
            return preview.generated_name
        name = generate_unique_name(
            draft.organization_name,
            preview.principal_name,
            draft.context,
            draft.custom_context,
            is_taken=self._repository.name_exists,
            date=self._clock(),
            max_attempts=self.max_name_attempts,
        )
        if name is None:
            raise ValueError(
                f"Could not generate unique name after {self.max_name_attempts} attempts"
            )
        return name

    def build_payload(self, draft: OpportunityDraft, preview: OpportunityNamePreview) -> OpportunityPayload:
        """Per-principal record sharing every other draft field."""
        if draft.stage is None:
            raise ValueError("Stage is required to build an opportunity payload")
        is_custom = draft.context is OpportunityContext.CUSTOM
        return OpportunityPayload(
            name=self._resolve_name(draft, preview),
            organization_name=draft.organization_name.strip(),
            principal_id=preview.principal_id,
            principal_name=preview.principal_name,
            stage=draft.stage,
            product_id=draft.selected_product,
            context=draft.context,
            custom_context=(draft.custom_context.strip() or None) if is_custom else None,
            probability_percent=draft.probability_percent,
            expected_close_date=draft.expected_close_date,
            deal_owner=draft.deal_owner.strip() or None,
            notes=draft.notes.strip() or None,
            auto_generated_name=draft.auto_generate_name,
            name_template=preview.name_template if draft.auto_generate_name else None,
        )

    def submit(self, draft: OpportunityDraft, principals: Mapping[str, Principal]) -> BatchCreationResult:
        """
        Create one record per selected principal. Overall success means at
        least one record was created; per-principal errors are in failures.
        """
        if not draft.selected_principals:
            raise ValueError("At least one principal must be selected")

        previews = self.previews(draft, principals)
        result = BatchCreationResult(total_requested=len(previews))
        for preview in previews:
            try:
                payload = self.build_payload(draft, preview)
                opportunity_id = self._repository.create_opportunity(payload)
            except Exception as e:
                message = str(e) or e.__class__.__name__
                logger.warning("Create failed for principal %s: %s", preview.principal_id, message)
                result.failures.append(
                    CreationFailure(
                        principal_id=preview.principal_id,
                        principal_name=preview.principal_name,
                        error=message,
                    )
                )
                continue
            result.created.append(opportunity_id)

        logger.info(
            "Created %d of %d opportunities (%d failed)",
            result.total_created,
            result.total_requested,
            result.total_failed,
        )
        return result

    def update(
        self,
        opportunity_id: str,
        draft: OpportunityDraft,
        principals: Mapping[str, Principal],
    ) -> BatchCreationResult:
        """Edit mode: overwrite one existing record from the draft (first selected principal)."""
        if not draft.selected_principals:
            raise ValueError("At least one principal must be selected")
        preview = self.previews(draft, principals)[0]
        result = BatchCreationResult(total_requested=1)
        try:
            self._repository.update_opportunity(opportunity_id, self.build_payload(draft, preview))
        except Exception as e:
            message = str(e) or e.__class__.__name__
            logger.warning("Update failed for opportunity %s: %s", opportunity_id, message)
            result.failures.append(
                CreationFailure(
                    principal_id=preview.principal_id,
                    principal_name=preview.principal_name,
                    error=message,
                )
            )
            return result
        result.created.append(opportunity_id)
        return result
