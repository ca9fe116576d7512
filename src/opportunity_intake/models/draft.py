"""Mutable opportunity draft and the per-record creation payload."""

import re
from collections.abc import Iterable
from datetime import date
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from opportunity_intake.stages import OpportunityStage


class OpportunityContext(str, Enum):
    """How the opportunity came about; drives the name's context segment."""

    EVENT = "Event"
    REFERRAL = "Referral"
    WEBSITE = "Website"
    COLD_OUTREACH = "ColdOutreach"
    FOLLOW_UP = "FollowUp"
    CUSTOM = "Custom"

    @property
    def label(self) -> str:
        return _CONTEXT_LABELS[self]

    @classmethod
    def parse(cls, value: "str | OpportunityContext") -> "OpportunityContext":
        """Accept value (ColdOutreach), member name (COLD_OUTREACH) or label (Cold Outreach)."""
        if isinstance(value, cls):
            return value
        key = re.sub(r"[^a-z]", "", str(value).lower())
        for ctx in cls:
            candidates = (ctx.value, ctx.name, _CONTEXT_LABELS[ctx])
            if key in (re.sub(r"[^a-z]", "", c.lower()) for c in candidates):
                return ctx
        raise ValueError(f"Unknown context: {value!r}. Available: {[c.value for c in cls]}")


_CONTEXT_LABELS: dict[OpportunityContext, str] = {
    OpportunityContext.EVENT: "Event/Trade Show",
    OpportunityContext.REFERRAL: "Referral",
    OpportunityContext.WEBSITE: "Website Inquiry",
    OpportunityContext.COLD_OUTREACH: "Cold Outreach",
    OpportunityContext.FOLLOW_UP: "Follow-up",
    OpportunityContext.CUSTOM: "Custom",
}


class GeneratedName(BaseModel):
    """Name is system-generated from the template."""

    kind: Literal["generated"] = "generated"
    template: str = ""


class ManualName(BaseModel):
    """Name is a user override."""

    kind: Literal["manual"] = "manual"
    text: str = ""


NameSource = Annotated[Union[GeneratedName, ManualName], Field(discriminator="kind")]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class OpportunityDraft(BaseModel):
    """
    Form state of one opportunity intake session.
    Accepts snake_case or camelCase keys. from_seed also folds flat
    opportunity_name / auto_generate_name inputs into name_source.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    organization_name: str = ""
    name_source: NameSource = Field(default_factory=GeneratedName)
    context: Optional[OpportunityContext] = None
    custom_context: str = ""

    selected_principals: list[str] = Field(default_factory=list)
    selected_product: Optional[str] = None

    stage: Optional[OpportunityStage] = None
    probability_percent: Optional[int] = Field(default=None, ge=0, le=100)
    expected_close_date: Optional[date] = None
    deal_owner: str = ""
    notes: str = ""

    @staticmethod
    def fold_seed(seed: Optional[dict] = None) -> dict:
        """Seed mapping with flat name inputs folded into name_source."""
        data = dict(seed or {})
        name = data.pop("opportunity_name", None)
        name = data.pop("opportunityName", name)
        auto = data.pop("auto_generate_name", None)
        auto = data.pop("autoGenerateName", auto)
        if "name_source" not in data and "nameSource" not in data:
            if auto is False or (auto is None and name):
                data["name_source"] = ManualName(text="" if name is None else str(name))
        return data

    @classmethod
    def from_seed(cls, seed: Optional[dict] = None) -> "OpportunityDraft":
        """Build a draft from caller context (e.g. create-from-organization page)."""
        return cls.model_validate(cls.fold_seed(seed))

    @field_validator("context", mode="before")
    @classmethod
    def _parse_context(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return OpportunityContext.parse(value) if value is not None else None

    @field_validator("stage", mode="before")
    @classmethod
    def _parse_stage(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return OpportunityStage.parse(value) if value is not None else None

    @field_validator("selected_product", mode="before")
    @classmethod
    def _blank_product(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("selected_principals", mode="before")
    @classmethod
    def _unique_principals(cls, value: Any) -> Any:
        """Drop blanks and duplicates, keeping first-selection order."""
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, Iterable):
            raise ValueError("selected_principals must be a list of IDs")
        seen: list[str] = []
        for pid in value:
            pid = str(pid).strip()
            if pid and pid not in seen:
                seen.append(pid)
        return seen

    @property
    def auto_generate_name(self) -> bool:
        return isinstance(self.name_source, GeneratedName)

    @property
    def manual_name(self) -> Optional[str]:
        if isinstance(self.name_source, ManualName):
            return self.name_source.text
        return None


class OpportunityPayload(BaseModel):
    """One opportunity record as sent to the persistence collaborator."""

    name: str
    organization_name: str
    principal_id: str
    principal_name: str = ""
    stage: OpportunityStage
    product_id: Optional[str] = None
    context: Optional[OpportunityContext] = None
    custom_context: Optional[str] = None
    probability_percent: Optional[int] = None
    expected_close_date: Optional[date] = None
    deal_owner: Optional[str] = None
    notes: Optional[str] = None
    auto_generated_name: bool = True
    name_template: Optional[str] = None
