"""Intake settings: stage probabilities, availability policy, validation bounds, REST endpoint."""

import os
from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for settings loading. Run: poetry install"
    ) from e
from pydantic import BaseModel, Field, field_validator

from opportunity_intake.stages import OpportunityStage, StagePipeline

ENV_PREFIX = "OPPORTUNITY_INTAKE_"


class IntakeSettings(BaseModel):
    """Tunable behaviour of the intake workflow."""

    stage_probabilities: dict[str, int] = Field(
        default_factory=dict,
        description="Stage -> default probability overrides; missing stages use built-in defaults",
    )
    availability_policy: str = Field(default="any", description="any (union) | all (intersection)")
    include_inactive_products: bool = False

    unique_names: bool = False
    max_name_attempts: int = Field(default=10, ge=1)

    name_min_length: int = 3
    name_max_length: int = 255
    deal_owner_max_length: int = 100
    notes_max_length: int = 2000

    rest_url: Optional[str] = None
    rest_api_key: Optional[str] = None
    rest_timeout: float = 30.0

    @field_validator("availability_policy")
    @classmethod
    def _check_policy(cls, value: str) -> str:
        value = (value or "any").strip().lower()
        if value not in ("any", "all"):
            raise ValueError("availability_policy must be 'any' or 'all'")
        return value

    @field_validator("stage_probabilities")
    @classmethod
    def _check_stages(cls, value: dict[str, int]) -> dict[str, int]:
        return {OpportunityStage.parse(k).value: v for k, v in value.items()}

    def stage_pipeline(self) -> StagePipeline:
        return StagePipeline(self.stage_probabilities)

    @classmethod
    def from_env(cls, base: Optional["IntakeSettings"] = None) -> "IntakeSettings":
        """Apply OPPORTUNITY_INTAKE_* environment overrides on top of base (or defaults)."""
        data = (base or cls()).model_dump()
        for key in ("rest_url", "rest_api_key", "availability_policy"):
            env_value = os.environ.get(ENV_PREFIX + key.upper())
            if env_value:
                data[key] = env_value
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "IntakeSettings":
        """Load settings from YAML. Supports nested sections or flat keys; env overrides win."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        pipeline = data.get("pipeline", {}) or {}
        naming = data.get("naming", {}) or {}
        validation = data.get("validation", {}) or {}
        products = data.get("products", {}) or {}
        rest = data.get("rest", {}) or {}

        def _get(key: str, nested: dict, top: dict, default=None):
            return nested.get(key, top.get(key, default))

        flat: dict = {}
        probabilities = _get("stage_probabilities", pipeline, data) or _get("probabilities", pipeline, {})
        if probabilities:
            flat["stage_probabilities"] = probabilities
        for key in ("availability_policy", "include_inactive_products"):
            value = _get(key, products, data)
            if value is not None:
                flat[key] = value
        for key in ("unique_names", "max_name_attempts"):
            value = _get(key, naming, data)
            if value is not None:
                flat[key] = value
        for key in ("name_min_length", "name_max_length", "deal_owner_max_length", "notes_max_length"):
            value = _get(key, validation, data)
            if value is not None:
                flat[key] = value
        for key, nested_key in (("rest_url", "url"), ("rest_api_key", "api_key"), ("rest_timeout", "timeout")):
            value = rest.get(nested_key, data.get(key))
            if value is not None:
                flat[key] = value
        return cls.from_env(cls.model_validate(flat))
