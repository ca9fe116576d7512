"""Sales pipeline stages, default probabilities and progress derivation."""

import logging
import math
import re
from enum import Enum
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


class OpportunityStage(str, Enum):
    """Seven-stage sales pipeline, declared in pipeline order."""

    NEW_LEAD = "New Lead"
    INITIAL_OUTREACH = "Initial Outreach"
    SAMPLE_VISIT_OFFERED = "Sample/Visit Offered"
    AWAITING_RESPONSE = "Awaiting Response"
    FEEDBACK_LOGGED = "Feedback Logged"
    DEMO_SCHEDULED = "Demo Scheduled"
    CLOSED_WON = "Closed - Won"

    @classmethod
    def parse(cls, value: "str | OpportunityStage") -> "OpportunityStage":
        """
        Accept member name (DEMO_SCHEDULED), label (Demo Scheduled)
        or compact form (DemoScheduled).
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        key = _compact(text)
        for stage in cls:
            if text == stage.value or key in (_compact(stage.name), _compact(stage.value)):
                return stage
        raise ValueError(f"Unknown stage: {value!r}. Available: {[s.value for s in cls]}")


def _compact(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


DEFAULT_STAGE_PROBABILITIES: dict[OpportunityStage, int] = {
    OpportunityStage.NEW_LEAD: 10,
    OpportunityStage.INITIAL_OUTREACH: 20,
    OpportunityStage.SAMPLE_VISIT_OFFERED: 35,
    OpportunityStage.AWAITING_RESPONSE: 40,
    OpportunityStage.FEEDBACK_LOGGED: 60,
    OpportunityStage.DEMO_SCHEDULED: 80,
    OpportunityStage.CLOSED_WON: 100,
}

# Typical next moves; informational only, stage selection is unconstrained
SUGGESTED_NEXT_STAGES: dict[OpportunityStage, tuple[OpportunityStage, ...]] = {
    OpportunityStage.NEW_LEAD: (OpportunityStage.INITIAL_OUTREACH,),
    OpportunityStage.INITIAL_OUTREACH: (
        OpportunityStage.SAMPLE_VISIT_OFFERED,
        OpportunityStage.AWAITING_RESPONSE,
    ),
    OpportunityStage.SAMPLE_VISIT_OFFERED: (OpportunityStage.AWAITING_RESPONSE,),
    OpportunityStage.AWAITING_RESPONSE: (
        OpportunityStage.FEEDBACK_LOGGED,
        OpportunityStage.INITIAL_OUTREACH,
    ),
    OpportunityStage.FEEDBACK_LOGGED: (
        OpportunityStage.DEMO_SCHEDULED,
        OpportunityStage.CLOSED_WON,
    ),
    OpportunityStage.DEMO_SCHEDULED: (
        OpportunityStage.CLOSED_WON,
        OpportunityStage.FEEDBACK_LOGGED,
    ),
    OpportunityStage.CLOSED_WON: (),
}


class StagePipeline:
    """
    Ordered stage list with a configurable default-probability table.
    Probability defaults are applied only at stage-change time by callers;
    this class never recomputes a probability on its own.
    """

    def __init__(self, probabilities: Optional[Mapping] = None):
        table = dict(DEFAULT_STAGE_PROBABILITIES)
        for key, value in (probabilities or {}).items():
            stage = OpportunityStage.parse(key)
            pct = int(value)
            if not 0 <= pct <= 100:
                raise ValueError(f"Probability for {stage.value} must be 0-100, got {pct}")
            table[stage] = pct
        self._probabilities = table
        self._order: tuple[OpportunityStage, ...] = tuple(OpportunityStage)

        values = [table[s] for s in self._order]
        if any(b < a for a, b in zip(values, values[1:])):
            logger.warning("Stage probability table is not monotonic: %s", values)

    @property
    def stages(self) -> tuple[OpportunityStage, ...]:
        return self._order

    def position(self, stage: "str | OpportunityStage") -> int:
        """1-indexed position of stage in pipeline order."""
        return self._order.index(OpportunityStage.parse(stage)) + 1

    def default_probability(self, stage: "str | OpportunityStage") -> int:
        return self._probabilities[OpportunityStage.parse(stage)]

    def progress_percent(self, stage: "str | OpportunityStage") -> int:
        """Position over stage count, rounded half-up; always in (0, 100]."""
        return int(math.floor(self.position(stage) * 100 / len(self._order) + 0.5))

    def suggested_next_stages(self, stage: "str | OpportunityStage") -> list[OpportunityStage]:
        return list(SUGGESTED_NEXT_STAGES[OpportunityStage.parse(stage)])

    def as_table(self) -> list[dict]:
        """Rows of stage, default probability and progress for display."""
        return [
            {
                "stage": s.value,
                "position": i,
                "default_probability": self._probabilities[s],
                "progress_percent": self.progress_percent(s),
            }
            for i, s in enumerate(self._order, start=1)
        ]
