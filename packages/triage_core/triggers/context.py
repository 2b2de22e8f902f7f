"""Input signals for trigger evaluation."""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TriggerContext(BaseModel):
    """Structured signals describing the case at evaluation time.

    Keys are accepted in snake_case or camelCase, and ``deadlineProximity``
    is read as the hours to deadline. Unknown keys are ignored so callers
    can pass their raw context through; known keys are validated, so
    malformed context is rejected before any state is touched.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    hours_to_deadline: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("hours_to_deadline", "hoursToDeadline", "deadlineProximity"),
        description="Hours until the case deadline",
    )
    failure_count: int = Field(default=0, ge=0, description="Recent consecutive failures")
    interactions: List[Dict[str, Any]] = Field(
        default_factory=list, description="Recent interactions, newest last"
    )
    affected_systems: List[str] = Field(default_factory=list)
    user_sentiment: Optional[str] = Field(default=None)
    history: List[Dict[str, Any]] = Field(default_factory=list)
