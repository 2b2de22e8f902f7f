"""Pydantic models for API request/response schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from triage_runtime import EscalationCase


class EvaluateRequest(BaseModel):
    """Request model for scoring or escalating an issue."""

    case_id: str = Field(..., description="Owning case or transaction id")
    issue: str = Field(..., description="Issue text as reported")
    context: dict[str, Any] = Field(default_factory=dict, description="Case signals")
    manual_request: bool = Field(default=False, description="Escalation explicitly requested")


class TriggerResponse(BaseModel):
    """One trigger contribution."""

    type: str
    weight: int


class EvaluationResponse(BaseModel):
    """Response model for an evaluation."""

    should_escalate: bool
    severity: str
    score: int
    triggers: list[TriggerResponse] = Field(default_factory=list)
    suggested_actions: list[str] = Field(default_factory=list)


class ResolutionResponse(BaseModel):
    """How a case was closed."""

    action: str
    outcome: str
    prevention_measures: list[str] = Field(default_factory=list)


class EscalationResponse(BaseModel):
    """Response model for an escalation case."""

    id: str = Field(..., description="Escalation id")
    case_id: str = Field(..., description="Owning case id")
    severity: str
    score: int
    status: str
    triggers: list[TriggerResponse] = Field(default_factory=list)
    suggested_actions: list[str] = Field(default_factory=list)
    assigned_specialist_id: Optional[str] = None
    created_at: datetime
    assigned_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolution: Optional[ResolutionResponse] = None

    @classmethod
    def from_case(cls, case: EscalationCase) -> "EscalationResponse":
        return cls(
            id=case.id,
            case_id=case.case_id,
            severity=case.severity.value,
            score=case.score,
            status=case.status.value,
            triggers=[
                TriggerResponse(type=trigger.type.value, weight=trigger.weight)
                for trigger in case.triggers
            ],
            suggested_actions=list(case.context.suggested_actions),
            assigned_specialist_id=case.assigned_specialist_id,
            created_at=case.created_at,
            assigned_at=case.assigned_at,
            resolved_at=case.resolved_at,
            resolution=(
                ResolutionResponse(**case.resolution.model_dump()) if case.resolution else None
            ),
        )


class EscalateResponse(BaseModel):
    """Response model for evaluate-and-escalate."""

    escalated: bool = Field(..., description="Whether a case was opened")
    severity: str
    score: int
    escalation: Optional[EscalationResponse] = None


class ResolveRequest(BaseModel):
    """Request model for closing a case."""

    action: str = Field(..., description="Action the specialist took")
    outcome: str = Field(..., description="Observed outcome")
    prevention_measures: list[str] = Field(default_factory=list)
    success: bool = Field(default=True)


class SpecialistResponse(BaseModel):
    """Response model for a specialist."""

    id: str
    name: str
    specialties: list[str] = Field(default_factory=list)
    availability: str
    current_load: int
    success_rate: float
    average_resolution_time: float


class StatsResponse(BaseModel):
    """Response model for queue statistics."""

    total: int
    by_severity: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)
    average_resolution_time: float = Field(..., description="Minutes")
    auto_resolution_rate: float


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
