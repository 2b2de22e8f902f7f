"""State models for the triage engine runtime.

This module defines the state models shared by every engine component:
escalation cases and their lifecycle, specialists, and the immutable
outcome records used for learning.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import InvalidTransitionError


def utcnow() -> datetime:
    """Get the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Severity(str, Enum):
    """Severity tier of an escalation case."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CaseStatus(str, Enum):
    """Lifecycle status of an escalation case."""

    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    AUTO_RESOLVED = "auto_resolved"


class TriggerType(str, Enum):
    """Signal that contributed to an escalation score."""

    MANUAL = "manual"
    DEADLINE = "deadline"
    FAILURE_RATE = "failure_rate"
    USER_SENTIMENT = "user_sentiment"
    COMPLEXITY = "complexity"


class Availability(str, Enum):
    """Availability of a specialist."""

    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


TERMINAL_STATUSES: FrozenSet[CaseStatus] = frozenset(
    {CaseStatus.RESOLVED, CaseStatus.AUTO_RESOLVED}
)

# Statuses in which a case holds one unit of its specialist's load
LOAD_HOLDING_STATUSES: FrozenSet[CaseStatus] = frozenset(
    {CaseStatus.ASSIGNED, CaseStatus.IN_PROGRESS}
)


class Trigger(BaseModel):
    """A single signal contribution to an escalation score."""

    model_config = ConfigDict(frozen=True)

    type: TriggerType = Field(..., description="Signal that fired")
    weight: int = Field(..., ge=0, description="Score contribution of the signal")


class CaseContext(BaseModel):
    """Context captured when an escalation case is created."""

    issue: str = Field(..., description="Issue text as reported")
    history: List[Dict[str, Any]] = Field(
        default_factory=list, description="Recent case history entries"
    )
    suggested_actions: List[str] = Field(
        default_factory=list, description="Canned actions for the active triggers"
    )
    user_sentiment: Optional[str] = Field(default=None, description="Latest sentiment signal")
    deadline_proximity: Optional[float] = Field(
        default=None, description="Hours until the case deadline"
    )
    failure_count: Optional[int] = Field(default=None, ge=0)


class Resolution(BaseModel):
    """How an escalation case was closed."""

    action: str = Field(..., description="Action taken to resolve the case")
    outcome: str = Field(..., description="Observed outcome")
    prevention_measures: List[str] = Field(default_factory=list)


class EscalationCase(BaseModel):
    """An escalated problem on a tracked case."""

    id: str = Field(
        default_factory=lambda: f"esc_{uuid4().hex[:12]}", description="Escalation id"
    )
    case_id: str = Field(..., description="Owning case or transaction id")
    severity: Severity = Field(..., description="Severity tier")
    triggers: List[Trigger] = Field(default_factory=list, description="Triggers in order")
    score: int = Field(..., ge=0, description="Sum of trigger weights")
    status: CaseStatus = Field(default=CaseStatus.PENDING)
    assigned_specialist_id: Optional[str] = Field(default=None)
    context: CaseContext = Field(..., description="Captured case context")
    created_at: datetime = Field(default_factory=utcnow)
    assigned_at: Optional[datetime] = Field(default=None)
    resolved_at: Optional[datetime] = Field(default=None)
    updated_at: datetime = Field(default_factory=utcnow)
    resolution: Optional[Resolution] = Field(default=None)

    @field_validator("case_id")
    @classmethod
    def validate_case_id(cls, v: str) -> str:
        """Validate the owning case id is not empty."""
        if not v or not v.strip():
            raise ValueError("Case id cannot be empty")
        return v.strip()

    @property
    def is_terminal(self) -> bool:
        """Whether the case is closed and immutable."""
        return self.status in TERMINAL_STATUSES

    @property
    def holds_load(self) -> bool:
        """Whether the case counts against its specialist's load."""
        return self.status in LOAD_HOLDING_STATUSES and self.assigned_specialist_id is not None

    @property
    def trigger_types(self) -> List[TriggerType]:
        """Trigger types in evaluation order."""
        return [trigger.type for trigger in self.triggers]

    @property
    def has_manual_trigger(self) -> bool:
        """Whether escalation was requested explicitly."""
        return TriggerType.MANUAL in self.trigger_types

    def _require(self, target: CaseStatus, *allowed: CaseStatus) -> None:
        if self.status not in allowed:
            raise InvalidTransitionError(self.id, self.status.value, target.value)

    def mark_assigned(self, specialist_id: str, now: Optional[datetime] = None) -> None:
        """Assign (or reassign) the case to a specialist.

        Args:
            specialist_id: Specialist receiving the case
            now: Assignment time, defaults to the current time
        """
        self._require(CaseStatus.ASSIGNED, CaseStatus.PENDING, CaseStatus.ASSIGNED)
        timestamp = now or utcnow()
        self.assigned_specialist_id = specialist_id
        self.assigned_at = timestamp
        self.status = CaseStatus.ASSIGNED
        self.updated_at = timestamp

    def mark_unassigned(self, now: Optional[datetime] = None) -> None:
        """Return an assigned case to the pending pool."""
        self._require(CaseStatus.PENDING, CaseStatus.ASSIGNED)
        self.assigned_specialist_id = None
        self.assigned_at = None
        self.status = CaseStatus.PENDING
        self.updated_at = now or utcnow()

    def mark_in_progress(self, now: Optional[datetime] = None) -> None:
        """Record that the assigned specialist started working the case."""
        self._require(CaseStatus.IN_PROGRESS, CaseStatus.ASSIGNED)
        self.status = CaseStatus.IN_PROGRESS
        self.updated_at = now or utcnow()

    def mark_resolved(self, resolution: Resolution, now: Optional[datetime] = None) -> None:
        """Close the case after human resolution.

        Args:
            resolution: How the case was resolved
            now: Resolution time, defaults to the current time
        """
        self._require(CaseStatus.RESOLVED, CaseStatus.IN_PROGRESS)
        timestamp = now or utcnow()
        self.status = CaseStatus.RESOLVED
        self.resolution = resolution
        self.resolved_at = timestamp
        self.updated_at = timestamp

    def mark_auto_resolved(self, resolution: Resolution, now: Optional[datetime] = None) -> None:
        """Close the case without human involvement."""
        self._require(CaseStatus.AUTO_RESOLVED, CaseStatus.PENDING)
        timestamp = now or utcnow()
        self.status = CaseStatus.AUTO_RESOLVED
        self.resolution = resolution
        self.resolved_at = timestamp
        self.updated_at = timestamp

    def resolution_minutes(self) -> Optional[float]:
        """Minutes from creation to resolution, or None while open."""
        if self.resolved_at is None:
            return None
        return (self.resolved_at - self.created_at).total_seconds() / 60


class Specialist(BaseModel):
    """A human specialist who can take escalated cases."""

    id: str = Field(..., description="Unique specialist identifier")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(default=None, description="Contact address")
    specialties: List[str] = Field(default_factory=list, description="Specialty keywords")
    availability: Availability = Field(default=Availability.AVAILABLE)
    current_load: int = Field(default=0, ge=0, description="Open cases held")
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    average_resolution_time: float = Field(
        default=60.0, ge=0.0, description="Average resolution time in minutes"
    )


class OutcomeRecord(BaseModel):
    """Immutable record of how an escalation ended."""

    model_config = ConfigDict(frozen=True)

    trigger_types: Tuple[TriggerType, ...] = Field(default_factory=tuple)
    severity: Severity
    issue: str = Field(..., description="Issue summary")
    resolution_action: Optional[str] = Field(default=None)
    prevention_measures: Tuple[str, ...] = Field(default_factory=tuple)
    automatic: bool = Field(default=False, description="Resolved without a human")
    success: bool = Field(default=True)
    resolution_minutes: Optional[float] = Field(default=None, ge=0)
    recorded_at: datetime = Field(default_factory=utcnow)


class EscalationStats(BaseModel):
    """Aggregate view over the escalation queue."""

    total: int = 0
    by_severity: Dict[str, int] = Field(default_factory=dict)
    by_status: Dict[str, int] = Field(default_factory=dict)
    average_resolution_time: float = Field(default=0.0, description="Minutes")
    auto_resolution_rate: float = 0.0
