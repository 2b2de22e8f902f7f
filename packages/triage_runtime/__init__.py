"""Case Triage Engine - Runtime Package."""

from .errors import (
    CaseNotFoundError,
    CollaboratorError,
    InvalidTransitionError,
    PersistenceError,
    SpecialistNotFoundError,
    TriageError,
)
from .queue import EscalationQueue
from .state import (
    LOAD_HOLDING_STATUSES,
    TERMINAL_STATUSES,
    Availability,
    CaseContext,
    CaseStatus,
    EscalationCase,
    EscalationStats,
    OutcomeRecord,
    Resolution,
    Severity,
    Specialist,
    Trigger,
    TriggerType,
    utcnow,
)

__version__ = "0.1.0"

__all__ = [
    "LOAD_HOLDING_STATUSES",
    "TERMINAL_STATUSES",
    "Availability",
    "CaseContext",
    "CaseNotFoundError",
    "CaseStatus",
    "CollaboratorError",
    "EscalationCase",
    "EscalationQueue",
    "EscalationStats",
    "InvalidTransitionError",
    "OutcomeRecord",
    "PersistenceError",
    "Resolution",
    "Severity",
    "Specialist",
    "SpecialistNotFoundError",
    "TriageError",
    "Trigger",
    "TriggerType",
    "utcnow",
]
