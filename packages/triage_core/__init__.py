"""Case Triage Engine - Core Package.

Trigger evaluation, automatic resolution, specialist matching, staleness
monitoring and outcome learning, wired together by EscalationService.
"""

from .auto_resolution import AUTO_RESOLVED_OUTCOME, AutoResolutionAttempt, ResolutionAnalysis
from .collaborators import (
    CaseStore,
    Notifier,
    PatternStore,
    ResolutionExecutor,
    SpecialistDirectory,
)
from .factory import build_service, seed_specialists, specialists_from_seeds
from .guard import CollaboratorGuard
from .learner import PatternLearner
from .locks import KeyedLock
from .matcher import AssignmentMatcher, CandidateScore
from .monitor import PeriodicSweep, StalenessMonitor, SweepReport
from .service import EscalationService, ReassignmentResult
from .triggers import EvaluationResult, TriggerContext, TriggerEvaluator, TriggerResult

__version__ = "0.1.0"

__all__ = [
    "AUTO_RESOLVED_OUTCOME",
    "AssignmentMatcher",
    "AutoResolutionAttempt",
    "CandidateScore",
    "CaseStore",
    "CollaboratorGuard",
    "EscalationService",
    "EvaluationResult",
    "KeyedLock",
    "Notifier",
    "PatternLearner",
    "PatternStore",
    "PeriodicSweep",
    "ReassignmentResult",
    "ResolutionAnalysis",
    "ResolutionExecutor",
    "SpecialistDirectory",
    "StalenessMonitor",
    "SweepReport",
    "TriggerContext",
    "TriggerEvaluator",
    "TriggerResult",
    "build_service",
    "seed_specialists",
    "specialists_from_seeds",
]
