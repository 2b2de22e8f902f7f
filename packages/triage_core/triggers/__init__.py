"""Escalation triggers for the triage engine.

This module provides the trigger evaluator and the per-signal handlers
that score whether a case needs a human.
"""

from .actions import SUGGESTED_ACTIONS, suggest_actions
from .base import TriggerHandler
from .context import TriggerContext
from .engine import TriggerEvaluator
from .result import EvaluationResult, TriggerResult

__all__ = [
    "SUGGESTED_ACTIONS",
    "EvaluationResult",
    "TriggerContext",
    "TriggerEvaluator",
    "TriggerHandler",
    "TriggerResult",
    "suggest_actions",
]
