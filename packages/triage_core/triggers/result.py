"""Trigger evaluation result models.

This module defines the data structures returned by individual trigger
handlers and by the evaluator as a whole.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from triage_runtime import Severity, Trigger, TriggerType


@dataclass
class TriggerResult:
    """Contribution of a single trigger handler.

    Attributes:
        trigger_type: Signal that fired
        weight: Score contribution (non-negative)
        metadata: Additional detail about why the signal fired
    """

    trigger_type: TriggerType
    weight: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate trigger result attributes."""
        if self.weight < 0:
            raise ValueError("Trigger weight cannot be negative")

    def to_trigger(self) -> Trigger:
        """Convert to the trigger recorded on an escalation case."""
        return Trigger(type=self.trigger_type, weight=self.weight)


@dataclass
class EvaluationResult:
    """Outcome of evaluating every trigger for an issue.

    Attributes:
        should_escalate: Whether the score reaches the escalation threshold
        severity: Severity tier derived from the score
        score: Sum of all trigger weights
        triggers: Fired triggers in evaluation order
        suggested_actions: Canned actions for the fired trigger types
        details: Per-trigger metadata keyed by trigger type
    """

    should_escalate: bool
    severity: Severity
    score: int
    triggers: List[Trigger] = field(default_factory=list)
    suggested_actions: List[str] = field(default_factory=list)
    details: Dict[str, Dict[str, Any]] = field(default_factory=dict)
