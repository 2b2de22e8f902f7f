"""Trigger evaluator for scoring escalation urgency.

This module provides the evaluator that runs every trigger handler over an
issue and aggregates their contributions into a severity tier.
"""

from typing import Any, Dict, List, Mapping, Optional, Type, Union

from triage_config import TriageConfig
from triage_runtime import Severity, TriggerType

from .actions import suggest_actions
from .base import TriggerHandler
from .context import TriggerContext
from .handlers import (
    ComplexityTriggerHandler,
    DeadlineTriggerHandler,
    FailureRateTriggerHandler,
    ManualTriggerHandler,
    SentimentTriggerHandler,
)
from .result import EvaluationResult, TriggerResult


class TriggerEvaluator:
    """Evaluator for escalation triggers.

    Every handler is evaluated, in this fixed order:
    1. manual - explicit request from the caller
    2. deadline - proximity of the owning case's deadline
    3. failure_rate - consecutive failures
    4. user_sentiment - recent negative interactions
    5. complexity - indicator phrases and affected systems

    Unlike first-match policy evaluation, contributions are summed. The
    evaluator is pure: identical inputs always produce identical results.
    """

    HANDLER_CLASSES: Dict[TriggerType, Type[TriggerHandler]] = {
        TriggerType.MANUAL: ManualTriggerHandler,
        TriggerType.DEADLINE: DeadlineTriggerHandler,
        TriggerType.FAILURE_RATE: FailureRateTriggerHandler,
        TriggerType.USER_SENTIMENT: SentimentTriggerHandler,
        TriggerType.COMPLEXITY: ComplexityTriggerHandler,
    }

    def __init__(self, config: TriageConfig):
        """Initialize the evaluator.

        Args:
            config: Engine configuration holding thresholds and trigger settings
        """
        self.config = config
        self._handlers: List[TriggerHandler] = [
            handler_class() for handler_class in self.HANDLER_CLASSES.values()
        ]

    @property
    def escalation_threshold(self) -> int:
        """Minimum score that warrants an escalation case."""
        return self.config.thresholds.low

    def severity_for(self, score: int) -> Severity:
        """Map a score onto the severity table.

        Scores below the lowest threshold still map to ``low``; whether they
        escalate at all is decided separately.

        Args:
            score: Composite score

        Returns:
            Severity tier for the score
        """
        for name, minimum in self.config.thresholds.as_table():
            if score >= minimum:
                return Severity(name)
        return Severity.LOW

    def evaluate_all(
        self,
        issue_text: str,
        context: TriggerContext,
        manual_request: bool = False,
    ) -> List[TriggerResult]:
        """Run every handler and collect the contributing results.

        Args:
            issue_text: Issue text as reported
            context: Structured case signals
            manual_request: Whether escalation was requested explicitly

        Returns:
            Results of handlers that contributed, in evaluation order
        """
        results: List[TriggerResult] = []
        for handler in self._handlers:
            result = handler.evaluate(
                issue_text=issue_text,
                context=context,
                manual_request=manual_request,
                settings=self.config.triggers,
            )
            if result is not None and result.weight > 0:
                results.append(result)
        return results

    def evaluate(
        self,
        case_id: str,
        issue_text: str,
        context: Optional[Union[TriggerContext, Mapping[str, Any]]] = None,
        manual_request: bool = False,
    ) -> EvaluationResult:
        """Score an issue and decide whether it needs escalation.

        Args:
            case_id: Owning case identity
            issue_text: Issue text as reported
            context: Case signals, as a TriggerContext or a raw mapping
            manual_request: Whether escalation was requested explicitly

        Returns:
            EvaluationResult with score, severity, triggers and suggested actions

        Raises:
            ValueError: If the case id is missing
            pydantic.ValidationError: If the context is malformed
        """
        if not case_id or not case_id.strip():
            raise ValueError("Case id is required for evaluation")

        if context is None:
            context = TriggerContext()
        elif not isinstance(context, TriggerContext):
            context = TriggerContext.model_validate(dict(context))

        results = self.evaluate_all(issue_text or "", context, manual_request)
        score = sum(result.weight for result in results)
        trigger_types = [result.trigger_type for result in results]

        return EvaluationResult(
            should_escalate=score >= self.escalation_threshold,
            severity=self.severity_for(score),
            score=score,
            triggers=[result.to_trigger() for result in results],
            suggested_actions=suggest_actions(trigger_types),
            details={result.trigger_type.value: dict(result.metadata) for result in results},
        )
