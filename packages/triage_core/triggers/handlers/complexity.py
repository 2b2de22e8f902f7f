"""Complexity trigger handler.

This handler scores issues that mention known high-complexity situations
or that span several downstream systems.
"""

from typing import List, Optional

from triage_config import TriggerSettings
from triage_runtime import TriggerType

from ..base import TriggerHandler
from ..context import TriggerContext
from ..result import TriggerResult


class ComplexityTriggerHandler(TriggerHandler):
    """Handler for complexity-based escalation.

    Each matched indicator phrase adds a fixed weight, and touching more
    than ``affected_systems_threshold`` systems adds a bonus. The total is
    capped at ``complexity_cap`` regardless of how many indicators match.
    """

    trigger_type = TriggerType.COMPLEXITY

    def evaluate(
        self,
        issue_text: str,
        context: TriggerContext,
        manual_request: bool,
        settings: TriggerSettings,
    ) -> Optional[TriggerResult]:
        """Score the complexity of the reported issue.

        Args:
            issue_text: Issue text searched for indicator phrases
            context: Case signals carrying 'affected_systems'
            manual_request: Not used for complexity
            settings: Trigger settings with indicators, bonus and cap

        Returns:
            TriggerResult if the issue is complex, None otherwise
        """
        issue_lower = issue_text.lower()
        matched: List[str] = [
            indicator for indicator in settings.complexity_indicators if indicator in issue_lower
        ]

        raw_score = len(matched) * settings.complexity_indicator_weight

        distinct_systems = len(set(context.affected_systems))
        if distinct_systems > settings.affected_systems_threshold:
            raw_score += settings.affected_systems_bonus

        weight = min(raw_score, settings.complexity_cap)
        if weight == 0:
            return None

        return TriggerResult(
            trigger_type=self.trigger_type,
            weight=weight,
            metadata={
                "matched_indicators": matched,
                "affected_systems": distinct_systems,
                "uncapped_score": raw_score,
            },
        )
