"""Failure-rate trigger handler.

This handler scores repeated consecutive failures on the owning case.
"""

from typing import Optional

from triage_config import TriggerSettings
from triage_runtime import TriggerType

from ..base import TriggerHandler, count_tier_weight
from ..context import TriggerContext
from ..result import TriggerResult


class FailureRateTriggerHandler(TriggerHandler):
    """Handler for consecutive-failure escalation.

    Config options (from TriggerSettings):
        failure_tiers: Count tiers, highest minimum first
    """

    trigger_type = TriggerType.FAILURE_RATE

    def evaluate(
        self,
        issue_text: str,
        context: TriggerContext,
        manual_request: bool,
        settings: TriggerSettings,
    ) -> Optional[TriggerResult]:
        weight = count_tier_weight(context.failure_count, settings.failure_tiers)
        if weight == 0:
            return None

        return TriggerResult(
            trigger_type=self.trigger_type,
            weight=weight,
            metadata={"failure_count": context.failure_count},
        )
