"""Deadline proximity trigger handler.

This handler scores how close the owning case is to its deadline.
Missing deadline data never fires and never errors.
"""

from typing import Optional

from triage_config import TriggerSettings
from triage_runtime import TriggerType

from ..base import TriggerHandler
from ..context import TriggerContext
from ..result import TriggerResult


class DeadlineTriggerHandler(TriggerHandler):
    """Handler for deadline-based escalation.

    Tiers are checked from the nearest bound outwards; the first bound the
    remaining time falls under decides the weight. A deadline that has
    already passed counts as the nearest tier.
    """

    trigger_type = TriggerType.DEADLINE

    def evaluate(
        self,
        issue_text: str,
        context: TriggerContext,
        manual_request: bool,
        settings: TriggerSettings,
    ) -> Optional[TriggerResult]:
        """Score the remaining time before the case deadline.

        Args:
            issue_text: Issue text (not used for deadline checks)
            context: Case signals carrying 'hours_to_deadline'
            manual_request: Not used for deadline checks
            settings: Trigger settings with 'deadline_tiers'

        Returns:
            TriggerResult if the deadline falls within a tier, None otherwise
        """
        hours = context.hours_to_deadline
        if hours is None:
            return None

        for tier in settings.deadline_tiers:
            if hours < tier.within_hours:
                if tier.weight == 0:
                    return None
                return TriggerResult(
                    trigger_type=self.trigger_type,
                    weight=tier.weight,
                    metadata={
                        "hours_to_deadline": hours,
                        "within_hours": tier.within_hours,
                    },
                )

        return None
