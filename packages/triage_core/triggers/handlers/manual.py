"""Manual escalation trigger handler.

Fires whenever the caller explicitly asks for a human.
"""

from typing import Optional

from triage_config import TriggerSettings
from triage_runtime import TriggerType

from ..base import TriggerHandler
from ..context import TriggerContext
from ..result import TriggerResult


class ManualTriggerHandler(TriggerHandler):
    """Handler for explicit escalation requests."""

    trigger_type = TriggerType.MANUAL

    def evaluate(
        self,
        issue_text: str,
        context: TriggerContext,
        manual_request: bool,
        settings: TriggerSettings,
    ) -> Optional[TriggerResult]:
        if not manual_request or settings.manual_weight == 0:
            return None

        return TriggerResult(
            trigger_type=self.trigger_type,
            weight=settings.manual_weight,
            metadata={"requested": True},
        )
