"""Base class for escalation trigger handlers.

This module defines the abstract base class that all trigger handlers must implement.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from triage_config import CountTier, TriggerSettings
from triage_runtime import TriggerType

from .context import TriggerContext
from .result import TriggerResult


def count_tier_weight(count: int, tiers: Sequence[CountTier]) -> int:
    """Weight of the highest tier reached by ``count``.

    Args:
        count: Observed count
        tiers: Tiers ordered from highest to lowest minimum

    Returns:
        Weight of the first matching tier, or 0
    """
    for tier in tiers:
        if count >= tier.at_least:
            return tier.weight
    return 0


class TriggerHandler(ABC):
    """Abstract base class for trigger handlers.

    Handlers must be pure: the same inputs always produce the same result,
    and no handler performs I/O.
    """

    trigger_type: TriggerType

    @abstractmethod
    def evaluate(
        self,
        issue_text: str,
        context: TriggerContext,
        manual_request: bool,
        settings: TriggerSettings,
    ) -> Optional[TriggerResult]:
        """Evaluate the signal this handler is responsible for.

        Args:
            issue_text: Issue text as reported
            context: Structured case signals
            manual_request: Whether the caller explicitly asked for escalation
            settings: Trigger weights and tiers

        Returns:
            TriggerResult if the signal contributes to the score, None otherwise
        """
        pass
