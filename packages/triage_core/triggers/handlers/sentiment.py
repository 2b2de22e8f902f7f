"""Sentiment trigger handler.

This handler counts recent interactions flagged with negative sentiment
and triggers escalation once frustration keeps recurring.
"""

from typing import Any, Dict, Optional

from triage_config import TriggerSettings
from triage_runtime import TriggerType

from ..base import TriggerHandler, count_tier_weight
from ..context import TriggerContext
from ..result import TriggerResult


def interaction_sentiment(interaction: Dict[str, Any]) -> Optional[str]:
    """Extract the sentiment label of an interaction record.

    Interactions carry the label either at the top level or under a
    nested ``data`` mapping.

    Args:
        interaction: Interaction record

    Returns:
        Lowercased sentiment label, or None if absent
    """
    sentiment = interaction.get("sentiment")
    if sentiment is None:
        data = interaction.get("data")
        if isinstance(data, dict):
            sentiment = data.get("sentiment")

    if not isinstance(sentiment, str):
        return None
    return sentiment.strip().lower()


class SentimentTriggerHandler(TriggerHandler):
    """Handler for sentiment-based escalation.

    Only the newest ``sentiment_lookback`` interactions are inspected, so a
    long-past bad patch does not keep a case escalated. The contribution is
    capped at the weight of the highest tier.
    """

    trigger_type = TriggerType.USER_SENTIMENT

    def evaluate(
        self,
        issue_text: str,
        context: TriggerContext,
        manual_request: bool,
        settings: TriggerSettings,
    ) -> Optional[TriggerResult]:
        """Count negative interactions within the lookback window.

        Args:
            issue_text: Issue text (not used for sentiment)
            context: Case signals carrying 'interactions', newest last
            manual_request: Not used for sentiment
            settings: Trigger settings with sentiment tiers and lookback

        Returns:
            TriggerResult if enough negative interactions were found, None otherwise
        """
        window = context.interactions[-settings.sentiment_lookback :]
        negative = set(settings.negative_sentiments)

        negative_count = sum(
            1 for interaction in window if interaction_sentiment(interaction) in negative
        )

        weight = count_tier_weight(negative_count, settings.sentiment_tiers)
        if weight == 0:
            return None

        return TriggerResult(
            trigger_type=self.trigger_type,
            weight=weight,
            metadata={
                "negative_interactions": negative_count,
                "window": len(window),
            },
        )
