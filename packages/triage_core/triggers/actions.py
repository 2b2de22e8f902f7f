"""Canned follow-up actions for fired trigger types."""

from typing import Dict, Iterable, List, Tuple

from triage_runtime import TriggerType

SUGGESTED_ACTIONS: Dict[TriggerType, Tuple[str, ...]] = {
    TriggerType.MANUAL: ("Review the escalation request with the case owner",),
    TriggerType.DEADLINE: (
        "Expedite document processing",
        "Contact servicer for rush processing",
        "Prepare contingency plan for deadline extension",
    ),
    TriggerType.FAILURE_RATE: (
        "Switch to alternative submission method",
        "Manual intervention for document submission",
        "Direct contact with servicer representative",
    ),
    TriggerType.USER_SENTIMENT: (
        "Proactive user communication with updates",
        "Offer compensation or expedited service",
        "Schedule call with user to address concerns",
    ),
    TriggerType.COMPLEXITY: (
        "Involve subject matter expert",
        "Create detailed action plan",
        "Schedule cross-functional team meeting",
    ),
}


def suggest_actions(trigger_types: Iterable[TriggerType]) -> List[str]:
    """Map a set of fired trigger types to suggested actions.

    Actions follow the canonical trigger order regardless of the order of
    ``trigger_types``, so equal sets always give equal lists.

    Args:
        trigger_types: Trigger types that fired

    Returns:
        Deduplicated list of actions
    """
    active = set(trigger_types)
    actions: List[str] = []
    for trigger_type in TriggerType:
        if trigger_type not in active:
            continue
        for action in SUGGESTED_ACTIONS.get(trigger_type, ()):
            if action not in actions:
                actions.append(action)
    return actions
