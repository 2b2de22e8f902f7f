"""Similarity between a new escalation and a recorded outcome."""

from typing import Iterable, List, Sequence

from triage_runtime import OutcomeRecord, TriggerType

from .text import jaccard, keywords

ISSUE_WEIGHT = 0.7
TRIGGER_WEIGHT = 0.3


def outcome_similarity(
    issue: str,
    trigger_types: Iterable[TriggerType],
    record: OutcomeRecord,
) -> float:
    """Score how alike an issue and a prior outcome are, from 0.0 to 1.0.

    Issue wording dominates; trigger overlap refines the ordering. Records
    that share no issue keywords are never similar.
    """
    issue_overlap = jaccard(keywords(issue), keywords(record.issue))
    if issue_overlap == 0.0:
        return 0.0
    trigger_overlap = jaccard(
        (t.value for t in trigger_types), (t.value for t in record.trigger_types)
    )
    return ISSUE_WEIGHT * issue_overlap + TRIGGER_WEIGHT * trigger_overlap


def rank_similar(
    issue: str,
    trigger_types: Sequence[TriggerType],
    records: Iterable[OutcomeRecord],
    limit: int,
    min_similarity: float,
) -> List[OutcomeRecord]:
    """Return the most similar records first, newest first on ties."""
    scored = []
    for record in records:
        score = outcome_similarity(issue, trigger_types, record)
        if score > 0.0 and score >= min_similarity:
            scored.append((score, record))

    scored.sort(key=lambda item: (item[0], item[1].recorded_at), reverse=True)
    return [record for _, record in scored[:limit]]
