"""Outcome learning for future auto-resolution confidence."""

import logging
from typing import Optional

from triage_runtime import CaseStatus, EscalationCase, OutcomeRecord

from .collaborators import PatternStore
from .guard import CollaboratorGuard

logger = logging.getLogger(__name__)

ISSUE_SUMMARY_LENGTH = 280


class PatternLearner:
    """Appends immutable outcome records to the pattern store.

    Records are only ever appended; nothing here reads or rewrites
    earlier outcomes.
    """

    def __init__(self, patterns: PatternStore, guard: CollaboratorGuard):
        self.patterns = patterns
        self.guard = guard

    @staticmethod
    def build_record(case: EscalationCase, success: bool) -> OutcomeRecord:
        """Summarize a closed case as an outcome record.

        Args:
            case: Resolved or auto-resolved case
            success: Whether the resolution worked

        Returns:
            Immutable OutcomeRecord
        """
        resolution = case.resolution
        return OutcomeRecord(
            trigger_types=tuple(case.trigger_types),
            severity=case.severity,
            issue=case.context.issue[:ISSUE_SUMMARY_LENGTH],
            resolution_action=resolution.action if resolution else None,
            prevention_measures=tuple(resolution.prevention_measures) if resolution else (),
            automatic=case.status == CaseStatus.AUTO_RESOLVED,
            success=success,
            resolution_minutes=case.resolution_minutes(),
        )

    async def record_outcome(self, case: EscalationCase, success: bool) -> OutcomeRecord:
        """Append the outcome of a case to the pattern store.

        Raises:
            PersistenceError: If the append failed after all retries
        """
        record = self.build_record(case, success)
        await self.guard.write(
            "pattern_store.append_outcome", lambda: self.patterns.append_outcome(record)
        )
        logger.info(
            "Recorded %s outcome for %s (success=%s)",
            "automatic" if record.automatic else "manual",
            case.id,
            success,
        )
        return record

    async def try_record_outcome(
        self, case: EscalationCase, success: bool
    ) -> Optional[OutcomeRecord]:
        """Like record_outcome, but logs instead of raising on failure."""
        try:
            return await self.record_outcome(case, success)
        except Exception:
            logger.exception("Could not record outcome for %s", case.id)
            return None
