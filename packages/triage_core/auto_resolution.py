"""Automatic resolution of escalation cases.

Before a case reaches a human, prior outcomes for similar issues are
consulted. When similar cases were overwhelmingly closed by automation,
the most similar prior action is executed and the case is closed.

Any failure along the way means "not resolved": automation problems must
never block human escalation.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from triage_config import TriageConfig
from triage_runtime import CaseStatus, EscalationCase, OutcomeRecord, Resolution

from .collaborators import CaseStore, PatternStore, ResolutionExecutor
from .guard import CollaboratorGuard
from .metrics import AUTO_RESOLUTIONS

logger = logging.getLogger(__name__)

AUTO_RESOLVED_OUTCOME = "Automatically resolved"


@dataclass
class ResolutionAnalysis:
    """What prior outcomes say about resolving a case automatically.

    Attributes:
        similar_count: Number of similar prior outcomes found
        automatic_count: How many of them were resolved automatically and successfully
        confidence: automatic_count / similar_count, or 0.0 without history
        proposed_action: Action taken in the most similar prior outcome
        prevention_measures: Deduplicated measures from prior outcomes
    """

    similar_count: int
    automatic_count: int
    confidence: float
    proposed_action: str
    prevention_measures: List[str] = field(default_factory=list)


class AutoResolutionAttempt:
    """Tries to close a pending case without human involvement."""

    def __init__(
        self,
        config: TriageConfig,
        patterns: PatternStore,
        executor: ResolutionExecutor,
        guard: CollaboratorGuard,
        case_store: Optional[CaseStore] = None,
    ):
        """Initialize the resolution attempt.

        Args:
            config: Engine configuration
            patterns: Store of prior outcomes
            executor: Collaborator that carries out resolution actions
            guard: Timeout and retry wrapper for collaborator calls
            case_store: Optional store used to record the attempt on the case
        """
        self.settings = config.auto_resolution
        self.patterns = patterns
        self.executor = executor
        self.guard = guard
        self.case_store = case_store

    def analyze_outcomes(self, similar: List[OutcomeRecord]) -> ResolutionAnalysis:
        """Derive confidence and a proposed action from similar outcomes.

        Args:
            similar: Prior outcomes, most similar first

        Returns:
            ResolutionAnalysis for the case
        """
        automatic_count = sum(1 for record in similar if record.automatic and record.success)
        confidence = automatic_count / len(similar) if similar else 0.0

        proposed_action = next(
            (record.resolution_action for record in similar if record.resolution_action),
            self.settings.fallback_action,
        )

        measures: List[str] = []
        for record in similar:
            for measure in record.prevention_measures:
                if measure not in measures:
                    measures.append(measure)

        return ResolutionAnalysis(
            similar_count=len(similar),
            automatic_count=automatic_count,
            confidence=confidence,
            proposed_action=proposed_action,
            prevention_measures=measures[: self.settings.max_prevention_measures],
        )

    async def analyze(self, case: EscalationCase) -> ResolutionAnalysis:
        """Look up similar outcomes for a case and analyze them."""
        similar = await self.guard.best_effort(
            "pattern_store.query_similar",
            lambda: self.patterns.query_similar(
                case.context.issue, case.trigger_types, self.settings.similar_case_limit
            ),
            default=[],
        )
        return self.analyze_outcomes(list(similar))

    async def attempt(self, case: EscalationCase, now: Optional[datetime] = None) -> bool:
        """Try to resolve a case automatically.

        The caller must hold the case's lock. On success the case is marked
        ``auto_resolved``; otherwise it is left untouched.

        Args:
            case: Pending escalation case
            now: Resolution time, defaults to the current time

        Returns:
            True if the case was resolved, False otherwise (never raises)
        """
        if not self.settings.enabled:
            return False

        # Manual escalations always reach a human
        if case.has_manual_trigger:
            AUTO_RESOLUTIONS.labels(outcome="skipped_manual").inc()
            return False

        if case.status != CaseStatus.PENDING:
            return False

        try:
            analysis = await self.analyze(case)

            if analysis.confidence <= self.settings.confidence_threshold:
                logger.info(
                    "Auto-resolution declined for %s: confidence %.2f over %d similar case(s)",
                    case.id,
                    analysis.confidence,
                    analysis.similar_count,
                )
                AUTO_RESOLUTIONS.labels(outcome="low_confidence").inc()
                return False

            logger.info(
                "Executing auto-resolution for %s: %s (confidence %.2f)",
                case.id,
                analysis.proposed_action,
                analysis.confidence,
            )
            await self._record_attempt(case, analysis)

            succeeded = await self.guard.best_effort(
                "resolution_executor.execute",
                lambda: self.executor.execute(analysis.proposed_action, case.case_id),
                default=False,
                timeout=self.guard.settings.write_timeout_seconds,
            )
            if not succeeded:
                AUTO_RESOLUTIONS.labels(outcome="executor_failed").inc()
                return False

            case.mark_auto_resolved(
                Resolution(
                    action=analysis.proposed_action,
                    outcome=AUTO_RESOLVED_OUTCOME,
                    prevention_measures=analysis.prevention_measures,
                ),
                now=now,
            )
        except Exception:
            logger.exception("Auto-resolution failed for %s", case.id)
            AUTO_RESOLUTIONS.labels(outcome="error").inc()
            return False

        AUTO_RESOLUTIONS.labels(outcome="resolved").inc()
        return True

    async def _record_attempt(self, case: EscalationCase, analysis: ResolutionAnalysis) -> None:
        if self.case_store is None:
            return

        store = self.case_store
        await self.guard.best_effort(
            "case_store.record_interaction",
            lambda: store.record_interaction(
                case.case_id,
                "auto_resolution",
                {
                    "escalation_id": case.id,
                    "action": analysis.proposed_action,
                    "confidence": analysis.confidence,
                },
            ),
            default=None,
        )
