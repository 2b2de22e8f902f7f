"""Escalation service.

The service owns every piece of mutable engine state: the escalation queue,
the per-case locks and the pool lock. It wires evaluation, automatic
resolution, assignment and learning together over the collaborators.

Locking rules:
- every mutation of a case happens under that case's lock
- reading the specialist pool, choosing a specialist and changing its load
  happen together under the pool lock
- the pool lock is only ever taken while already holding a case lock, never
  the other way round
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Collection, Dict, List, Mapping, Optional, Tuple, Union

from triage_config import TriageConfig
from triage_runtime import (
    Availability,
    CaseContext,
    CaseNotFoundError,
    CaseStatus,
    EscalationCase,
    EscalationQueue,
    EscalationStats,
    InvalidTransitionError,
    PersistenceError,
    Resolution,
    Specialist,
    utcnow,
)

from .auto_resolution import AutoResolutionAttempt
from .collaborators import (
    CaseStore,
    Notifier,
    PatternStore,
    ResolutionExecutor,
    SpecialistDirectory,
)
from .guard import CollaboratorGuard
from .learner import PatternLearner
from .locks import KeyedLock
from .matcher import AssignmentMatcher
from .metrics import (
    ASSIGNMENTS,
    ESCALATIONS,
    EVALUATION_LATENCY,
    EVALUATIONS,
    OPEN_CASES,
    REASSIGNMENTS,
    RESOLUTIONS,
)
from .triggers import EvaluationResult, TriggerContext, TriggerEvaluator

logger = logging.getLogger(__name__)


class ReassignmentResult(str, Enum):
    """What happened to a case handed to ``reassign``."""

    REASSIGNED = "reassigned"
    UNASSIGNED = "unassigned"
    SKIPPED = "skipped"
    FAILED = "failed"


class EscalationService:
    """Runs the escalation lifecycle for one engine instance."""

    def __init__(
        self,
        config: TriageConfig,
        case_store: CaseStore,
        directory: SpecialistDirectory,
        patterns: PatternStore,
        notifier: Notifier,
        executor: ResolutionExecutor,
        queue: Optional[EscalationQueue] = None,
    ):
        """Initialize the service.

        Args:
            config: Engine configuration
            case_store: Owner of case records and durable escalation records
            directory: Owner of specialist records
            patterns: Append-only outcome log
            notifier: Assignment notifications
            executor: Runs automatic resolution actions
            queue: Optional pre-built queue, a fresh one by default
        """
        self.config = config
        self.case_store = case_store
        self.directory = directory
        self.patterns = patterns
        self.notifier = notifier
        self.executor = executor
        self.queue = queue or EscalationQueue()

        self.guard = CollaboratorGuard(config.collaborators)
        self.evaluator = TriggerEvaluator(config)
        self.matcher = AssignmentMatcher(config)
        self.auto_resolver = AutoResolutionAttempt(
            config, patterns, executor, self.guard, case_store=case_store
        )
        self.learner = PatternLearner(patterns, self.guard)

        self._case_locks = KeyedLock()
        self._pool_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    async def build_context(
        self,
        case_id: str,
        context: Optional[Union[TriggerContext, Mapping[str, Any]]] = None,
    ) -> TriggerContext:
        """Resolve caller context into a complete TriggerContext.

        Missing deadline and interaction data is read from the case store.
        Slow or failing reads count as "no data".

        Raises:
            pydantic.ValidationError: If the caller context is malformed
        """
        if context is None:
            resolved = TriggerContext()
        elif isinstance(context, TriggerContext):
            resolved = context
        else:
            resolved = TriggerContext.model_validate(dict(context))

        updates: Dict[str, Any] = {}

        if resolved.hours_to_deadline is None:
            deadline = await self.guard.best_effort(
                "case_store.get_deadline",
                lambda: self.case_store.get_deadline(case_id),
                default=None,
            )
            if deadline is not None:
                if deadline.tzinfo is None:
                    deadline = deadline.replace(tzinfo=timezone.utc)
                updates["hours_to_deadline"] = (deadline - utcnow()).total_seconds() / 3600

        if not resolved.interactions:
            interactions = await self.guard.best_effort(
                "case_store.recent_interactions",
                lambda: self.case_store.recent_interactions(
                    case_id, self.config.triggers.sentiment_lookback
                ),
                default=[],
            )
            if interactions:
                updates["interactions"] = list(interactions)

        return resolved.model_copy(update=updates) if updates else resolved

    async def evaluate(
        self,
        case_id: str,
        issue_text: str,
        context: Optional[Union[TriggerContext, Mapping[str, Any]]] = None,
        manual_request: bool = False,
    ) -> EvaluationResult:
        """Score an issue without creating anything.

        Args:
            case_id: Owning case identity
            issue_text: Issue text as reported
            context: Caller-supplied signals
            manual_request: Whether escalation was requested explicitly

        Returns:
            EvaluationResult for the issue

        Raises:
            ValueError: If the case id is missing
            pydantic.ValidationError: If the context is malformed
        """
        _require_case_id(case_id)
        started = time.perf_counter()

        trigger_context = await self.build_context(case_id, context)
        result = self.evaluator.evaluate(case_id, issue_text, trigger_context, manual_request)

        EVALUATION_LATENCY.observe(time.perf_counter() - started)
        EVALUATIONS.labels(
            outcome="escalate" if result.should_escalate else "below_threshold"
        ).inc()
        return result

    async def escalate(
        self,
        case_id: str,
        issue_text: str,
        context: Optional[Union[TriggerContext, Mapping[str, Any]]] = None,
        manual_request: bool = False,
    ) -> Optional[EscalationCase]:
        """Evaluate an issue and, when warranted, open an escalation case.

        Shorthand for ``evaluate_and_escalate`` that only returns the case.

        Returns:
            Snapshot of the new case, or None below the escalation threshold
        """
        _, case = await self.evaluate_and_escalate(case_id, issue_text, context, manual_request)
        return case

    async def evaluate_and_escalate(
        self,
        case_id: str,
        issue_text: str,
        context: Optional[Union[TriggerContext, Mapping[str, Any]]] = None,
        manual_request: bool = False,
    ) -> Tuple[EvaluationResult, Optional[EscalationCase]]:
        """Evaluate an issue and, when warranted, open an escalation case.

        A new case is persisted, offered to automatic resolution and then
        assigned to the best available specialist.

        Returns:
            The evaluation, and a snapshot of the new case or None when the
            score is below the escalation threshold

        Raises:
            ValueError: If the case id or issue text is missing
            pydantic.ValidationError: If the context is malformed
            PersistenceError: If the case could not be persisted
        """
        _require_case_id(case_id)
        if not issue_text or not issue_text.strip():
            raise ValueError("Issue text is required for escalation")

        started = time.perf_counter()
        trigger_context = await self.build_context(case_id, context)
        result = self.evaluator.evaluate(case_id, issue_text, trigger_context, manual_request)
        EVALUATION_LATENCY.observe(time.perf_counter() - started)

        if not result.should_escalate:
            EVALUATIONS.labels(outcome="below_threshold").inc()
            logger.debug("Case %s scored %d; no escalation", case_id, result.score)
            return result, None

        EVALUATIONS.labels(outcome="escalate").inc()
        case = EscalationCase(
            case_id=case_id,
            severity=result.severity,
            triggers=result.triggers,
            score=result.score,
            context=CaseContext(
                issue=issue_text,
                history=list(trigger_context.history),
                suggested_actions=result.suggested_actions,
                user_sentiment=trigger_context.user_sentiment,
                deadline_proximity=trigger_context.hours_to_deadline,
                failure_count=trigger_context.failure_count,
            ),
        )
        return result, await self.open_case(case)

    async def open_case(self, case: EscalationCase) -> EscalationCase:
        """Persist a new pending case, then resolve or assign it.

        Raises:
            ValueError: If the case is not pending or already queued
            PersistenceError: If the case could not be persisted
        """
        if case.status != CaseStatus.PENDING:
            raise ValueError(f"New escalation {case.id} must be pending")

        async with self._case_locks(case.id):
            self.queue.add(case)
            try:
                await self.guard.write(
                    "case_store.create_escalation",
                    lambda: self.case_store.create_escalation(case),
                )
            except PersistenceError:
                self.queue.remove(case.id)
                self._case_locks.discard(case.id)
                raise

            ESCALATIONS.labels(severity=case.severity.value).inc()
            OPEN_CASES.inc()
            logger.info(
                "Opened escalation %s for case %s (severity=%s, score=%d)",
                case.id,
                case.case_id,
                case.severity.value,
                case.score,
            )

            if await self.auto_resolver.attempt(case):
                OPEN_CASES.dec()
                logger.info("Escalation %s resolved automatically", case.id)
                try:
                    await self._persist("case_store.update_escalation", case)
                finally:
                    self._case_locks.discard(case.id)
                    await self.learner.try_record_outcome(case, success=True)
            else:
                await self._assign_locked(case)

            return case.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    async def assign(self, escalation_id: str) -> Optional[str]:
        """Assign a pending case to the best available specialist.

        Returns:
            Id of the chosen specialist, or None if nobody qualified

        Raises:
            CaseNotFoundError: If the escalation id is unknown
            InvalidTransitionError: If the case is not pending
        """
        case = self.queue.require(escalation_id)
        async with self._case_locks(case.id):
            if not self._is_queued(case):
                raise CaseNotFoundError(escalation_id)
            if case.status != CaseStatus.PENDING:
                raise InvalidTransitionError(
                    case.id, case.status.value, CaseStatus.ASSIGNED.value
                )
            return await self._assign_locked(case)

    async def retry_pending(self) -> List[str]:
        """Try to assign every pending case.

        Returns:
            Ids of the cases that got a specialist
        """
        assigned: List[str] = []
        for case in self.queue.list(status=CaseStatus.PENDING):
            async with self._case_locks(case.id):
                if not self._is_queued(case) or case.status != CaseStatus.PENDING:
                    continue
                if await self._assign_locked(case) is not None:
                    assigned.append(case.id)
        return assigned

    async def reassign(
        self,
        escalation_id: str,
        now: Optional[datetime] = None,
        when: Optional[Callable[[EscalationCase], bool]] = None,
    ) -> ReassignmentResult:
        """Take an assigned case away from its specialist and match it again.

        Args:
            escalation_id: Case to reassign
            now: Reassignment time, defaults to the current time
            when: Optional predicate re-checked under the case lock; the
                case is skipped when it returns False

        Returns:
            ReassignmentResult describing the outcome

        Raises:
            CaseNotFoundError: If the escalation id is unknown
        """
        case = self.queue.require(escalation_id)
        async with self._case_locks(case.id):
            if not self._is_queued(case) or case.status != CaseStatus.ASSIGNED:
                return ReassignmentResult.SKIPPED
            if when is not None and not when(case):
                return ReassignmentResult.SKIPPED
            result = await self._reassign_locked(case, now)

        REASSIGNMENTS.labels(result=result.value).inc()
        return result

    def _is_queued(self, case: EscalationCase) -> bool:
        # A case dropped after a failed create may still be held by a waiter
        return self.queue.get(case.id) is case

    async def _assign_locked(
        self,
        case: EscalationCase,
        exclude: Collection[str] = (),
        now: Optional[datetime] = None,
    ) -> Optional[str]:
        async with self._pool_lock:
            specialist = await self._claim_specialist(case, exclude)
            if specialist is None:
                return None
            case.mark_assigned(specialist.id, now=now)

        await self._after_assignment(case)
        return specialist.id

    async def _reassign_locked(
        self, case: EscalationCase, now: Optional[datetime]
    ) -> ReassignmentResult:
        previous = case.assigned_specialist_id
        exclude = (
            {previous}
            if previous and self.config.matching.exclude_previous_on_reassign
            else set()
        )

        async with self._pool_lock:
            if previous is not None:
                try:
                    await self._release_load(previous)
                except PersistenceError:
                    logger.error(
                        "Could not release %s from %s; keeping the assignment",
                        previous,
                        case.id,
                    )
                    return ReassignmentResult.FAILED

            specialist = await self._claim_specialist(case, exclude)
            if specialist is None:
                case.mark_unassigned(now=now)
            else:
                case.mark_assigned(specialist.id, now=now)

        if specialist is None:
            logger.warning("Escalation %s returned to pending after leaving %s", case.id, previous)
            await self._persist_quietly(case)
            return ReassignmentResult.UNASSIGNED

        logger.info("Escalation %s reassigned from %s to %s", case.id, previous, specialist.id)
        await self._after_assignment(case)
        return ReassignmentResult.REASSIGNED

    async def _claim_specialist(
        self, case: EscalationCase, exclude: Collection[str]
    ) -> Optional[Specialist]:
        # Caller holds the pool lock
        pool = await self.guard.best_effort(
            "specialist_directory.list_specialists",
            self.directory.list_specialists,
            default=[],
        )
        specialist = self.matcher.select(case, pool, exclude)
        if specialist is None:
            ASSIGNMENTS.labels(result="no_candidate").inc()
            logger.warning("No specialist available for escalation %s", case.id)
            return None

        # A single attempt: a retried increment could be applied twice
        try:
            await self.guard.write(
                "specialist_directory.update_load",
                lambda: self.directory.update_load(specialist.id, 1),
                attempts=1,
            )
        except PersistenceError:
            ASSIGNMENTS.labels(result="error").inc()
            logger.warning("Could not claim %s for escalation %s", specialist.id, case.id)
            return None

        ASSIGNMENTS.labels(result="assigned").inc()
        return specialist

    async def _release_load(self, specialist_id: str) -> None:
        await self.guard.write(
            "specialist_directory.update_load",
            lambda: self.directory.update_load(specialist_id, -1),
        )

    async def _after_assignment(self, case: EscalationCase) -> None:
        specialist_id = case.assigned_specialist_id
        logger.info("Escalation %s assigned to %s", case.id, specialist_id)
        await self._persist_quietly(case)
        await self.guard.best_effort(
            "notifier.notify",
            lambda: self.notifier.notify(specialist_id, case.id),
            default=None,
        )

    # ------------------------------------------------------------------
    # Human lifecycle
    # ------------------------------------------------------------------

    async def start_work(self, escalation_id: str) -> EscalationCase:
        """Record that the assigned specialist started on a case.

        Raises:
            CaseNotFoundError: If the escalation id is unknown
            InvalidTransitionError: If the case is not assigned
        """
        case = self.queue.require(escalation_id)
        async with self._case_locks(case.id):
            case.mark_in_progress()
            await self._persist_quietly(case)
            logger.info("Work started on escalation %s by %s", case.id, case.assigned_specialist_id)
            return case.model_copy(deep=True)

    async def resolve(
        self,
        escalation_id: str,
        action: str,
        outcome: str,
        prevention_measures: Optional[List[str]] = None,
        success: bool = True,
    ) -> EscalationCase:
        """Close an in-progress case and learn from its outcome.

        The specialist's load is released first; if that fails nothing
        changes. If persisting the resolution fails afterwards, the case
        stays resolved in memory and the error is raised.

        Args:
            escalation_id: Case to close
            action: Action the specialist took
            outcome: Observed outcome
            prevention_measures: Measures to avoid a repeat
            success: Whether the action fixed the problem

        Returns:
            Snapshot of the resolved case

        Raises:
            ValueError: If the action is empty
            CaseNotFoundError: If the escalation id is unknown
            InvalidTransitionError: If the case is not in progress
            PersistenceError: If the load release or the resolution write failed
        """
        if not action or not action.strip():
            raise ValueError("Resolution action cannot be empty")

        measures: List[str] = []
        for measure in prevention_measures or []:
            if measure and measure not in measures:
                measures.append(measure)
        resolution = Resolution(
            action=action.strip(),
            outcome=outcome,
            prevention_measures=measures[: self.config.auto_resolution.max_prevention_measures],
        )

        case = self.queue.require(escalation_id)
        async with self._case_locks(case.id):
            if case.status != CaseStatus.IN_PROGRESS:
                raise InvalidTransitionError(
                    case.id, case.status.value, CaseStatus.RESOLVED.value
                )

            if case.assigned_specialist_id is not None:
                async with self._pool_lock:
                    await self._release_load(case.assigned_specialist_id)

            case.mark_resolved(resolution)
            OPEN_CASES.dec()
            RESOLUTIONS.labels(success=str(success).lower()).inc()
            logger.info(
                "Escalation %s resolved by %s (success=%s)",
                case.id,
                case.assigned_specialist_id,
                success,
            )

            try:
                await self._persist("case_store.update_escalation", case)
            finally:
                self._case_locks.discard(case.id)
                await self.learner.try_record_outcome(case, success=success)

            return case.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Availability
    # ------------------------------------------------------------------

    def availability_for(self, specialist: Specialist) -> Availability:
        """Availability a specialist should have at its current load."""
        if specialist.availability == Availability.OFFLINE:
            return Availability.OFFLINE
        if specialist.current_load >= self.matcher.max_load:
            return Availability.BUSY
        return Availability.AVAILABLE

    async def refresh_availability(self) -> Dict[str, Availability]:
        """Bring every specialist's availability in line with its load.

        Returns:
            Mapping of specialist id to new availability, for changed ones
        """
        changes: Dict[str, Availability] = {}
        async with self._pool_lock:
            pool = await self.guard.best_effort(
                "specialist_directory.list_specialists",
                self.directory.list_specialists,
                default=[],
            )
            for specialist in pool:
                target = self.availability_for(specialist)
                if target == specialist.availability:
                    continue
                updated = await self.guard.best_effort(
                    "specialist_directory.update_availability",
                    lambda: self.directory.update_availability(specialist.id, target),
                    default=None,
                )
                if updated is not None:
                    changes[specialist.id] = target
                    logger.info(
                        "Specialist %s is now %s (load %d)",
                        specialist.id,
                        target.value,
                        specialist.current_load,
                    )
        return changes

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_case(self, escalation_id: str) -> EscalationCase:
        """Snapshot of one case.

        Raises:
            CaseNotFoundError: If the escalation id is unknown
        """
        return self.queue.require(escalation_id).model_copy(deep=True)

    def list_cases(
        self, status: Optional[CaseStatus] = None, limit: Optional[int] = None
    ) -> List[EscalationCase]:
        """Snapshots of queued cases, oldest first."""
        return [case.model_copy(deep=True) for case in self.queue.list(status, limit)]

    async def list_specialists(self) -> List[Specialist]:
        return await self.guard.best_effort(
            "specialist_directory.list_specialists",
            self.directory.list_specialists,
            default=[],
        )

    def get_stats(self) -> EscalationStats:
        """Aggregate counts and rates over the queue."""
        cases = self.queue.list()
        by_severity: Dict[str, int] = {}
        by_status: Dict[str, int] = {}
        for case in cases:
            by_severity[case.severity.value] = by_severity.get(case.severity.value, 0) + 1
            by_status[case.status.value] = by_status.get(case.status.value, 0) + 1

        durations = [
            minutes for minutes in (case.resolution_minutes() for case in cases)
            if minutes is not None
        ]
        auto_resolved = by_status.get(CaseStatus.AUTO_RESOLVED.value, 0)
        # Rate over closed cases only

        return EscalationStats(
            total=len(cases),
            by_severity=by_severity,
            by_status=by_status,
            average_resolution_time=sum(durations) / len(durations) if durations else 0.0,
            auto_resolution_rate=auto_resolved / len(durations) if durations else 0.0,
        )

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------

    async def _persist(self, operation: str, case: EscalationCase) -> None:
        await self.guard.write(operation, lambda: self.case_store.update_escalation(case))

    async def _persist_quietly(self, case: EscalationCase) -> None:
        try:
            await self._persist("case_store.update_escalation", case)
        except PersistenceError:
            logger.error("Escalation %s changed in memory but was not persisted", case.id)


def _require_case_id(case_id: str) -> None:
    if not case_id or not case_id.strip():
        raise ValueError("Case id is required")
