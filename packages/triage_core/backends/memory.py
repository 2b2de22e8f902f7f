"""In-memory collaborator backends - dict-backed doubles for tests and local runs."""

import logging
from datetime import datetime
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from triage_runtime import (
    Availability,
    EscalationCase,
    OutcomeRecord,
    Specialist,
    SpecialistNotFoundError,
    TriggerType,
    utcnow,
)

from ..similarity import rank_similar

logger = logging.getLogger(__name__)


class MemoryCaseStore:
    """Dict-backed CaseStore."""

    def __init__(self) -> None:
        self._deadlines: Dict[str, datetime] = {}
        self._interactions: Dict[str, List[Dict[str, Any]]] = {}
        self._escalations: Dict[str, EscalationCase] = {}

    def set_deadline(self, case_id: str, deadline: datetime) -> None:
        self._deadlines[case_id] = deadline

    def add_interaction(self, case_id: str, interaction: Dict[str, Any]) -> None:
        self._interactions.setdefault(case_id, []).append(dict(interaction))

    def get_escalation(self, escalation_id: str) -> Optional[EscalationCase]:
        stored = self._escalations.get(escalation_id)
        return stored.model_copy(deep=True) if stored is not None else None

    async def get_deadline(self, case_id: str) -> Optional[datetime]:
        return self._deadlines.get(case_id)

    async def recent_interactions(self, case_id: str, limit: int) -> List[Dict[str, Any]]:
        if limit <= 0:
            return []
        return [dict(i) for i in self._interactions.get(case_id, [])[-limit:]]

    async def record_interaction(self, case_id: str, kind: str, data: Dict[str, Any]) -> None:
        self.add_interaction(
            case_id, {"type": kind, "data": dict(data), "recorded_at": utcnow().isoformat()}
        )

    async def create_escalation(self, case: EscalationCase) -> None:
        if case.id in self._escalations:
            raise ValueError(f"Escalation {case.id} already persisted")
        self._escalations[case.id] = case.model_copy(deep=True)

    async def update_escalation(self, case: EscalationCase) -> None:
        if case.id not in self._escalations:
            raise ValueError(f"Escalation {case.id} not persisted")
        self._escalations[case.id] = case.model_copy(deep=True)


class MemorySpecialistDirectory:
    """Dict-backed SpecialistDirectory.

    Returned specialists are copies; only ``update_load`` and
    ``update_availability`` change the stored records.
    """

    def __init__(self, specialists: Iterable[Specialist] = ()) -> None:
        self._specialists: Dict[str, Specialist] = {}
        self._lock = Lock()
        for specialist in specialists:
            self.add(specialist)

    def add(self, specialist: Specialist) -> None:
        with self._lock:
            self._specialists[specialist.id] = specialist.model_copy(deep=True)

    async def upsert(self, specialist: Specialist) -> None:
        """Write a specialist record, replacing any existing one."""
        self.add(specialist)

    def total_load(self) -> int:
        with self._lock:
            return sum(s.current_load for s in self._specialists.values())

    async def list_specialists(self) -> List[Specialist]:
        with self._lock:
            return [
                self._specialists[key].model_copy(deep=True)
                for key in sorted(self._specialists)
            ]

    async def get_specialist(self, specialist_id: str) -> Optional[Specialist]:
        with self._lock:
            specialist = self._specialists.get(specialist_id)
            return specialist.model_copy(deep=True) if specialist is not None else None

    async def update_load(self, specialist_id: str, delta: int) -> Specialist:
        with self._lock:
            specialist = self._specialists.get(specialist_id)
            if specialist is None:
                raise SpecialistNotFoundError(specialist_id)

            new_load = specialist.current_load + delta
            if new_load < 0:
                raise ValueError(
                    f"Load of specialist {specialist_id} cannot drop below zero"
                )

            specialist.current_load = new_load
            return specialist.model_copy(deep=True)

    async def update_availability(
        self, specialist_id: str, availability: Availability
    ) -> Specialist:
        with self._lock:
            specialist = self._specialists.get(specialist_id)
            if specialist is None:
                raise SpecialistNotFoundError(specialist_id)

            specialist.availability = availability
            return specialist.model_copy(deep=True)


class MemoryPatternStore:
    """List-backed, append-only PatternStore."""

    def __init__(self, min_similarity: float = 0.2) -> None:
        self.min_similarity = min_similarity
        self._records: List[OutcomeRecord] = []

    @property
    def records(self) -> Tuple[OutcomeRecord, ...]:
        return tuple(self._records)

    async def query_similar(
        self, issue: str, trigger_types: Sequence[TriggerType], limit: int
    ) -> List[OutcomeRecord]:
        return rank_similar(issue, trigger_types, self._records, limit, self.min_similarity)

    async def append_outcome(self, record: OutcomeRecord) -> None:
        self._records.append(record)


class LoggingNotifier:
    """Notifier that logs each assignment and remembers it."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, str]] = []

    async def notify(self, specialist_id: str, escalation_id: str) -> None:
        logger.info("Notifying specialist %s of escalation %s", specialist_id, escalation_id)
        self.sent.append((specialist_id, escalation_id))


class StaticResolutionExecutor:
    """ResolutionExecutor that reports a fixed outcome for every action."""

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.executed: List[Tuple[str, str]] = []

    async def execute(self, action: str, case_id: str) -> bool:
        logger.info("Executing resolution action %r for case %s", action, case_id)
        self.executed.append((action, case_id))
        return self.succeed
