"""Protocol interfaces for the engine's external collaborators.

Every collaborator is structural: any object with matching async methods
can be passed to the service. In-memory doubles live in
``triage_core.backends.memory``; Redis-backed implementations live in
``triage_core.backends.redis_backend``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from triage_runtime import Availability, EscalationCase, OutcomeRecord, Specialist, TriggerType

# ---------------------------------------------------------------------------
# Case store
# ---------------------------------------------------------------------------


@runtime_checkable
class CaseStore(Protocol):
    """Owning case records and durable escalation records."""

    async def get_deadline(self, case_id: str) -> Optional[datetime]: ...

    async def recent_interactions(self, case_id: str, limit: int) -> List[Dict[str, Any]]: ...

    async def record_interaction(self, case_id: str, kind: str, data: Dict[str, Any]) -> None: ...

    async def create_escalation(self, case: EscalationCase) -> None: ...

    async def update_escalation(self, case: EscalationCase) -> None: ...


# ---------------------------------------------------------------------------
# Specialist directory
# ---------------------------------------------------------------------------


@runtime_checkable
class SpecialistDirectory(Protocol):
    """Owner of specialist records; the engine only issues deltas back."""

    async def list_specialists(self) -> List[Specialist]: ...

    async def get_specialist(self, specialist_id: str) -> Optional[Specialist]: ...

    async def update_load(self, specialist_id: str, delta: int) -> Specialist: ...

    async def update_availability(
        self, specialist_id: str, availability: Availability
    ) -> Specialist: ...


# ---------------------------------------------------------------------------
# Pattern store
# ---------------------------------------------------------------------------


@runtime_checkable
class PatternStore(Protocol):
    """Append-only log of resolution outcomes."""

    async def query_similar(
        self, issue: str, trigger_types: Sequence[TriggerType], limit: int
    ) -> List[OutcomeRecord]: ...

    async def append_outcome(self, record: OutcomeRecord) -> None: ...


# ---------------------------------------------------------------------------
# Notification and resolution execution
# ---------------------------------------------------------------------------


@runtime_checkable
class Notifier(Protocol):
    """Tells a specialist about a new assignment."""

    async def notify(self, specialist_id: str, escalation_id: str) -> None: ...


@runtime_checkable
class ResolutionExecutor(Protocol):
    """Carries out an automatic resolution action."""

    async def execute(self, action: str, case_id: str) -> bool: ...
