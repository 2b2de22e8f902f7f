"""In-memory escalation queue.

The queue is the authoritative record set of escalation cases for one
engine instance. Durable copies are written through the case store
collaborator; the queue itself only guards the collection.
"""

from threading import Lock
from typing import Dict, List, Optional

from .errors import CaseNotFoundError
from .state import CaseStatus, EscalationCase


class EscalationQueue:
    """Thread-safe collection of escalation cases keyed by escalation id.

    The lock only protects the mapping. Mutating a case's fields is
    serialized by the owning service's per-case locks.
    """

    def __init__(self) -> None:
        """Initialize an empty queue."""
        self._cases: Dict[str, EscalationCase] = {}
        self._lock = Lock()

    def add(self, case: EscalationCase) -> EscalationCase:
        """Add a new escalation case.

        Args:
            case: Case to store

        Returns:
            The stored case

        Raises:
            ValueError: If a case with this id already exists
        """
        with self._lock:
            if case.id in self._cases:
                raise ValueError(f"Escalation case {case.id} already exists")

            self._cases[case.id] = case
            return case

    def get(self, escalation_id: str) -> Optional[EscalationCase]:
        """Retrieve a case by id, or None if unknown."""
        with self._lock:
            return self._cases.get(escalation_id)

    def require(self, escalation_id: str) -> EscalationCase:
        """Retrieve a case by id.

        Raises:
            CaseNotFoundError: If the id is unknown
        """
        case = self.get(escalation_id)
        if case is None:
            raise CaseNotFoundError(escalation_id)
        return case

    def remove(self, escalation_id: str) -> bool:
        """Remove a case.

        Returns:
            True if removed, False if not found
        """
        with self._lock:
            return self._cases.pop(escalation_id, None) is not None

    def list(
        self,
        status: Optional[CaseStatus] = None,
        limit: Optional[int] = None,
    ) -> List[EscalationCase]:
        """List cases, oldest first, with optional filtering.

        Args:
            status: Optional status filter
            limit: Optional limit on number of results

        Returns:
            List of cases matching the criteria
        """
        with self._lock:
            cases = list(self._cases.values())

        if status is not None:
            cases = [c for c in cases if c.status == status]

        cases.sort(key=lambda c: (c.created_at, c.id))

        if limit is not None:
            cases = cases[:limit]

        return cases

    def count(self, status: Optional[CaseStatus] = None) -> int:
        """Count cases with optional status filtering."""
        with self._lock:
            if status is None:
                return len(self._cases)

            return sum(1 for c in self._cases.values() if c.status == status)

    def load_by_specialist(self) -> Dict[str, int]:
        """Count load-holding cases per assigned specialist.

        Returns:
            Mapping of specialist id to number of assigned or in-progress cases
        """
        with self._lock:
            loads: Dict[str, int] = {}
            for case in self._cases.values():
                if case.holds_load:
                    specialist_id = case.assigned_specialist_id
                    loads[specialist_id] = loads.get(specialist_id, 0) + 1  # type: ignore[index]
            return loads

    def clear(self) -> int:
        """Clear all cases.

        Returns:
            Number of cases cleared
        """
        with self._lock:
            count = len(self._cases)
            self._cases.clear()
            return count
