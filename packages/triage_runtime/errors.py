"""Exception hierarchy for the triage engine."""


class TriageError(Exception):
    """Base exception for all triage engine errors."""


class CaseNotFoundError(TriageError):
    """Raised when an escalation case id is unknown."""

    def __init__(self, escalation_id: str) -> None:
        self.escalation_id = escalation_id
        super().__init__(f"Escalation case '{escalation_id}' not found")


class SpecialistNotFoundError(TriageError):
    """Raised when a specialist id is unknown to the directory."""

    def __init__(self, specialist_id: str) -> None:
        self.specialist_id = specialist_id
        super().__init__(f"Specialist '{specialist_id}' not found")


class InvalidTransitionError(TriageError):
    """Raised when a case is asked to move to a state it cannot reach."""

    def __init__(self, escalation_id: str, current: str, target: str) -> None:
        self.escalation_id = escalation_id
        self.current = current
        self.target = target
        super().__init__(
            f"Escalation case '{escalation_id}' cannot move from {current} to {target}"
        )


class CollaboratorError(TriageError):
    """A collaborator call failed or timed out."""


class PersistenceError(CollaboratorError):
    """A write that must not be lost failed after all retries."""

    def __init__(self, operation: str, attempts: int, cause: Exception) -> None:
        self.operation = operation
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"{operation} failed after {attempts} attempt(s): {cause}")
