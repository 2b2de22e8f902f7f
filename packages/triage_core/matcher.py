"""Specialist matching for escalation cases.

This module scores available specialists against a case. It only selects;
the service applies the load change and the case transition together.
"""

from dataclasses import dataclass
from typing import Collection, Iterable, List, Optional

from triage_config import TriageConfig
from triage_runtime import Availability, EscalationCase, Specialist

from .text import tokenize


@dataclass(frozen=True)
class CandidateScore:
    """Score breakdown for one candidate specialist."""

    specialist: Specialist
    score: float
    specialty_match: float
    timeliness: float

    @property
    def sort_key(self) -> tuple:
        # Highest score, then lowest load, then lowest id
        return (-round(self.score, 6), self.specialist.current_load, self.specialist.id)


class AssignmentMatcher:
    """Weighted multi-factor matcher.

    score = specialty_weight * specialty_match
          + success_weight * success_rate
          + load_weight * (1 - current_load / max_load)
          + timeliness_weight * timeliness
    """

    def __init__(self, config: TriageConfig):
        self.settings = config.matching

    @property
    def max_load(self) -> int:
        return self.settings.max_load

    def is_eligible(self, specialist: Specialist) -> bool:
        """Whether a specialist can take another case right now."""
        return (
            specialist.availability == Availability.AVAILABLE
            and specialist.current_load < self.settings.max_load
        )

    def specialty_match(self, specialist: Specialist, issue_text: str) -> float:
        """Fraction of the specialist's specialty words found in the issue.

        Multi-word specialties count each word separately.

        Args:
            specialist: Candidate specialist
            issue_text: Issue text of the case

        Returns:
            Match fraction from 0.0 to 1.0; 0.0 without specialties
        """
        issue_words = set(tokenize(issue_text))
        specialty_words = [
            word for specialty in specialist.specialties for word in tokenize(specialty)
        ]
        if not specialty_words:
            return 0.0
        matched = sum(1 for word in specialty_words if word in issue_words)
        return matched / len(specialty_words)

    def timeliness(self, specialist: Specialist) -> float:
        baseline = self.settings.resolution_time_baseline_minutes
        return max(0.0, 1.0 - specialist.average_resolution_time / baseline)

    def score(self, specialist: Specialist, issue_text: str) -> CandidateScore:
        """Compute the weighted score of one specialist for an issue."""
        settings = self.settings
        specialty = self.specialty_match(specialist, issue_text)
        timeliness = self.timeliness(specialist)
        load_factor = max(0.0, 1.0 - specialist.current_load / settings.max_load)

        total = (
            settings.specialty_weight * specialty
            + settings.success_weight * specialist.success_rate
            + settings.load_weight * load_factor
            + settings.timeliness_weight * timeliness
        )
        return CandidateScore(
            specialist=specialist,
            score=total,
            specialty_match=specialty,
            timeliness=timeliness,
        )

    def rank(
        self,
        case: EscalationCase,
        pool: Iterable[Specialist],
        exclude: Collection[str] = (),
    ) -> List[CandidateScore]:
        """Score and order every eligible specialist for a case.

        Args:
            case: Case being assigned
            pool: Specialists to consider
            exclude: Specialist ids that must not be chosen

        Returns:
            Eligible candidates, best first
        """
        candidates = [
            self.score(specialist, case.context.issue)
            for specialist in pool
            if specialist.id not in exclude and self.is_eligible(specialist)
        ]
        candidates.sort(key=lambda candidate: candidate.sort_key)
        return candidates

    def select(
        self,
        case: EscalationCase,
        pool: Iterable[Specialist],
        exclude: Collection[str] = (),
    ) -> Optional[Specialist]:
        """Pick the best eligible specialist, or None if nobody qualifies."""
        ranked = self.rank(case, pool, exclude)
        return ranked[0].specialist if ranked else None
