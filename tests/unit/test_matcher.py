"""Tests for specialist matching."""

import pytest
from triage_config import TriageConfig
from triage_core import AssignmentMatcher, CandidateScore
from triage_runtime import Availability, CaseContext, EscalationCase, Severity, Specialist


def make_case(issue):
    """Build a pending case for an issue."""
    return EscalationCase(
        case_id="case_1", severity=Severity.HIGH, score=60, context=CaseContext(issue=issue)
    )


def make_specialist(specialist_id, **overrides):
    """Build an available specialist."""
    fields = {
        "id": specialist_id,
        "name": specialist_id.title(),
        "specialties": [],
        "success_rate": 0.9,
        "average_resolution_time": 60,
    }
    fields.update(overrides)
    return Specialist(**fields)


@pytest.fixture
def matcher():
    """Create a matcher with default weights."""
    return AssignmentMatcher(TriageConfig())


class TestEligibility:
    """Tests for candidate filtering."""

    def test_only_available_under_max_load(self, matcher):
        """Test busy, offline and full specialists are excluded."""
        pool = [
            make_specialist("a"),
            make_specialist("b", availability=Availability.BUSY),
            make_specialist("c", availability=Availability.OFFLINE),
            make_specialist("d", current_load=5),
        ]

        ranked = matcher.rank(make_case("issue"), pool)

        assert [c.specialist.id for c in ranked] == ["a"]

    def test_exclude(self, matcher):
        """Test excluded ids are never chosen."""
        pool = [make_specialist("a"), make_specialist("b")]

        chosen = matcher.select(make_case("issue"), pool, exclude={"a"})

        assert chosen.id == "b"

    def test_no_candidates(self, matcher):
        """Test an empty pool selects nobody."""
        assert matcher.select(make_case("issue"), []) is None


class TestScoring:
    """Tests for the weighted score."""

    def test_specialty_match_fraction(self, matcher):
        """Test the fraction of specialty words found in the issue."""
        specialist = make_specialist("a", specialties=["mortgage", "compliance review"])

        match = matcher.specialty_match(specialist, "Mortgage compliance problem")

        assert match == pytest.approx(2 / 3)

    def test_no_specialties(self, matcher):
        """Test specialists without specialties match nothing."""
        assert matcher.specialty_match(make_specialist("a"), "anything") == 0.0

    def test_timeliness(self, matcher):
        """Test timeliness against the 180 minute baseline."""
        assert matcher.timeliness(make_specialist("a", average_resolution_time=45)) == 0.75
        assert matcher.timeliness(make_specialist("b", average_resolution_time=400)) == 0.0

    def test_score_formula(self, matcher):
        """Test each weighted term."""
        specialist = make_specialist(
            "a",
            specialties=["api"],
            success_rate=0.5,
            current_load=1,
            average_resolution_time=90,
        )

        candidate = matcher.score(specialist, "api outage")

        assert candidate.score == pytest.approx(40 * 1.0 + 30 * 0.5 + 20 * 0.8 + 10 * 0.5)

    def test_specialty_dominates(self, matcher):
        """Test the specialty term outweighs a lighter load."""
        issue = "Escrow payoff wire delay, audit ledger refund servicing transfer statement"
        pool = [
            make_specialist(
                "one", current_load=2, specialties=["escrow", "flood hazard", "title appraisal"]
            ),
            make_specialist(
                "two",
                current_load=1,
                specialties=[
                    "wire delay",
                    "audit ledger",
                    "refund servicing",
                    "transfer statement",
                    "escrow",
                    "zoning",
                ],
            ),
            make_specialist("three", current_load=3, specialties=["payoff", "bankruptcy"]),
        ]

        matches = {s.id: matcher.specialty_match(s, issue) for s in pool}
        chosen = matcher.select(make_case(issue), pool)

        assert matches == pytest.approx({"one": 0.2, "two": 0.9, "three": 0.5})
        assert chosen.id == "two"


class TestTieBreak:
    """Tests for deterministic tie-breaking."""

    def test_lower_load_wins_tie(self, matcher, monkeypatch):
        """Test equal scores fall back to the lower load."""
        monkeypatch.setattr(matcher, "score", _flat_score)
        pool = [make_specialist("a", current_load=3), make_specialist("b", current_load=1)]

        assert matcher.select(make_case("issue"), pool).id == "b"

    def test_smaller_id_wins_full_tie(self, matcher):
        """Test identical specialists fall back to id order."""
        pool = [make_specialist("zeta"), make_specialist("alpha"), make_specialist("mu")]

        ranked = matcher.rank(make_case("issue"), pool)

        assert [c.specialist.id for c in ranked] == ["alpha", "mu", "zeta"]


def _flat_score(specialist, issue_text):
    return CandidateScore(specialist=specialist, score=50.0, specialty_match=0.0, timeliness=0.0)
