"""Tests for the escalation queue."""

from datetime import timedelta

import pytest
from triage_runtime import (
    CaseContext,
    CaseNotFoundError,
    CaseStatus,
    EscalationCase,
    EscalationQueue,
    Severity,
    utcnow,
)


def make_case(case_id="case_1", created_offset=0):
    """Build a pending case created ``created_offset`` minutes from now."""
    return EscalationCase(
        case_id=case_id,
        severity=Severity.LOW,
        score=20,
        context=CaseContext(issue="Issue"),
        created_at=utcnow() + timedelta(minutes=created_offset),
    )


@pytest.fixture
def queue():
    """Create an empty queue."""
    return EscalationQueue()


class TestEscalationQueue:
    """Tests for EscalationQueue."""

    def test_add_and_get(self, queue):
        """Test adding and retrieving a case."""
        case = make_case()
        queue.add(case)

        assert queue.get(case.id) is case
        assert queue.require(case.id) is case

    def test_add_duplicate(self, queue):
        """Test adding the same case twice raises error."""
        case = make_case()
        queue.add(case)

        with pytest.raises(ValueError, match="already exists"):
            queue.add(case)

    def test_get_missing(self, queue):
        """Test unknown ids."""
        assert queue.get("esc_missing") is None
        with pytest.raises(CaseNotFoundError):
            queue.require("esc_missing")

    def test_remove(self, queue):
        """Test removing a case."""
        case = make_case()
        queue.add(case)

        assert queue.remove(case.id) is True
        assert queue.remove(case.id) is False
        assert queue.count() == 0

    def test_list_oldest_first_with_filters(self, queue):
        """Test listing order, status filter and limit."""
        newer = make_case("case_new", created_offset=5)
        older = make_case("case_old", created_offset=-5)
        assigned = make_case("case_assigned")
        assigned.mark_assigned("spec_1")
        for case in (newer, older, assigned):
            queue.add(case)

        assert [c.case_id for c in queue.list()] == ["case_old", "case_assigned", "case_new"]
        assert [c.case_id for c in queue.list(status=CaseStatus.PENDING)] == [
            "case_old",
            "case_new",
        ]
        assert len(queue.list(limit=1)) == 1
        assert queue.count(CaseStatus.ASSIGNED) == 1

    def test_load_by_specialist(self, queue):
        """Test only assigned and in-progress cases hold load."""
        first, second, third = make_case("a"), make_case("b"), make_case("c")
        first.mark_assigned("spec_1")
        second.mark_assigned("spec_1")
        second.mark_in_progress()
        for case in (first, second, third):
            queue.add(case)

        assert queue.load_by_specialist() == {"spec_1": 2}

    def test_clear(self, queue):
        """Test clearing the queue."""
        queue.add(make_case("a"))
        queue.add(make_case("b"))

        assert queue.clear() == 2
        assert queue.count() == 0
