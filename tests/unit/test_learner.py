"""Tests for outcome learning."""

from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import pytest
from triage_config import CollaboratorSettings
from triage_core import CollaboratorGuard, PatternLearner
from triage_core.backends import MemoryPatternStore
from triage_runtime import (
    CaseContext,
    EscalationCase,
    PersistenceError,
    Resolution,
    Severity,
    Trigger,
    TriggerType,
)


@pytest.fixture
def guard():
    """Create a guard without retry delays."""
    return CollaboratorGuard(CollaboratorSettings(retry_delay_seconds=0, write_attempts=2))


def resolved_case():
    """Build a case resolved by a specialist after 45 minutes."""
    case = EscalationCase(
        case_id="case_1",
        severity=Severity.HIGH,
        score=65,
        triggers=[
            Trigger(type=TriggerType.DEADLINE, weight=40),
            Trigger(type=TriggerType.COMPLEXITY, weight=25),
        ],
        context=CaseContext(issue="Compliance violation on servicer file"),
    )
    case.mark_assigned("spec_1")
    case.mark_in_progress()
    case.mark_resolved(
        Resolution(action="Escalated to compliance", outcome="Fixed", prevention_measures=["Audit"]),
        now=case.created_at + timedelta(minutes=45),
    )
    return case


class TestPatternLearner:
    """Tests for PatternLearner."""

    def test_build_record(self):
        """Test records summarize the resolved case."""
        record = PatternLearner.build_record(resolved_case(), success=True)

        assert record.trigger_types == (TriggerType.DEADLINE, TriggerType.COMPLEXITY)
        assert record.severity == Severity.HIGH
        assert record.resolution_action == "Escalated to compliance"
        assert record.prevention_measures == ("Audit",)
        assert record.automatic is False
        assert record.success is True
        assert record.resolution_minutes == pytest.approx(45)

    @pytest.mark.asyncio
    async def test_record_outcome_appends(self, guard):
        """Test outcomes are appended and never rewritten."""
        patterns = MemoryPatternStore()
        learner = PatternLearner(patterns, guard)

        first = await learner.record_outcome(resolved_case(), success=True)
        second = await learner.record_outcome(resolved_case(), success=False)

        assert patterns.records == (first, second)
        assert patterns.records[0].success is True

    @pytest.mark.asyncio
    async def test_append_failure_raises(self, guard):
        """Test exhausted appends raise PersistenceError."""
        patterns = Mock()
        patterns.append_outcome = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(PersistenceError):
            await PatternLearner(patterns, guard).record_outcome(resolved_case(), True)

        assert patterns.append_outcome.await_count == 2

    @pytest.mark.asyncio
    async def test_try_record_outcome_logs(self, guard):
        """Test the quiet variant returns None on failure."""
        patterns = Mock()
        patterns.append_outcome = AsyncMock(side_effect=ConnectionError("down"))

        assert await PatternLearner(patterns, guard).try_record_outcome(resolved_case(), True) is None
