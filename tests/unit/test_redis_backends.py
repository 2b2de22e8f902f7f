"""Unit tests for Redis-backed collaborators using fakeredis."""

from datetime import datetime, timezone

import fakeredis
import pytest
import pytest_asyncio
from triage_core.backends import RedisCaseStore, RedisPatternStore, RedisSpecialistDirectory
from triage_runtime import (
    Availability,
    CaseContext,
    CaseStatus,
    EscalationCase,
    OutcomeRecord,
    Severity,
    Specialist,
    SpecialistNotFoundError,
    TriggerType,
)


@pytest.fixture
def client():
    return fakeredis.FakeAsyncRedis(decode_responses=True)


def make_case():
    return EscalationCase(
        case_id="case_1", severity=Severity.HIGH, score=60, context=CaseContext(issue="x")
    )


class TestRedisCaseStore:
    @pytest.mark.asyncio
    async def test_deadline_round_trip(self, client):
        store = RedisCaseStore(client, "t")
        deadline = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)
        await store.set_deadline("case_1", deadline)

        assert await store.get_deadline("case_1") == deadline
        assert await store.get_deadline("missing") is None

    @pytest.mark.asyncio
    async def test_interactions_newest_last(self, client):
        store = RedisCaseStore(client, "t")
        for sentiment in ("neutral", "angry", "frustrated"):
            await store.record_interaction("case_1", "message", {"sentiment": sentiment})

        recent = await store.recent_interactions("case_1", 2)

        assert [i["data"]["sentiment"] for i in recent] == ["angry", "frustrated"]
        assert await store.recent_interactions("case_1", 0) == []

    @pytest.mark.asyncio
    async def test_create_then_update(self, client):
        store = RedisCaseStore(client, "t")
        case = make_case()

        await store.create_escalation(case)
        with pytest.raises(ValueError):
            await store.create_escalation(case)

        case.mark_assigned("spec_1")
        await store.update_escalation(case)

        stored = await store.get_escalation(case.id)
        assert stored.status == CaseStatus.ASSIGNED
        assert stored.assigned_specialist_id == "spec_1"

    @pytest.mark.asyncio
    async def test_update_requires_existing(self, client):
        with pytest.raises(ValueError):
            await RedisCaseStore(client, "t").update_escalation(make_case())


class TestRedisSpecialistDirectory:
    @pytest_asyncio.fixture
    async def directory(self, client):
        directory = RedisSpecialistDirectory(client, "t")
        await directory.upsert(
            Specialist(id="exp_002", name="Michael", specialties=["api"], success_rate=0.88)
        )
        await directory.upsert(Specialist(id="exp_001", name="Sarah", current_load=2))
        return directory

    @pytest.mark.asyncio
    async def test_list_sorted(self, directory):
        specialists = await directory.list_specialists()

        assert [s.id for s in specialists] == ["exp_001", "exp_002"]
        assert specialists[0].current_load == 2
        assert specialists[1].specialties == ["api"]
        assert specialists[1].success_rate == 0.88

    @pytest.mark.asyncio
    async def test_update_load(self, directory):
        updated = await directory.update_load("exp_001", -1)

        assert updated.current_load == 1

    @pytest.mark.asyncio
    async def test_negative_load_rolled_back(self, directory):
        with pytest.raises(ValueError):
            await directory.update_load("exp_002", -1)

        assert (await directory.get_specialist("exp_002")).current_load == 0

    @pytest.mark.asyncio
    async def test_unknown_specialist(self, directory):
        with pytest.raises(SpecialistNotFoundError):
            await directory.update_load("nobody", 1)
        with pytest.raises(SpecialistNotFoundError):
            await directory.update_availability("nobody", Availability.BUSY)

    @pytest.mark.asyncio
    async def test_update_availability(self, directory):
        updated = await directory.update_availability("exp_002", Availability.BUSY)

        assert updated.availability == Availability.BUSY


class TestRedisPatternStore:
    @pytest.mark.asyncio
    async def test_append_and_query(self, client):
        store = RedisPatternStore(client, "t", min_similarity=0.0)
        match = OutcomeRecord(
            severity=Severity.MEDIUM,
            issue="servicer upload timeout",
            trigger_types=(TriggerType.FAILURE_RATE,),
            resolution_action="Resubmit via portal",
            automatic=True,
        )
        other = OutcomeRecord(severity=Severity.LOW, issue="legal review pending")
        await store.append_outcome(match)
        await store.append_outcome(other)

        similar = await store.query_similar("upload timeout", [TriggerType.FAILURE_RATE], 5)

        assert similar == [match]

    @pytest.mark.asyncio
    async def test_scan_limit(self, client):
        store = RedisPatternStore(client, "t", min_similarity=0.0, scan_limit=1)
        await store.append_outcome(OutcomeRecord(severity=Severity.LOW, issue="upload timeout"))
        await store.append_outcome(OutcomeRecord(severity=Severity.LOW, issue="legal review"))

        assert await store.query_similar("upload timeout", [], 5) == []
