"""Redis-backed collaborator implementations.

Key layout (``<prefix>`` defaults to ``triage``):

- ``<prefix>:case:<case_id>:deadline``      ISO-8601 deadline string
- ``<prefix>:case:<case_id>:interactions``  list of JSON interaction records
- ``<prefix>:escalation:<id>``              JSON escalation record
- ``<prefix>:specialists``                  set of specialist ids
- ``<prefix>:specialist:<id>``              hash: profile JSON, current_load, availability
- ``<prefix>:outcomes``                     list of JSON outcome records, oldest first
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import redis.asyncio as redis

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


def create_redis_client(url: str) -> "redis.Redis":
    """Create an asyncio Redis client that decodes responses to str."""
    return redis.from_url(url, decode_responses=True)


class RedisCaseStore:
    """Production CaseStore backed by Redis."""

    def __init__(self, client: "redis.Redis", key_prefix: str = "triage") -> None:
        self._client = client
        self._prefix = key_prefix

    def _case_key(self, case_id: str, suffix: str) -> str:
        return f"{self._prefix}:case:{case_id}:{suffix}"

    def _escalation_key(self, escalation_id: str) -> str:
        return f"{self._prefix}:escalation:{escalation_id}"

    async def set_deadline(self, case_id: str, deadline: datetime) -> None:
        await self._client.set(self._case_key(case_id, "deadline"), deadline.isoformat())

    async def get_deadline(self, case_id: str) -> Optional[datetime]:
        raw = await self._client.get(self._case_key(case_id, "deadline"))
        if not raw:
            return None
        return datetime.fromisoformat(raw)

    async def recent_interactions(self, case_id: str, limit: int) -> List[Dict[str, Any]]:
        if limit <= 0:
            return []
        raw_items = await self._client.lrange(self._case_key(case_id, "interactions"), -limit, -1)
        return [json.loads(item) for item in raw_items]

    async def record_interaction(self, case_id: str, kind: str, data: Dict[str, Any]) -> None:
        entry = {"type": kind, "data": data, "recorded_at": utcnow().isoformat()}
        await self._client.rpush(self._case_key(case_id, "interactions"), json.dumps(entry))

    async def create_escalation(self, case: EscalationCase) -> None:
        created = await self._client.set(
            self._escalation_key(case.id), case.model_dump_json(), nx=True
        )
        if not created:
            raise ValueError(f"Escalation {case.id} already persisted")

    async def update_escalation(self, case: EscalationCase) -> None:
        updated = await self._client.set(
            self._escalation_key(case.id), case.model_dump_json(), xx=True
        )
        if not updated:
            raise ValueError(f"Escalation {case.id} not persisted")

    async def get_escalation(self, escalation_id: str) -> Optional[EscalationCase]:
        raw = await self._client.get(self._escalation_key(escalation_id))
        if raw is None:
            return None
        return EscalationCase.model_validate_json(raw)


class RedisSpecialistDirectory:
    """Production SpecialistDirectory backed by Redis hashes.

    Load lives in its own hash field so deltas are applied with HINCRBY
    rather than read-modify-write.
    """

    def __init__(self, client: "redis.Redis", key_prefix: str = "triage") -> None:
        self._client = client
        self._prefix = key_prefix

    @property
    def _index_key(self) -> str:
        return f"{self._prefix}:specialists"

    def _key(self, specialist_id: str) -> str:
        return f"{self._prefix}:specialist:{specialist_id}"

    async def upsert(self, specialist: Specialist) -> None:
        """Write a specialist record, replacing any existing one."""
        profile = specialist.model_dump(
            mode="json", exclude={"current_load", "availability"}
        )
        await self._client.hset(
            self._key(specialist.id),
            mapping={
                "profile": json.dumps(profile),
                "current_load": specialist.current_load,
                "availability": specialist.availability.value,
            },
        )
        await self._client.sadd(self._index_key, specialist.id)

    def _decode(self, fields: Dict[str, str]) -> Specialist:
        profile = json.loads(fields["profile"])
        return Specialist(
            **profile,
            current_load=int(fields.get("current_load", 0)),
            availability=Availability(fields.get("availability", Availability.AVAILABLE.value)),
        )

    async def get_specialist(self, specialist_id: str) -> Optional[Specialist]:
        fields = await self._client.hgetall(self._key(specialist_id))
        if not fields:
            return None
        return self._decode(fields)

    async def list_specialists(self) -> List[Specialist]:
        ids = sorted(await self._client.smembers(self._index_key))
        specialists: List[Specialist] = []
        for specialist_id in ids:
            specialist = await self.get_specialist(specialist_id)
            if specialist is not None:
                specialists.append(specialist)
        return specialists

    async def update_load(self, specialist_id: str, delta: int) -> Specialist:
        key = self._key(specialist_id)
        if not await self._client.exists(key):
            raise SpecialistNotFoundError(specialist_id)

        new_load = await self._client.hincrby(key, "current_load", delta)
        if new_load < 0:
            await self._client.hincrby(key, "current_load", -delta)
            raise ValueError(f"Load of specialist {specialist_id} cannot drop below zero")

        specialist = await self.get_specialist(specialist_id)
        if specialist is None:
            raise SpecialistNotFoundError(specialist_id)
        return specialist

    async def update_availability(
        self, specialist_id: str, availability: Availability
    ) -> Specialist:
        key = self._key(specialist_id)
        if not await self._client.exists(key):
            raise SpecialistNotFoundError(specialist_id)

        await self._client.hset(key, "availability", availability.value)
        specialist = await self.get_specialist(specialist_id)
        if specialist is None:
            raise SpecialistNotFoundError(specialist_id)
        return specialist


class RedisPatternStore:
    """Production PatternStore backed by an append-only Redis list.

    Similarity is computed client-side over the newest ``scan_limit``
    records.
    """

    def __init__(
        self,
        client: "redis.Redis",
        key_prefix: str = "triage",
        min_similarity: float = 0.2,
        scan_limit: int = 1000,
    ) -> None:
        self._client = client
        self._key = f"{key_prefix}:outcomes"
        self.min_similarity = min_similarity
        self.scan_limit = scan_limit

    async def append_outcome(self, record: OutcomeRecord) -> None:
        await self._client.rpush(self._key, record.model_dump_json())

    async def query_similar(
        self, issue: str, trigger_types: Sequence[TriggerType], limit: int
    ) -> List[OutcomeRecord]:
        raw_items = await self._client.lrange(self._key, -self.scan_limit, -1)
        records = [OutcomeRecord.model_validate_json(item) for item in raw_items]
        return rank_similar(issue, trigger_types, records, limit, self.min_similarity)
