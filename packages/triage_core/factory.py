"""Builds an EscalationService from configuration."""

import logging
from typing import Any, Iterable, List, Optional

from triage_config import SpecialistSeed, TriageConfig
from triage_runtime import Specialist

from .backends import (
    LoggingNotifier,
    MemoryCaseStore,
    MemoryPatternStore,
    MemorySpecialistDirectory,
    RedisCaseStore,
    RedisPatternStore,
    RedisSpecialistDirectory,
    StaticResolutionExecutor,
    create_redis_client,
)
from .collaborators import Notifier, ResolutionExecutor
from .service import EscalationService

logger = logging.getLogger(__name__)


def specialists_from_seeds(seeds: Iterable[SpecialistSeed]) -> List[Specialist]:
    """Convert configured seeds into specialist records."""
    return [Specialist.model_validate(seed.model_dump()) for seed in seeds]


async def seed_specialists(directory: Any, seeds: Iterable[SpecialistSeed]) -> int:
    """Add configured specialists the directory does not know yet.

    Existing records are left alone so live load and availability survive
    a restart.

    Args:
        directory: Directory with ``get_specialist`` and ``upsert``
        seeds: Configured specialists

    Returns:
        Number of specialists added
    """
    added = 0
    for specialist in specialists_from_seeds(seeds):
        if await directory.get_specialist(specialist.id) is None:
            await directory.upsert(specialist)
            added += 1
    if added:
        logger.info("Seeded %d specialist(s)", added)
    return added


def build_service(
    config: TriageConfig,
    redis_client: Optional[Any] = None,
    notifier: Optional[Notifier] = None,
    executor: Optional[ResolutionExecutor] = None,
) -> EscalationService:
    """Create a service over Redis or in-memory collaborators.

    Redis is used when ``config.redis.enabled`` is set or a client is
    passed in. In-memory directories are seeded immediately; Redis ones
    are seeded by ``seed_specialists`` once an event loop is running.

    Args:
        config: Engine configuration
        redis_client: Optional asyncio Redis client
        notifier: Optional notifier, logs assignments by default
        executor: Optional resolution executor, reports success by default

    Returns:
        Configured EscalationService
    """
    min_similarity = config.auto_resolution.min_similarity

    if redis_client is not None or config.redis.enabled:
        client = redis_client if redis_client is not None else create_redis_client(config.redis.url)
        prefix = config.redis.key_prefix
        case_store: Any = RedisCaseStore(client, prefix)
        directory: Any = RedisSpecialistDirectory(client, prefix)
        patterns: Any = RedisPatternStore(client, prefix, min_similarity=min_similarity)
        logger.info("Using Redis collaborators at prefix %r", prefix)
    else:
        case_store = MemoryCaseStore()
        directory = MemorySpecialistDirectory(specialists_from_seeds(config.specialists))
        patterns = MemoryPatternStore(min_similarity=min_similarity)
        logger.info("Using in-memory collaborators")

    return EscalationService(
        config,
        case_store=case_store,
        directory=directory,
        patterns=patterns,
        notifier=notifier or LoggingNotifier(),
        executor=executor or StaticResolutionExecutor(),
    )
