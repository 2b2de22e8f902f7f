"""Collaborator backends: in-memory doubles and Redis implementations."""

from .memory import (
    LoggingNotifier,
    MemoryCaseStore,
    MemoryPatternStore,
    MemorySpecialistDirectory,
    StaticResolutionExecutor,
)
from .redis_backend import (
    RedisCaseStore,
    RedisPatternStore,
    RedisSpecialistDirectory,
    create_redis_client,
)

__all__ = [
    "LoggingNotifier",
    "MemoryCaseStore",
    "MemoryPatternStore",
    "MemorySpecialistDirectory",
    "RedisCaseStore",
    "RedisPatternStore",
    "RedisSpecialistDirectory",
    "StaticResolutionExecutor",
    "create_redis_client",
]
