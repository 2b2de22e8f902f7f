"""Per-key asyncio locks."""

import asyncio
from typing import Dict


class KeyedLock:
    """Hands out one asyncio.Lock per key, created on first use.

    Callers ``discard`` a key once nothing can mutate its record any more,
    so the table only holds locks for live records.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}

    def __call__(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def discard(self, key: str) -> None:
        """Forget the lock for a key; a holder keeps its lock until release."""
        self._locks.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._locks

    def __len__(self) -> int:
        return len(self._locks)
