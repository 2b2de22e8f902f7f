"""Tests for bounded collaborator calls."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from triage_config import CollaboratorSettings
from triage_core import CollaboratorGuard
from triage_runtime import CollaboratorError, PersistenceError


@pytest.fixture
def guard():
    """Create a guard with short timeouts and no backoff."""
    return CollaboratorGuard(
        CollaboratorSettings(
            read_timeout_seconds=0.05,
            write_timeout_seconds=0.05,
            write_attempts=3,
            retry_delay_seconds=0,
        )
    )


async def _slow():
    await asyncio.sleep(1)
    return "late"


class TestBestEffort:
    """Tests for CollaboratorGuard.best_effort."""

    @pytest.mark.asyncio
    async def test_returns_result(self, guard):
        """Test successful calls pass their result through."""
        call = AsyncMock(return_value=[1, 2])

        assert await guard.best_effort("op", call, default=[]) == [1, 2]

    @pytest.mark.asyncio
    async def test_timeout_returns_default(self, guard):
        """Test slow calls degrade to the default."""
        assert await guard.best_effort("op", _slow, default="default") == "default"

    @pytest.mark.asyncio
    async def test_error_returns_default(self, guard):
        """Test failing calls degrade to the default."""
        call = AsyncMock(side_effect=ConnectionError("down"))

        assert await guard.best_effort("op", call, default=None) is None

    @pytest.mark.asyncio
    async def test_timeout_override(self, guard):
        """Test a per-call timeout replaces the configured one."""
        async def brief():
            await asyncio.sleep(0.1)
            return "done"

        assert await guard.best_effort("op", brief, default=None, timeout=1.0) == "done"


class TestWrite:
    """Tests for CollaboratorGuard.write."""

    @pytest.mark.asyncio
    async def test_retries_until_success(self, guard):
        """Test transient failures are retried."""
        call = AsyncMock(side_effect=[ConnectionError("once"), "ok"])

        assert await guard.write("op", call) == "ok"
        assert call.await_count == 2

    @pytest.mark.asyncio
    async def test_exhaustion_raises(self, guard):
        """Test exhausted retries raise PersistenceError."""
        call = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(PersistenceError) as exc_info:
            await guard.write("case_store.create_escalation", call)

        assert call.await_count == 3
        assert exc_info.value.operation == "case_store.create_escalation"
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert isinstance(exc_info.value, CollaboratorError)

    @pytest.mark.asyncio
    async def test_timeouts_count_as_failures(self, guard):
        """Test timed out writes are retried then raised."""
        with pytest.raises(PersistenceError):
            await guard.write("op", _slow, attempts=2)

    @pytest.mark.asyncio
    async def test_attempts_override(self, guard):
        """Test a single attempt is not retried."""
        call = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(PersistenceError):
            await guard.write("op", call, attempts=1)

        assert call.await_count == 1
