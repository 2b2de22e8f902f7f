"""Bounded collaborator calls.

Reads and fire-and-forget calls degrade to a neutral default on timeout or
error, so evaluation and matching always produce a result. Writes that must
not be lost are retried with exponential backoff and raise PersistenceError
once attempts run out.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from triage_config import CollaboratorSettings
from triage_runtime import PersistenceError

from .metrics import COLLABORATOR_FAILURES

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CollaboratorGuard:
    """Wraps collaborator coroutines with timeouts and retries."""

    def __init__(self, settings: CollaboratorSettings):
        self.settings = settings

    async def best_effort(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        default: T,
        timeout: Optional[float] = None,
    ) -> T:
        """Run a read or non-critical call, returning ``default`` on failure.

        Args:
            operation: Name used in logs and metrics
            call: Factory producing the collaborator coroutine
            default: Neutral value returned on failure
            timeout: Override for the configured read timeout

        Returns:
            The collaborator's result, or ``default``
        """
        limit = timeout if timeout is not None else self.settings.read_timeout_seconds
        try:
            return await asyncio.wait_for(call(), timeout=limit)
        except asyncio.TimeoutError:
            COLLABORATOR_FAILURES.labels(operation=operation, kind="timeout").inc()
            logger.warning("%s timed out after %.2fs; using default", operation, limit)
        except Exception as e:
            COLLABORATOR_FAILURES.labels(operation=operation, kind="error").inc()
            logger.warning("%s failed: %s; using default", operation, e)
        return default

    async def write(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        attempts: Optional[int] = None,
    ) -> T:
        """Run a write with bounded retries.

        Args:
            operation: Name used in logs, metrics and the raised error
            call: Factory producing a fresh collaborator coroutine per attempt
            attempts: Override for the configured attempt count

        Returns:
            The collaborator's result

        Raises:
            PersistenceError: If every attempt failed or timed out
        """
        max_attempts = attempts if attempts is not None else self.settings.write_attempts
        delay = self.settings.retry_delay_seconds
        last_error: Exception = RuntimeError("no attempt made")

        for attempt in range(1, max_attempts + 1):
            try:
                return await asyncio.wait_for(
                    call(), timeout=self.settings.write_timeout_seconds
                )
            except asyncio.TimeoutError as e:
                last_error = e
                COLLABORATOR_FAILURES.labels(operation=operation, kind="timeout").inc()
                logger.warning("%s timed out (attempt %d/%d)", operation, attempt, max_attempts)
            except Exception as e:
                last_error = e
                COLLABORATOR_FAILURES.labels(operation=operation, kind="error").inc()
                logger.warning(
                    "%s failed (attempt %d/%d): %s", operation, attempt, max_attempts, e
                )

            if attempt < max_attempts and delay > 0:
                await asyncio.sleep(delay * (2 ** (attempt - 1)))

        logger.error("%s failed after %d attempt(s)", operation, max_attempts)
        raise PersistenceError(operation, max_attempts, last_error)
