"""Tests for per-key locks."""

import pytest
from triage_core import KeyedLock


class TestKeyedLock:
    """Tests for KeyedLock."""

    def test_same_key_same_lock(self):
        """Test a key keeps its lock until discarded."""
        locks = KeyedLock()

        assert locks("esc_1") is locks("esc_1")
        assert locks("esc_1") is not locks("esc_2")
        assert len(locks) == 2

    def test_discard(self):
        """Test discarding forgets the key."""
        locks = KeyedLock()
        first = locks("esc_1")

        locks.discard("esc_1")
        locks.discard("esc_missing")

        assert "esc_1" not in locks
        assert len(locks) == 0
        assert locks("esc_1") is not first

    @pytest.mark.asyncio
    async def test_discard_while_held(self):
        """Test a holder can discard its own key and still release."""
        locks = KeyedLock()
        lock = locks("esc_1")

        async with lock:
            locks.discard("esc_1")

        assert lock.locked() is False
        assert len(locks) == 0
