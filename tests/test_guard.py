from __future__ import annotations

import asyncio

from pulse.core.guard import TriggerGuard


def test_admission_is_exclusive_until_released():
    guard = TriggerGuard()
    results = [guard.try_admit("c1") for _ in range(3)]
    assert results == [True, False, False]
    assert guard.try_admit("c2") is True

    guard.release("c1")
    assert guard.try_admit("c1") is True


def test_release_later_waits_for_cooldown():
    async def scenario():
        guard = TriggerGuard(cooldown_seconds=60.0)
        loop = asyncio.get_running_loop()
        guard.try_admit("c1")
        guard.release_later("c1")

        remaining = guard.release_deadline("c1") - loop.time()
        assert 59.0 < remaining <= 60.0
        assert guard.is_active("c1")
        assert guard.try_admit("c1") is False
        guard.clear()

    asyncio.run(scenario())


def test_flag_clears_when_cooldown_elapses():
    async def scenario():
        guard = TriggerGuard(cooldown_seconds=0.01)
        guard.try_admit("c1")
        guard.release_later("c1")
        await asyncio.sleep(0.05)
        assert not guard.is_active("c1")
        assert guard.release_deadline("c1") is None
        assert guard.try_admit("c1") is True

    asyncio.run(scenario())


def test_explicit_release_cancels_pending_timer():
    async def scenario():
        guard = TriggerGuard(cooldown_seconds=60.0)
        guard.try_admit("c1")
        guard.release_later("c1")
        guard.release("c1")
        assert guard.release_deadline("c1") is None
        assert guard.try_admit("c1") is True
        guard.clear()

    asyncio.run(scenario())
