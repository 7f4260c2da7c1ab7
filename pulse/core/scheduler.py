# pulse/core/scheduler.py
"""
Proactive scheduler: the loop that ties the pieces together.

Each tick:
  visibility gate -> eligibility scan -> guard admission -> one background
  task per admitted conversation (generate, then release the guard after
  the cooldown, success or failure).

The tick never awaits generation; it returns as soon as work is dispatched.
"""

import asyncio
from typing import List, Optional, Set

from pulse.core.generator import ReplyGenerator
from pulse.core.guard import TriggerGuard
from pulse.core.scanner import EligibilityScanner
from pulse.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CHECK_INTERVAL_SECONDS = 15.0


class ProactiveScheduler:
    def __init__(
        self,
        scanner: EligibilityScanner,
        guard: TriggerGuard,
        generator: ReplyGenerator,
        interval_seconds: float = DEFAULT_CHECK_INTERVAL_SECONDS,
    ) -> None:
        self.scanner = scanner
        self.guard = guard
        self.generator = generator
        self.interval_seconds = interval_seconds
        self.running = False
        self._tasks: Set[asyncio.Task] = set()

    def tick(self, now: Optional[int] = None) -> List[str]:
        """
        Run one scan and dispatch an attempt for every admitted conversation.
        Must be called from inside a running event loop.
        Returns the admitted ids.
        """
        admitted: List[str] = []
        for conversation_id in self.scanner.scan(now):
            if not self.guard.try_admit(conversation_id):
                continue

            logger.info("Triggering proactive reply for %s", conversation_id)
            admitted.append(conversation_id)
            task = asyncio.create_task(self._attempt(conversation_id))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return admitted

    async def _attempt(self, conversation_id: str) -> None:
        try:
            await self.generator.generate(conversation_id)
        except Exception as e:
            logger.exception("Error during proactive reply for %s: %s", conversation_id, e)
        finally:
            self.guard.release_later(conversation_id)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Await every dispatched attempt (not the cooldowns)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def run_forever(self) -> None:
        self.running = True
        logger.info("Global proactive check started (interval=%.1fs).", self.interval_seconds)
        while self.running:
            try:
                self.tick()
            except Exception as e:
                # A bad tick (usually storage) must not stop the scheduler
                logger.exception("Proactive scan failed: %s", e)
            await asyncio.sleep(self.interval_seconds)
        logger.info("Global proactive check stopped.")

    def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.stop()
        await self.wait_idle()
        self.guard.clear()
