# pulse/core/guard.py

import asyncio
from typing import Dict, Optional, Set

from pulse.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_COOLDOWN_SECONDS = 60.0


class TriggerGuard:
    """
    Per-conversation admission flag. Set on admission, released a fixed
    cooldown after the attempt finishes, whether it succeeded or not.

    State is process-local: a restart clears every flag.
    """

    def __init__(self, cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS) -> None:
        self.cooldown_seconds = cooldown_seconds
        self._active: Set[str] = set()
        self._pending: Dict[str, asyncio.TimerHandle] = {}

    def try_admit(self, conversation_id: str) -> bool:
        if conversation_id in self._active:
            return False
        self._active.add(conversation_id)
        return True

    def is_active(self, conversation_id: str) -> bool:
        return conversation_id in self._active

    def release(self, conversation_id: str) -> None:
        handle = self._pending.pop(conversation_id, None)
        if handle is not None:
            handle.cancel()
        self._active.discard(conversation_id)

    def release_later(self, conversation_id: str, delay: Optional[float] = None) -> None:
        """Schedule release on the running event loop after the cooldown."""
        if delay is None:
            delay = self.cooldown_seconds

        previous = self._pending.pop(conversation_id, None)
        if previous is not None:
            previous.cancel()

        loop = asyncio.get_running_loop()
        self._pending[conversation_id] = loop.call_later(delay, self._expire, conversation_id)
        logger.info("Guard for %s releases in %.1fs", conversation_id, delay)

    def release_deadline(self, conversation_id: str) -> Optional[float]:
        """Loop time at which the pending release fires, or None."""
        handle = self._pending.get(conversation_id)
        return handle.when() if handle is not None else None

    def clear(self) -> None:
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()
        self._active.clear()

    def _expire(self, conversation_id: str) -> None:
        self._pending.pop(conversation_id, None)
        self._active.discard(conversation_id)
        logger.info("Guard released for %s", conversation_id)
