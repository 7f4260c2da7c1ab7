# pulse/core/unread.py

from typing import Any, Dict

from pulse.memory.repository import UNREAD_KEY
from pulse.memory.store import KeyValueStore
from pulse.utils.logging import get_logger

logger = get_logger(__name__)


class UnreadLedger:
    """
    Persisted conversation id -> unread assistant message count.

    Absent key means zero. Operations are plain read-modify-write with no
    locking; the trigger guard keeps one writer per conversation.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _load_raw(self) -> Dict[str, Any]:
        counts = self.store.get_json(UNREAD_KEY, {})
        return counts if isinstance(counts, dict) else {}

    def all(self) -> Dict[str, int]:
        """Readable view: entries that are not whole counts are left out."""
        return {
            str(k): int(v)
            for k, v in self._load_raw().items()
            if isinstance(v, int) and not isinstance(v, bool)
        }

    def get(self, conversation_id: str) -> int:
        return self.all().get(conversation_id, 0)

    def increment(self, conversation_id: str, count: int = 1) -> int:
        if count < 1:
            raise ValueError(f"Unread increment must be >= 1, got {count}")

        # Only the target entry is rewritten; other entries pass through untouched
        counts = self._load_raw()
        current = counts.get(conversation_id, 0)
        if isinstance(current, bool) or not isinstance(current, int):
            current = 0
        counts[conversation_id] = current + count
        self.store.set_json(UNREAD_KEY, counts)
        logger.info(
            "Conversation %s has new messages. Total unread: %d",
            conversation_id,
            counts[conversation_id],
        )
        return counts[conversation_id]

    def clear(self, conversation_id: str) -> None:
        counts = self._load_raw()
        if conversation_id not in counts:
            return
        del counts[conversation_id]
        self.store.set_json(UNREAD_KEY, counts)
        logger.info("Cleared unread for %s", conversation_id)
