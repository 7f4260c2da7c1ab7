# pulse/core/scanner.py

from typing import Callable, List, Optional, Sequence

from pulse.core.visibility import VisibilityGate
from pulse.memory.models import ChatSettings, Message, Role, now_ms
from pulse.memory.repository import ConversationRepository
from pulse.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_IDLE_THRESHOLD_MS = 300_000


def is_due(
    settings: Optional[ChatSettings],
    transcript: Sequence[Message],
    now: int,
    idle_threshold_ms: int = DEFAULT_IDLE_THRESHOLD_MS,
) -> bool:
    """
    A conversation is due when proactive mode is on, the transcript is
    non-empty, the last message came from the human side, and that message is
    strictly older than the idle threshold.
    """
    if settings is None or not settings.proactive:
        return False
    if not transcript:
        return False

    last = transcript[-1]
    if last.role != Role.HUMAN.value:
        return False
    if last.timestamp is None:
        return False

    return now - last.timestamp > idle_threshold_ms


class EligibilityScanner:
    def __init__(
        self,
        repository: ConversationRepository,
        gate: VisibilityGate,
        idle_threshold_ms: int = DEFAULT_IDLE_THRESHOLD_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.repository = repository
        self.gate = gate
        self.idle_threshold_ms = idle_threshold_ms
        self.clock = clock

    def scan(self, now: Optional[int] = None) -> List[str]:
        """
        Return the ids of due conversations in contact-list order.
        Returns [] without touching the store while the host is hidden.
        """
        if not self.gate.is_visible():
            return []

        if now is None:
            now = self.clock()

        all_settings = self.repository.all_settings()
        transcripts = self.repository.all_transcripts()

        due: List[str] = []
        for contact in self.repository.list_contacts():
            if is_due(
                all_settings.get(contact.id),
                transcripts.get(contact.id, []),
                now,
                self.idle_threshold_ms,
            ):
                due.append(contact.id)

        if due:
            logger.info("Scan found %d due conversation(s): %s", len(due), due)
        return due
