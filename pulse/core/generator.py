# pulse/core/generator.py

from typing import Awaitable, Callable, Dict, List, Protocol

from pulse.clients.completion_client import CompletionConfigError, CompletionServiceError
from pulse.core.prompt import DEFAULT_HISTORY_WINDOW, build_messages, build_system_prompt
from pulse.core.replies import parse_replies
from pulse.core.unread import UnreadLedger
from pulse.memory.models import CompletionConfig, Message, Role, new_message_id, now_ms
from pulse.memory.repository import ConversationRepository
from pulse.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationNotFoundError(RuntimeError):
    """An admitted conversation id has no matching contact."""


class Completer(Protocol):
    def complete(self, messages: List[Dict[str, str]], config: CompletionConfig) -> Awaitable[str]:
        ...


class ReplyGenerator:
    """
    Produces proactive assistant messages for one conversation at a time.

    Service-side failures (missing config, unknown contact, HTTP/service
    errors) are logged and swallowed: a proactive reply is best-effort.
    Storage errors propagate.
    """

    def __init__(
        self,
        repository: ConversationRepository,
        ledger: UnreadLedger,
        completer: Completer,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        default_model: str = "gpt-4.1-mini",
        default_temperature: float = 0.9,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.repository = repository
        self.ledger = ledger
        self.completer = completer
        self.history_window = history_window
        self.default_model = default_model
        self.default_temperature = default_temperature
        self.clock = clock

    async def _request_reply(self, conversation_id: str) -> str:
        config = self.repository.completion_config(self.default_model, self.default_temperature)
        if not config.api_url or not config.api_key:
            raise CompletionConfigError("API not configured")

        contact = self.repository.get_contact(conversation_id)
        if contact is None:
            raise ConversationNotFoundError(f"Contact with id {conversation_id} not found")

        transcript = self.repository.transcript(conversation_id)
        system_prompt = build_system_prompt(contact, user_persona=config.user_persona)
        messages = build_messages(system_prompt, transcript, self.history_window)

        return await self.completer.complete(messages, config)

    async def generate(self, conversation_id: str) -> List[Message]:
        """
        Ask the model for a proactive reply and append it to the transcript.
        Returns the appended messages ([] when nothing was delivered).
        """
        try:
            raw_reply = await self._request_reply(conversation_id)
        except (CompletionConfigError, CompletionServiceError, ConversationNotFoundError) as e:
            logger.error("AI API call failed for %s: %s", conversation_id, e)
            return []

        texts = parse_replies(raw_reply).messages
        if not texts:
            logger.info("Model returned no usable replies for %s", conversation_id)
            return []

        timestamp = self.clock()
        new_messages = [
            Message(id=new_message_id(), role=Role.ASSISTANT.value, content=text, timestamp=timestamp)
            for text in texts
        ]

        self.repository.append_messages(conversation_id, new_messages)
        self.ledger.increment(conversation_id, len(new_messages))
        logger.info("Delivered %d proactive message(s) to %s", len(new_messages), conversation_id)
        return new_messages
