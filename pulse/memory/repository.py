# pulse/memory/repository.py

from typing import Any, Dict, List, Optional

from pulse.clients.completion_client import strip_outer_quotes
from pulse.memory.models import ChatSettings, CompletionConfig, Contact, Message
from pulse.memory.store import KeyValueStore

# Store keys shared with the host application
CONTACTS_KEY = "contacts"
SETTINGS_KEY = "chatSettings"
CHATS_KEY = "chats"
UNREAD_KEY = "unreadCounts"
API_URL_KEY = "apiUrl"
API_KEY_KEY = "apiKey"
MODEL_KEY = "selectedModel"
TEMPERATURE_KEY = "temperature"
USER_PERSONA_KEY = "user_persona"


class ConversationRepository:
    """
    Read/append access to the conversation data owned by the host app.
    Every read goes back to the store; nothing is cached between ticks.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ---------- reads ----------

    def list_contacts(self) -> List[Contact]:
        raw = self.store.get_json(CONTACTS_KEY, [])
        if not isinstance(raw, list):
            return []
        return [Contact.from_dict(c) for c in raw if isinstance(c, dict) and c.get("id") is not None]

    def get_contact(self, conversation_id: str) -> Optional[Contact]:
        for contact in self.list_contacts():
            if contact.id == conversation_id:
                return contact
        return None

    def all_settings(self) -> Dict[str, ChatSettings]:
        raw = self.store.get_json(SETTINGS_KEY, {})
        if not isinstance(raw, dict):
            return {}
        return {str(k): ChatSettings.from_dict(v) for k, v in raw.items()}

    def _all_chats_raw(self) -> Dict[str, Any]:
        raw = self.store.get_json(CHATS_KEY, {})
        return raw if isinstance(raw, dict) else {}

    def all_transcripts(self) -> Dict[str, List[Message]]:
        return {
            str(k): [Message.from_dict(m) for m in v if isinstance(m, dict)]
            for k, v in self._all_chats_raw().items()
            if isinstance(v, list)
        }

    def transcript(self, conversation_id: str) -> List[Message]:
        history = self._all_chats_raw().get(conversation_id) or []
        if not isinstance(history, list):
            return []
        return [Message.from_dict(m) for m in history if isinstance(m, dict)]

    def completion_config(self, default_model: str, default_temperature: float) -> CompletionConfig:
        api_url = strip_outer_quotes(self.store.get(API_URL_KEY) or "") or None
        api_key = strip_outer_quotes(self.store.get(API_KEY_KEY) or "") or None
        model = strip_outer_quotes(self.store.get(MODEL_KEY) or "") or default_model

        temperature = default_temperature
        raw_temp = strip_outer_quotes(self.store.get(TEMPERATURE_KEY) or "")
        if raw_temp:
            try:
                temperature = float(raw_temp)
            except ValueError:
                temperature = default_temperature

        user_persona = strip_outer_quotes(self.store.get(USER_PERSONA_KEY) or "")

        return CompletionConfig(
            api_url=api_url,
            api_key=api_key,
            model=model,
            temperature=temperature,
            user_persona=user_persona,
        )

    # ---------- writes ----------

    def append_messages(self, conversation_id: str, messages: List[Message]) -> None:
        """
        Append messages to one transcript. The full chats map is re-read right
        before writing so that messages written by the host since the prompt
        was built are kept.
        """
        if not messages:
            return
        chats = self._all_chats_raw()
        history = chats.get(conversation_id)
        if not isinstance(history, list):
            history = []
        history.extend(m.to_dict() for m in messages)
        chats[conversation_id] = history
        self.store.set_json(CHATS_KEY, chats)
