# pulse/memory/models.py

from dataclasses import dataclass, field
from enum import Enum
import time
import uuid
from typing import Any, Dict, Optional


def now_ms() -> int:
    return int(time.time() * 1000)


def new_message_id() -> str:
    return uuid.uuid4().hex


class Role(str, Enum):
    """Message author. Values are the wire form sent to the completion service."""
    HUMAN = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass
class Contact:
    """The character profile attached to a conversation."""
    id: str
    name: str = "Character"
    persona: str = ""
    note: str = ""

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Contact":
        return cls(
            id=str(raw.get("id")),
            name=raw.get("name") or "Character",
            persona=raw.get("persona") or "",
            note=raw.get("note") or "",
        )


@dataclass
class Message:
    id: str
    role: str            # 'user', 'assistant' or 'system'
    content: str
    timestamp: Optional[int]   # epoch milliseconds

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Message":
        ts = raw.get("timestamp")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            ts = None
        return cls(
            id=str(raw.get("id", "")),
            role=str(raw.get("role", "")),
            content=str(raw.get("content", "") or ""),
            timestamp=int(ts) if ts is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
        }

    def to_prompt(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatSettings:
    proactive: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> "ChatSettings":
        if not isinstance(raw, dict):
            return cls()
        return cls(proactive=raw.get("proactive") is True, extra=dict(raw))


@dataclass
class CompletionConfig:
    """Service configuration as read from the store on each attempt."""
    api_url: Optional[str]
    api_key: Optional[str]
    model: str
    temperature: float
    user_persona: str = ""
