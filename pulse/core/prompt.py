# pulse/core/prompt.py

from datetime import datetime
from typing import Dict, List, Optional, Sequence

from pulse.memory.models import Contact, Message, Role

DEFAULT_HISTORY_WINDOW = 15

REPLY_RULES = """[Reply rules - follow them strictly]:
1. Your reply MUST be a JSON object containing exactly one key named "replies".
2. The value of "replies" MUST be an array of 1 to 3 strings.
3. Each string is one standalone text message.
4. Every message must be short and colloquial, like a real person texting.
5. Never use Markdown or any other formatting inside the strings.
6. Decide from the conversation whether to send one message or several. Keep it to one when there is little to say; use 2-3 to mimic rapid typing when there is more to say or emotions run high.

[Example reply]:
{
  "replies": [
    "Wait what!",
    "Are you serious?",
    "Show me!"
  ]
}"""


def format_now(now: Optional[datetime] = None) -> str:
    """Current wall-clock time in the locale's date/time representation."""
    return (now or datetime.now()).strftime("%c")


def build_system_prompt(
    contact: Contact,
    user_persona: str = "",
    now: Optional[datetime] = None,
) -> str:
    """
    Character instructions for a proactive text message: who to play, the
    current time, the persona, optional user info and note, then the reply
    format contract.
    """
    sections: List[str] = [
        f"You are now playing {contact.name}. You are chatting with User by text "
        f"message on a phone. The current real-world time is: {format_now(now)}.",
        f"[Character profile]:\n{contact.persona}",
    ]
    if user_persona:
        sections.append(f"[About User]:\n{user_persona}")
    if contact.note:
        sections.append(f"[Notes / mandatory instructions]:\n{contact.note}")
    sections.append(REPLY_RULES)

    return "\n\n".join(sections).strip()


def build_messages(
    system_prompt: str,
    transcript: Sequence[Message],
    window: int = DEFAULT_HISTORY_WINDOW,
) -> List[Dict[str, str]]:
    tail = list(transcript)[-window:] if window > 0 else []
    return [{"role": Role.SYSTEM.value, "content": system_prompt}] + [m.to_prompt() for m in tail]
