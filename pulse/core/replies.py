# pulse/core/replies.py

from dataclasses import dataclass
import json
from typing import List, Union


@dataclass
class StructuredReplies:
    """The model followed the `{"replies": [...]}` contract."""
    replies: List[str]

    @property
    def messages(self) -> List[str]:
        return list(self.replies)


@dataclass
class RawReply:
    """Anything else; the whole raw text becomes one message."""
    text: str

    @property
    def messages(self) -> List[str]:
        return [self.text] if self.text else []


ParsedReply = Union[StructuredReplies, RawReply]


def parse_replies(raw: str) -> ParsedReply:
    """
    Interpret a raw completion as a burst of messages.

    A JSON object with a list under "replies" gives StructuredReplies with
    blank and non-string entries dropped. Invalid JSON, or valid JSON of any
    other shape, gives RawReply carrying the untouched text.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return RawReply(raw or "")

    if not isinstance(data, dict) or not isinstance(data.get("replies"), list):
        return RawReply(raw)

    replies = [r for r in data["replies"] if isinstance(r, str) and r.strip()]
    return StructuredReplies(replies)
