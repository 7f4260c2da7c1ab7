"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os
import tempfile
from typing import Any, Dict, List, Optional

import pytest

# Keep test logs out of the package tree; must happen before pulse imports.
os.environ.setdefault("PULSE_LOG_DIR", tempfile.mkdtemp(prefix="pulse-logs-"))

from pulse.core.unread import UnreadLedger  # noqa: E402
from pulse.memory.models import CompletionConfig  # noqa: E402
from pulse.memory.repository import ConversationRepository  # noqa: E402
from pulse.memory.store import InMemoryStore  # noqa: E402

T0 = 1_700_000_000_000  # a fixed "last human message" time, epoch ms


class FakeCompleter:
    """Stands in for the completion client; records every call."""

    def __init__(self, reply: str = '{"replies":["hi"]}', error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, messages: List[Dict[str, str]], config: CompletionConfig) -> str:
        self.calls.append({"messages": messages, "config": config})
        if self.error is not None:
            raise self.error
        return self.reply


def seed(
    store: InMemoryStore,
    contacts: Optional[List[Dict[str, Any]]] = None,
    settings: Optional[Dict[str, Any]] = None,
    chats: Optional[Dict[str, Any]] = None,
    configured: bool = True,
) -> None:
    if contacts is not None:
        store.set_json("contacts", contacts)
    if settings is not None:
        store.set_json("chatSettings", settings)
    if chats is not None:
        store.set_json("chats", chats)
    if configured:
        store.set("apiUrl", "https://llm.example.com/v1")
        store.set("apiKey", "sk-test")
        store.set("selectedModel", "test-model")


def human(content: str, ts: int, msg_id: str = "m1") -> Dict[str, Any]:
    return {"id": msg_id, "role": "user", "content": content, "timestamp": ts}


def assistant(content: str, ts: int, msg_id: str = "a1") -> Dict[str, Any]:
    return {"id": msg_id, "role": "assistant", "content": content, "timestamp": ts}


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def repository(store: InMemoryStore) -> ConversationRepository:
    return ConversationRepository(store)


@pytest.fixture
def ledger(store: InMemoryStore) -> UnreadLedger:
    return UnreadLedger(store)


@pytest.fixture
def alice_store(store: InMemoryStore) -> InMemoryStore:
    """One proactive contact whose last message is a human one at T0."""
    seed(
        store,
        contacts=[{"id": "alice", "name": "Alice", "persona": "A cheerful barista.", "note": ""}],
        settings={"alice": {"proactive": True}},
        chats={"alice": [assistant("hey", T0 - 10_000), human("brb", T0)]},
    )
    return store
