from __future__ import annotations

from pulse.core.scanner import EligibilityScanner, is_due
from pulse.core.visibility import VisibilityGate
from pulse.memory.models import ChatSettings, Message
from pulse.memory.repository import ConversationRepository
from pulse.memory.store import InMemoryStore

from conftest import T0, assistant, human, seed

IDLE = 300_000


def _msg(role: str, ts):
    return Message(id="x", role=role, content="...", timestamp=ts)


def test_not_due_when_proactive_disabled_or_absent():
    transcript = [_msg("user", T0)]
    assert not is_due(None, transcript, T0 + IDLE + 1, IDLE)
    assert not is_due(ChatSettings(proactive=False), transcript, T0 + IDLE + 1, IDLE)


def test_not_due_with_empty_transcript():
    assert not is_due(ChatSettings(proactive=True), [], T0 + IDLE + 1, IDLE)


def test_not_due_when_last_message_is_not_human():
    on = ChatSettings(proactive=True)
    assert not is_due(on, [_msg("user", T0), _msg("assistant", T0)], T0 + 10 * IDLE, IDLE)
    assert not is_due(on, [_msg("system", T0)], T0 + 10 * IDLE, IDLE)


def test_idle_threshold_is_strict():
    on = ChatSettings(proactive=True)
    transcript = [_msg("user", T0)]
    assert not is_due(on, transcript, T0 + IDLE, IDLE)
    assert is_due(on, transcript, T0 + IDLE + 1, IDLE)


def test_missing_timestamp_is_never_due():
    assert not is_due(ChatSettings(proactive=True), [_msg("user", None)], T0 + 10 * IDLE, IDLE)


def test_scan_returns_due_ids_in_contact_order(store: InMemoryStore):
    seed(
        store,
        contacts=[{"id": "c"}, {"id": "a"}, {"id": "b"}, {"id": "off"}, {"id": "quiet"}],
        settings={
            "a": {"proactive": True},
            "b": {"proactive": True},
            "c": {"proactive": True},
            "off": {"proactive": False},
            "quiet": {"proactive": True},
        },
        chats={
            "a": [human("hi", T0)],
            "b": [human("hi", T0), assistant("yo", T0 + 1)],
            "c": [human("hi", T0 - 5)],
            "off": [human("hi", T0)],
            "quiet": [],
        },
    )
    scanner = EligibilityScanner(ConversationRepository(store), VisibilityGate(), IDLE)
    assert scanner.scan(T0 + IDLE + 1) == ["c", "a"]


def test_scan_uses_injected_clock(alice_store: InMemoryStore):
    scanner = EligibilityScanner(
        ConversationRepository(alice_store), VisibilityGate(), IDLE, clock=lambda: T0 + IDLE + 1
    )
    assert scanner.scan() == ["alice"]


class ExplodingStore(InMemoryStore):
    def get(self, key):
        raise AssertionError(f"store read while hidden: {key}")


def test_hidden_surface_skips_scan_entirely():
    gate = VisibilityGate(visible=False)
    scanner = EligibilityScanner(ConversationRepository(ExplodingStore()), gate, IDLE)
    assert scanner.scan(T0 + IDLE + 1) == []


def test_scan_tolerates_empty_store(store: InMemoryStore):
    scanner = EligibilityScanner(ConversationRepository(store), VisibilityGate(), IDLE)
    assert scanner.scan(T0) == []
