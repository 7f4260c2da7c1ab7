from __future__ import annotations

from fastapi.testclient import TestClient

from pulse.api.server import create_app
from pulse.core.unread import UnreadLedger
from pulse.core.visibility import VisibilityGate


def test_visibility_toggle(ledger: UnreadLedger):
    gate = VisibilityGate()
    client = TestClient(create_app(gate, ledger))

    r = client.post("/visibility", json={"visible": False})
    assert r.status_code == 200
    assert r.json() == {"visible": False}
    assert gate.is_visible() is False

    health = client.get("/health").json()
    assert health["status"] == "ok"
    assert health["visible"] is False
    assert health["running"] is False


def test_unread_listing_and_clear(ledger: UnreadLedger):
    ledger.increment("alice", 2)
    ledger.increment("bob")
    client = TestClient(create_app(VisibilityGate(), ledger))

    assert client.get("/unread").json() == {"counts": {"alice": 2, "bob": 1}}

    r = client.delete("/unread/alice")
    assert r.status_code == 200
    assert r.json() == {"counts": {"bob": 1}}
    assert ledger.get("alice") == 0


def test_visibility_requires_flag(ledger: UnreadLedger):
    client = TestClient(create_app(VisibilityGate(), ledger))
    assert client.post("/visibility", json={}).status_code == 422
