# pulse/api/server.py
"""
Host surface for the proactive scheduler.

The UI that renders conversations lives elsewhere; it talks to the scheduler
through this small API:

- /health          : basic health check
- /visibility      : report foreground/background (gates scanning)
- /unread          : read the unread ledger
- /unread/{id}     : clear one conversation's unread count after the UI shows it
"""

from typing import Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from pulse.core.scheduler import ProactiveScheduler
from pulse.core.unread import UnreadLedger
from pulse.core.visibility import VisibilityGate
from pulse.utils.logging import get_logger

logger = get_logger(__name__)


class VisibilityRequest(BaseModel):
    visible: bool = Field(..., description="True while the host surface is in the foreground.")


class VisibilityResponse(BaseModel):
    visible: bool


class UnreadResponse(BaseModel):
    counts: Dict[str, int]


def create_app(
    gate: VisibilityGate,
    ledger: UnreadLedger,
    scheduler: Optional[ProactiveScheduler] = None,
) -> FastAPI:
    app = FastAPI(
        title="Pulse Proactive API",
        description="Host controls for the proactive reply scheduler.",
        version="0.1.0",
    )

    @app.get("/health")
    def health_check() -> dict:
        return {
            "status": "ok",
            "visible": gate.is_visible(),
            "running": bool(scheduler and scheduler.running),
            "in_flight": scheduler.in_flight if scheduler else 0,
        }

    @app.post("/visibility", response_model=VisibilityResponse)
    def set_visibility(req: VisibilityRequest) -> VisibilityResponse:
        gate.set_visible(req.visible)
        logger.info("Host visibility set to %s", req.visible)
        return VisibilityResponse(visible=gate.is_visible())

    @app.get("/unread", response_model=UnreadResponse)
    def list_unread() -> UnreadResponse:
        return UnreadResponse(counts=ledger.all())

    @app.delete("/unread/{conversation_id}", response_model=UnreadResponse)
    def clear_unread(conversation_id: str) -> UnreadResponse:
        ledger.clear(conversation_id)
        return UnreadResponse(counts=ledger.all())

    return app
