# pulse/main.py
"""
Pulse entrypoint.

Default behavior:
- Run the proactive scheduler loop against the SQLite key/value store.

Options:
- --once  : run a single tick, wait for dispatched attempts, exit
- --serve : also expose the host API (visibility + unread) via uvicorn
- --host / --port : bind address for --serve

All service configuration (endpoint, key, model, temperature, user persona)
is read from the store; process knobs come from .env / environment.
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Optional

import uvicorn

from pulse.api.server import create_app
from pulse.clients.completion_client import CompletionClient
from pulse.config.settings import Settings, load_settings
from pulse.core.generator import ReplyGenerator
from pulse.core.guard import TriggerGuard
from pulse.core.scanner import EligibilityScanner
from pulse.core.scheduler import ProactiveScheduler
from pulse.core.unread import UnreadLedger
from pulse.core.visibility import VisibilityGate
from pulse.memory.repository import ConversationRepository
from pulse.memory.store import KeyValueStore, SQLiteStore
from pulse.utils.logging import get_logger

logger = get_logger(__name__)


def build_scheduler(
    settings: Settings,
    store: KeyValueStore,
    gate: Optional[VisibilityGate] = None,
    completer=None,
) -> ProactiveScheduler:
    """Wire store, gate, scanner, guard and generator into a scheduler."""
    repository = ConversationRepository(store)
    ledger = UnreadLedger(store)
    scanner = EligibilityScanner(
        repository,
        gate or VisibilityGate(),
        idle_threshold_ms=settings.idle_threshold_ms,
    )
    generator = ReplyGenerator(
        repository,
        ledger,
        completer or CompletionClient(timeout_seconds=settings.http_timeout_seconds),
        history_window=settings.history_window,
        default_model=settings.default_model,
        default_temperature=settings.default_temperature,
    )
    return ProactiveScheduler(
        scanner,
        TriggerGuard(cooldown_seconds=settings.cooldown_seconds),
        generator,
        interval_seconds=settings.check_interval_seconds,
    )


async def _run(args: argparse.Namespace) -> None:
    settings = load_settings()
    store = SQLiteStore(settings.db_path)
    gate = VisibilityGate()
    scheduler = build_scheduler(settings, store, gate)

    if args.once:
        admitted = scheduler.tick()
        await scheduler.wait_idle()
        logger.info("Single tick finished; admitted=%s", admitted)
        scheduler.guard.clear()
        return

    if not args.serve:
        try:
            await scheduler.run_forever()
        finally:
            await scheduler.shutdown()
        return

    app = create_app(gate, UnreadLedger(store), scheduler)
    server = uvicorn.Server(uvicorn.Config(app, host=args.host, port=args.port, log_level="info"))
    loop_task = asyncio.create_task(scheduler.run_forever())
    try:
        await server.serve()
    finally:
        scheduler.stop()
        loop_task.cancel()
        await scheduler.shutdown()


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Pulse proactive reply scheduler")
    parser.add_argument("--once", action="store_true", help="Run a single scan tick and exit.")
    parser.add_argument("--serve", action="store_true", help="Expose the host API while running.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args(argv)

    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted; exiting.")


if __name__ == "__main__":
    main()
