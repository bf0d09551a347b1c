# src/tcelflow/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads both collections from storage,
then runs the console connector on the event loop. Pending saves are
flushed before exit.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, log_storage_snapshot
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    state.confirmations.cancel_all()
    try:
        await state.store.flush()
    except Exception:
        logger.exception("Failed to flush pending saves.")
    state.notifications.clear()


async def run(settings=None) -> None:
    settings = settings or get_settings()
    state = create_initial_state(settings=settings)

    report = await state.store.load()
    for failure in report.failures:
        logger.warning("Load: %s", failure)
    await log_storage_snapshot(state)

    try:
        if settings.console_enabled:
            await run_console_loop(state)
        else:
            logger.info("Console disabled; nothing to run.")
    finally:
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/tcelflow")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "tcelflow"))

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
