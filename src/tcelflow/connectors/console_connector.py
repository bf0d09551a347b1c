# src/tcelflow/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..ui.confirm import PendingConfirmation
from ..ui.notifications import Notification

logger = logging.getLogger(__name__)

_YES = {"y", "yes", "ok", "1"}
_NO = {"n", "no", "cancel", "0"}


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _show_confirmation(request: PendingConfirmation) -> None:
    _print_ts(f"== {request.title} ==\n{request.message}\n[y/n]")


def _show_notification(note: Notification) -> None:
    _print_ts(f"({note.kind}) {note.message}")


def _report(task: asyncio.Task[str | None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Command handler crashed.", exc_info=exc)
        _print_ts("Internal error while handling a command.")
        return
    reply = task.result()
    if reply is not None:
        _print_ts(reply)


async def run_console_loop(state: AppState) -> None:
    """
    Line-based console UI.

    Commands run as tasks on the loop. A command that asks for confirmation
    stays suspended while the prompt is answered with y/n on the next lines.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    state.notifications.subscribe(_show_notification)
    state.confirmations.subscribe(_show_confirmation)

    running: set[asyncio.Task[str | None]] = set()

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        prompt = "(y/n) > " if state.confirmations.current else ">>> "
        try:
            line = (await asyncio.to_thread(input, prompt)).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break

        if not line:
            continue

        if state.confirmations.current is not None:
            answer = line.lower()
            if answer in _YES:
                state.confirmations.accept()
            elif answer in _NO:
                state.confirmations.decline()
            else:
                _print_ts("Please answer y or n.")
            # Let the resumed command finish before the next prompt.
            await asyncio.sleep(0.05)
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not line.startswith("/"):
            _print_ts("Commands start with '/'. Use /help.")
            continue

        task = asyncio.create_task(command_registry.handle(state, line, emit=emit))
        running.add(task)
        task.add_done_callback(running.discard)
        task.add_done_callback(_report)

        # Give the command a chance to finish (or to reach its confirmation prompt).
        while not task.done() and state.confirmations.current is None:
            await asyncio.sleep(0.01)

    state.confirmations.cancel_all()
    if running:
        await asyncio.gather(*running, return_exceptions=True)
    logger.info("Console connector finished.")
