# src/tcelflow/ui/notifications.py

from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

NotificationListener = Callable[["Notification"], None]


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    message: str
    kind: str = "success"


def _notification_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{int(time.time() * 1000)}{suffix}"


class NotificationCenter:
    """
    Fire-and-forget toasts.

    Entries are kept in insertion order. Each one removes itself after its
    timeout through a loop.call_later callback; dismiss() removes it early.
    Outside a running event loop entries stay until dismissed.
    """

    def __init__(self, default_timeout_ms: int = 3500) -> None:
        self.default_timeout_ms = default_timeout_ms
        self._items: list[Notification] = []
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._listeners: list[NotificationListener] = []

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    def subscribe(self, listener: NotificationListener) -> None:
        self._listeners.append(listener)

    def notify(self, message: str, kind: str = "success", timeout_ms: int | None = None) -> str:
        note = Notification(id=_notification_id(), message=message, kind=kind)
        self._items.append(note)

        timeout = self.default_timeout_ms if timeout_ms is None else timeout_ms
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None and timeout > 0:
            self._timers[note.id] = loop.call_later(timeout / 1000.0, self._expire, note.id)

        log = logger.warning if kind == "error" else logger.info
        log("[%s] %s", kind, message)

        for listener in list(self._listeners):
            try:
                listener(note)
            except Exception:
                logger.exception("Notification listener failed.")
        return note.id

    def _expire(self, note_id: str) -> None:
        self._timers.pop(note_id, None)
        self._items = [n for n in self._items if n.id != note_id]

    def dismiss(self, note_id: str) -> bool:
        timer = self._timers.pop(note_id, None)
        if timer is not None:
            timer.cancel()
        before = len(self._items)
        self._items = [n for n in self._items if n.id != note_id]
        return len(self._items) != before

    def clear(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._items.clear()
