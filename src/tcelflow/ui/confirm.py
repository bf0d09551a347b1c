# src/tcelflow/ui/confirm.py

from __future__ import annotations

"""
Promise-style confirmation dialogs.

Requests are queued and shown one at a time. The dialog is Hidden when
`current` is None and Visible(awaiting decision) otherwise. accept() and
decline() resolve the visible request and advance to the next one, so a
request made while another is on screen waits its turn instead of
replacing it.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class PendingConfirmation:
    message: str
    title: str
    future: asyncio.Future[bool] = field(repr=False)


ConfirmationListener = Callable[[PendingConfirmation], None]


class ConfirmationQueue:
    def __init__(self) -> None:
        self._queue: deque[PendingConfirmation] = deque()
        self._listeners: list[ConfirmationListener] = []

    @property
    def current(self) -> PendingConfirmation | None:
        return self._queue[0] if self._queue else None

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    def subscribe(self, listener: ConfirmationListener) -> None:
        """`listener` is called each time a request becomes the visible one."""
        self._listeners.append(listener)

    def request_confirmation(self, message: str, title: str = "Confirm") -> asyncio.Future[bool]:
        """Queue a request; the returned future resolves to True (accept) or False (decline)."""
        loop = asyncio.get_running_loop()
        request = PendingConfirmation(message=message, title=title, future=loop.create_future())
        self._queue.append(request)
        request.future.add_done_callback(lambda _f: self._discard(request))
        logger.debug("Confirmation queued title=%r pending=%d", title, len(self._queue))
        if len(self._queue) == 1:
            self._announce(request)
        return request.future

    def accept(self) -> bool:
        return self._resolve(True)

    def decline(self) -> bool:
        return self._resolve(False)

    def cancel_all(self) -> None:
        """Decline every queued request (shutdown)."""
        while self._queue:
            request = self._queue.popleft()
            if not request.future.done():
                request.future.set_result(False)

    def _resolve(self, decision: bool) -> bool:
        if not self._queue:
            return False
        request = self._queue.popleft()
        if not request.future.done():
            request.future.set_result(decision)
        logger.debug("Confirmation %r resolved=%s", request.title, decision)

        # Skip requests whose awaiting caller went away.
        while self._queue and self._queue[0].future.done():
            self._queue.popleft()
        if self._queue:
            self._announce(self._queue[0])
        return True

    def _discard(self, request: PendingConfirmation) -> None:
        """Drop a request whose future finished outside accept/decline (caller cancelled)."""
        if request not in self._queue:
            return
        was_current = self._queue[0] is request
        self._queue.remove(request)
        logger.debug("Confirmation %r dropped; caller went away", request.title)
        if was_current and self._queue:
            self._announce(self._queue[0])

    def _announce(self, request: PendingConfirmation) -> None:
        for listener in list(self._listeners):
            try:
                listener(request)
            except Exception:
                logger.exception("Confirmation listener failed.")
