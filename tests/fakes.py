# tests/fakes.py

from __future__ import annotations

import asyncio
from typing import Any

from tcelflow.core.errors import ReadError, WriteError
from tcelflow.ui.confirm import ConfirmationQueue


class FakeDurable:
    """
    In-memory durable backend for coordinator tests.

    - `fail_reads` / `fail_writes` make every get/set raise
    - `log` (optional, shared) records write order across backends
    """

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        *,
        fail_reads: bool = False,
        fail_writes: bool = False,
        log: list[tuple[str, str]] | None = None,
    ) -> None:
        self.data = dict(data or {})
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.log = log if log is not None else []

    async def get(self, key: str) -> Any | None:
        if self.fail_reads:
            raise ReadError(f"simulated read failure for {key}")
        return self.data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self.log.append(("durable", key))
        if self.fail_writes:
            raise WriteError(f"simulated write failure for {key}")
        self.data[key] = value

    async def keys(self) -> list[str]:
        if self.fail_reads:
            raise ReadError("simulated key listing failure")
        return sorted(self.data)


class RecordingFallback:
    """Wraps a real FallbackStore and records write order."""

    def __init__(self, inner, log: list[tuple[str, str]]) -> None:
        self.inner = inner
        self.log = log

    def get(self, key: str) -> Any | None:
        return self.inner.get(key)

    def set(self, key: str, value: Any) -> None:
        self.log.append(("fallback", key))
        self.inner.set(key, value)

    def keys(self) -> list[str]:
        return self.inner.keys()


async def answer_next(queue: ConfirmationQueue, decision: bool, *, timeout: float = 1.0) -> None:
    """Wait until a confirmation is visible, then accept or decline it."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while queue.current is None:
        if loop.time() > deadline:
            raise AssertionError("no confirmation was requested")
        await asyncio.sleep(0)
    if decision:
        queue.accept()
    else:
        queue.decline()
