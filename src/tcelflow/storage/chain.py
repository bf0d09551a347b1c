# src/tcelflow/storage/chain.py

from __future__ import annotations

"""
Tiered reads over an ordered list of backends.

Each source turns its own exceptions into a typed result (Ok / Empty / Failed)
so the caller decides what to do with a failure instead of relying on
suppressed exceptions.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from ..core.errors import StorageError
from ..core.ports import DurableBackend, FallbackBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Ok:
    value: Any


@dataclass(frozen=True, slots=True)
class Empty:
    pass


@dataclass(frozen=True, slots=True)
class Failed:
    reason: str


ReadResult = Ok | Empty | Failed


class ReadSource(Protocol):
    name: str

    async def read(self, key: str) -> ReadResult: ...


class DurableSource:
    def __init__(self, backend: DurableBackend, name: str = "durable") -> None:
        self.backend = backend
        self.name = name

    async def read(self, key: str) -> ReadResult:
        try:
            value = await self.backend.get(key)
        except StorageError as e:
            return Failed(f"{type(e).__name__}: {e}")
        return Empty() if value is None else Ok(value)


class FallbackSource:
    def __init__(self, backend: FallbackBackend, name: str = "fallback") -> None:
        self.backend = backend
        self.name = name

    async def read(self, key: str) -> ReadResult:
        try:
            value = self.backend.get(key)
        except StorageError as e:
            return Failed(f"{type(e).__name__}: {e}")
        return Empty() if value is None else Ok(value)


@dataclass(frozen=True, slots=True)
class ChainHit:
    result: ReadResult
    source: str | None = None
    key: str | None = None


async def read_first(
    sources: Sequence[ReadSource],
    keys: Sequence[str],
    accept: Callable[[Any], bool],
) -> ChainHit:
    """
    Try every source in order and, inside a source, every key in order.

    Returns the first Ok value admitted by `accept`. A value that `accept`
    rejects counts as a failure of that source. When nothing is admitted the
    last failure is returned, or Empty when every source was simply empty.
    """
    last_failure: Failed | None = None

    for source in sources:
        for key in keys:
            result = await source.read(key)

            if isinstance(result, Ok):
                if accept(result.value):
                    return ChainHit(result=result, source=source.name, key=key)
                result = Failed(f"malformed value under {key!r}")

            if isinstance(result, Failed):
                logger.warning("Read %s/%s failed: %s", source.name, key, result.reason)
                last_failure = result
                break

    return ChainHit(result=last_failure if last_failure is not None else Empty())
