# src/tcelflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The persistence coordinator and the import/export flow depend on Protocols
instead of concrete implementations. This keeps backends swappable and lets
tests plug in failing or scripted fakes.
"""

from typing import Any, Awaitable, Protocol


class DurableBackend(Protocol):
    """Larger-capacity asynchronous key/value store."""

    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any) -> None: ...
    async def keys(self) -> list[str]: ...


class FallbackBackend(Protocol):
    """Small synchronous key/value store holding JSON text."""

    def get(self, key: str) -> Any | None: ...
    def set(self, key: str, value: Any) -> None: ...
    def keys(self) -> list[str]: ...


class Notifier(Protocol):
    """Toast sink. `kind` is one of: success, error, info, warning."""

    def notify(self, message: str, kind: str = "success", timeout_ms: int | None = None) -> str: ...


class ConfirmationPrompt(Protocol):
    """Non-blocking yes/no prompt; the awaitable resolves to the user's decision."""

    def request_confirmation(self, message: str, title: str = "Confirm") -> Awaitable[bool]: ...
