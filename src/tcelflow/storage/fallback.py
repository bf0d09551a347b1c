# src/tcelflow/storage/fallback.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..core.errors import QuotaExceededError, ReadError, WriteError

logger = logging.getLogger(__name__)


class FallbackStore:
    """
    Small synchronous string-keyed store backed by one JSON file.

    The file holds `{key: json_text}`. Every write rewrites it atomically
    (temp file + os.replace). Capacity is the UTF-8 size of all keys and
    values; a write that would go over `quota_bytes` is rejected and the
    store keeps its previous content.
    """

    def __init__(self, path: str | Path = "local_storage.json", *, quota_bytes: int = 5 * 1024 * 1024) -> None:
        self._path = Path(path)
        self._quota_bytes = int(quota_bytes)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def quota_bytes(self) -> int:
        return self._quota_bytes

    # ---- low-level helpers ----

    def _load(self) -> dict[str, str]:
        items: dict[str, str] = {}
        if self._path.exists():
            try:
                data = json.loads(self._path.read_text("utf-8"))
                if not isinstance(data, dict):
                    raise ValueError("top-level value is not an object")
                items = {str(k): v for k, v in data.items() if isinstance(v, str)}
            except (OSError, ValueError) as e:
                # Self-heal: keep the broken file for inspection, start empty.
                backup = self._path.with_suffix(".bak")
                logger.warning("Fallback store %s unreadable (%s); moved to %s", self._path, e, backup)
                with contextlib.suppress(OSError):
                    self._path.replace(backup)
                items = {}

        return items

    @staticmethod
    def _size_of(items: dict[str, str]) -> int:
        return sum(len(k.encode("utf-8")) + len(v.encode("utf-8")) for k, v in items.items())

    def _write(self, items: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(json.dumps(items, ensure_ascii=False), "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise WriteError(f"fallback store write failed: {e}") from e

    # ---- raw string API ----

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, text: str) -> None:
        current = self._load()
        updated = dict(current)
        updated[key] = text

        used = self._size_of(updated)
        if used > self._quota_bytes:
            raise QuotaExceededError(
                f"fallback store quota exceeded writing {key!r}: {used} > {self._quota_bytes} bytes"
            )
        self._write(updated)
        logger.debug("FallbackStore set key=%s used=%d/%d", key, used, self._quota_bytes)

    def remove_item(self, key: str) -> None:
        current = self._load()
        if key not in current:
            return
        updated = {k: v for k, v in current.items() if k != key}
        self._write(updated)

    def keys(self) -> list[str]:
        return list(self._load())

    def used_bytes(self) -> int:
        return self._size_of(self._load())

    # ---- JSON API ----

    def get(self, key: str) -> Any | None:
        """Parsed value for `key`, or None when unset."""
        text = self.get_item(key)
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            raise ReadError(f"fallback value for {key!r} is not valid JSON: {e}") from e

    def set(self, key: str, value: Any) -> None:
        try:
            text = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise WriteError(f"value for {key!r} is not JSON-serializable: {e}") from e
        self.set_item(key, text)
