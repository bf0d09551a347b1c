# src/tcelflow/storage/durable.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import re
import sqlite3
from pathlib import Path
from typing import Any

from ..core.errors import ReadError, UnavailableError, WriteError

logger = logging.getLogger(__name__)

STORE_VERSION = 1

_NAMESPACE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DurableStore:
    """
    SQLite key/value store (the durable backend).

    One database file, one table per namespace (only "kv" is used), values
    stored as JSON text. The store is versioned through PRAGMA user_version.

    Connection policy:
    - each operation opens its own SQLite connection, runs one transaction
      and closes it; nothing is held between operations
    - the blocking work runs in a worker thread so the event loop never waits on disk
    """

    def __init__(
        self,
        db_path: str | Path = "tcelflow-db.sqlite3",
        *,
        namespace: str = "kv",
        enabled: bool = True,
    ) -> None:
        if not _NAMESPACE_RE.match(namespace):
            raise ValueError(f"invalid namespace: {namespace!r}")
        self._db_path = Path(db_path)
        self._namespace = namespace
        self._enabled = enabled

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ---- low-level helpers ----

    def _open_sync(self) -> sqlite3.Connection:
        if not self._enabled:
            raise UnavailableError("durable storage is disabled")

        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self._db_path), timeout=30.0, check_same_thread=False)
        except (OSError, sqlite3.Error) as e:
            raise UnavailableError(f"cannot open durable store at {self._db_path}: {e}") from e

        try:
            self._ensure_schema(conn)
        except UnavailableError:
            conn.close()
            raise
        except sqlite3.Error as e:
            conn.close()
            raise UnavailableError(f"cannot initialise durable store: {e}") from e
        return conn

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

        (version,) = conn.execute("PRAGMA user_version").fetchone()
        if version > STORE_VERSION:
            raise UnavailableError(
                f"durable store version {version} is newer than supported ({STORE_VERSION})"
            )

        conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._namespace} (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        if version < STORE_VERSION:
            conn.execute(f"PRAGMA user_version = {STORE_VERSION}")
            logger.info("DurableStore created namespace=%s db=%s", self._namespace, self._db_path)
        conn.commit()

    def _get_sync(self, key: str) -> Any | None:
        conn = self._open_sync()
        try:
            row = conn.execute(
                f"SELECT value FROM {self._namespace} WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise ReadError(f"durable read failed for {key!r}: {e}") from e
        finally:
            conn.close()

        if row is None:
            return None
        try:
            return json.loads(row[0])
        except (TypeError, ValueError) as e:
            raise ReadError(f"durable value for {key!r} is corrupt: {e}") from e

    def _set_sync(self, key: str, text: str) -> None:
        conn = self._open_sync()
        try:
            conn.execute(
                f"""
                INSERT INTO {self._namespace}(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, text),
            )
            conn.commit()
        except sqlite3.Error as e:
            with contextlib.suppress(sqlite3.Error):
                conn.rollback()
            raise WriteError(f"durable write failed for {key!r}: {e}") from e
        finally:
            conn.close()
        logger.debug("DurableStore set key=%s bytes=%d", key, len(text))

    def _keys_sync(self) -> list[str]:
        conn = self._open_sync()
        try:
            rows = conn.execute(f"SELECT key FROM {self._namespace} ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise ReadError(f"durable key listing failed: {e}") from e
        finally:
            conn.close()
        return [str(r[0]) for r in rows]

    # ---- public API ----

    async def open(self) -> sqlite3.Connection:
        """
        Return a ready connection, creating the database and namespace on first use.

        The caller owns the connection and must close it.
        """
        return await asyncio.to_thread(self._open_sync)

    async def get(self, key: str) -> Any | None:
        """Stored JSON value for `key`, or None when unset."""
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: Any) -> None:
        """Overwrite `key` atomically."""
        try:
            text = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise WriteError(f"value for {key!r} is not JSON-serializable: {e}") from e
        await asyncio.to_thread(self._set_sync, key, text)

    async def keys(self) -> list[str]:
        """Stored keys in sorted order."""
        return await asyncio.to_thread(self._keys_sync)
