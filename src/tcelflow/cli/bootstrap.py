# src/tcelflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the storage backends, the persistence coordinator and the UI
  services (notifications, confirmations, import/export) into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..persistence.coordinator import PersistenceStore
from ..storage.durable import DurableStore
from ..storage.fallback import FallbackStore
from ..transfer.export_import import DataTransfer
from ..ui.confirm import ConfirmationQueue
from ..ui.notifications import NotificationCenter

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.fallback_path.parent.mkdir(parents=True, exist_ok=True)
    settings.export_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    notifications = NotificationCenter(default_timeout_ms=settings.notify_timeout_ms)
    confirmations = ConfirmationQueue()

    durable = DurableStore(
        settings.durable_db_path,
        namespace=settings.durable_namespace,
        enabled=settings.durable_enabled,
    )
    if not settings.durable_enabled:
        logger.warning("Durable storage disabled; running on the fallback store only.")
    fallback = FallbackStore(settings.fallback_path, quota_bytes=settings.fallback_quota_bytes)

    store = PersistenceStore(durable, fallback, notifier=notifications)
    transfer = DataTransfer(store, confirmations, notifications, settings.export_dir)

    return AppState(
        settings=settings,
        store=store,
        notifications=notifications,
        confirmations=confirmations,
        transfer=transfer,
    )


async def log_storage_snapshot(state: AppState) -> None:
    """Debug dump of what both backends hold (written to the log file)."""
    try:
        dump = await state.store.describe_backends()
    except Exception:
        logger.exception("Storage diagnostics failed.")
        return
    for backend, keys in dump.items():
        logger.debug("Storage %s: %s", backend, keys)
