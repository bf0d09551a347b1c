# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tcelflow.cli.bootstrap import create_initial_state
from tcelflow.core.state import AppState
from tcelflow.persistence.coordinator import PersistenceStore
from tcelflow.storage.durable import DurableStore
from tcelflow.storage.fallback import FallbackStore
from tcelflow.ui.notifications import NotificationCenter


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tcelflow-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        export_dir=tmp_path / "exports",
        durable_enabled=True,
        durable_db_path=tmp_path / "tcelflow-db.sqlite3",
        durable_namespace="kv",
        fallback_path=tmp_path / "local_storage.json",
        fallback_quota_bytes=64 * 1024,
        notify_timeout_ms=3500,
    )


@pytest.fixture()
def durable(settings: SimpleNamespace) -> DurableStore:
    return DurableStore(settings.durable_db_path, namespace=settings.durable_namespace)


@pytest.fixture()
def fallback(settings: SimpleNamespace) -> FallbackStore:
    return FallbackStore(settings.fallback_path, quota_bytes=settings.fallback_quota_bytes)


@pytest.fixture()
def notifications() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture()
def store(
    durable: DurableStore, fallback: FallbackStore, notifications: NotificationCenter
) -> PersistenceStore:
    """
    Coordinator wired to real backends in tmp_path.

    NOTE: We keep the real SQLite/JSON stores here because their
    interplay with the coordinator is part of what we want to test.
    """
    return PersistenceStore(durable, fallback, notifier=notifications)


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    return create_initial_state(settings=settings)
