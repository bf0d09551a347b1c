# src/tcelflow/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..persistence.coordinator import PersistenceStore
from ..transfer.export_import import DataTransfer
from ..ui.confirm import ConfirmationQueue
from ..ui.notifications import NotificationCenter


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    store: PersistenceStore
    notifications: NotificationCenter
    confirmations: ConfirmationQueue
    transfer: DataTransfer
