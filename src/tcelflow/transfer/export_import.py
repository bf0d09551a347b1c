# src/tcelflow/transfer/export_import.py

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..core.errors import InvalidFormatError
from ..core.models import Person, Task, decode_persons, decode_tasks
from ..core.ports import ConfirmationPrompt, Notifier
from ..persistence.coordinator import PersistenceStore

logger = logging.getLogger(__name__)

# Wire field names of the export document. Persons travel as "pics".
EXPORTED_AT_FIELD = "exportedAt"
TASKS_FIELD = "tasks"
PERSONS_FIELD = "pics"


def _iso(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_export_document(store: PersistenceStore, now: datetime | None = None) -> dict[str, Any]:
    ts = now or datetime.now(timezone.utc)
    snap = store.snapshot()
    return {
        EXPORTED_AT_FIELD: _iso(ts),
        TASKS_FIELD: snap["tasks"],
        PERSONS_FIELD: snap["persons"],
    }


def export_filename(now: datetime | None = None) -> str:
    # ':' is not allowed in Windows file names.
    stamp = _iso(now or datetime.now(timezone.utc)).replace(":", "-")
    return f"tcelflow-export-{stamp}.json"


@dataclass(frozen=True, slots=True)
class ImportDocument:
    exported_at: str | None
    tasks: list[Task]
    persons: list[Person]


def parse_import_document(text: str) -> ImportDocument:
    """Validate an export document. Raises InvalidFormatError on any structural problem."""
    try:
        data = json.loads(text)
    except ValueError as e:
        raise InvalidFormatError(f"not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidFormatError("document must be a JSON object")
    if not isinstance(data.get(TASKS_FIELD), list):
        raise InvalidFormatError(f'missing "{TASKS_FIELD}" array')
    if not isinstance(data.get(PERSONS_FIELD), list):
        raise InvalidFormatError(f'missing "{PERSONS_FIELD}" array')

    exported_at = data.get(EXPORTED_AT_FIELD)
    return ImportDocument(
        exported_at=exported_at if isinstance(exported_at, str) else None,
        tasks=decode_tasks(data[TASKS_FIELD]),
        persons=decode_persons(data[PERSONS_FIELD]),
    )


def _describe_timestamp(raw: str | None) -> str:
    if not raw:
        return "an unknown date"
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return raw
    return parsed.astimezone().strftime("%Y-%m-%d %H:%M:%S")


class DataTransfer:
    """
    Export to / import from a portable JSON document.

    Import is a full overwrite of both collections, so it always asks for
    confirmation first and shows the export date and entity counts.
    """

    def __init__(
        self,
        store: PersistenceStore,
        confirmations: ConfirmationPrompt,
        notifier: Notifier,
        export_dir: str | Path,
    ) -> None:
        self.store = store
        self.confirmations = confirmations
        self.notifier = notifier
        self.export_dir = Path(export_dir)

    def export_data(self, now: datetime | None = None) -> Path | None:
        ts = now or datetime.now(timezone.utc)
        try:
            doc = build_export_document(self.store, ts)
            self.export_dir.mkdir(parents=True, exist_ok=True)
            path = self.export_dir / export_filename(ts)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            logger.exception("Export failed.")
            self.notifier.notify(f"Export failed: {e}", "error")
            return None

        logger.info("Exported tasks=%d persons=%d to %s", len(doc[TASKS_FIELD]), len(doc[PERSONS_FIELD]), path)
        self.notifier.notify(f"Data exported to {path}.", "success")
        return path

    async def import_data(self, text: str) -> bool:
        try:
            doc = parse_import_document(text)
        except InvalidFormatError as e:
            logger.warning("Import rejected: %s", e)
            self.notifier.notify(f"Import failed: invalid format ({e}).", "error")
            return False

        ok = await self.confirmations.request_confirmation(
            f"Import data from {_describe_timestamp(doc.exported_at)}?\n"
            f"Tasks: {len(doc.tasks)}, People: {len(doc.persons)}\n"
            "(Existing data will be overwritten)",
            "Import Data",
        )
        if not ok:
            logger.info("Import declined by user.")
            return False

        self.store.replace_all(doc.tasks, doc.persons)
        await self.store.save()

        logger.info("Imported tasks=%d persons=%d", len(doc.tasks), len(doc.persons))
        self.notifier.notify("Data imported!", "success")
        return True

    async def import_file(self, path: str | Path) -> bool:
        try:
            text = Path(path).read_text("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Import file %s unreadable: %s", path, e)
            self.notifier.notify(f"Import failed: cannot read {path} ({e}).", "error")
            return False
        return await self.import_data(text)
