# src/tcelflow/core/models.py

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from .errors import InvalidFormatError

UNKNOWN_PERSON_NAME = "Unknown"

_ID_ALPHABET = string.digits + string.ascii_lowercase


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Notes:
    - values are what gets written to storage and export files
    - older data used localized labels; `from_raw` maps them back
    """

    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    DONE = "Done"

    @classmethod
    def from_raw(cls, raw: str | None) -> TaskStatus:
        if not raw or not isinstance(raw, str):
            return cls.NOT_STARTED
        legacy = _LEGACY_STATUS_LABELS.get(raw.strip().lower())
        if legacy is not None:
            return legacy
        try:
            return cls(raw)
        except ValueError:
            return cls.NOT_STARTED


_LEGACY_STATUS_LABELS = {
    "belum dimulai": TaskStatus.NOT_STARTED,
    "sedang dikerjakan": TaskStatus.IN_PROGRESS,
    "selesai": TaskStatus.DONE,
}


def now_iso() -> str:
    """UTC timestamp in the ISO-8601 form used on the wire (millisecond precision, Z suffix)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_entity_id() -> str:
    """Creation-time id: epoch milliseconds plus a short random base-36 suffix."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=6))
    return f"{int(time.time() * 1000)}{suffix}"


def _require_dict(raw: Any, what: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise InvalidFormatError(f"{what} entry must be an object, got {type(raw).__name__}")
    if raw.get("id") in (None, ""):
        raise InvalidFormatError(f"{what} entry is missing an id")
    return raw


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    assigned_person_ids: list[str] = field(default_factory=list)
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "assignedPersonIds": list(self.assigned_person_ids),
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Task:
        data = _require_dict(raw, "task")
        assigned = data.get("assignedPersonIds")
        if assigned is None:
            assigned = data.get("assignedPics", [])
        if not isinstance(assigned, list):
            raise InvalidFormatError(f"task {data['id']!r}: assignments must be a list")
        status = data.get("status")
        if status is not None and not isinstance(status, str):
            raise InvalidFormatError(f"task {data['id']!r}: status must be a string")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            status=TaskStatus.from_raw(status),
            assigned_person_ids=[str(p) for p in assigned],
            created_at=str(data.get("createdAt") or ""),
        )


@dataclass(slots=True)
class Person:
    id: str
    name: str
    role: str
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> Person:
        data = _require_dict(raw, "person")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            role=str(data.get("role") or ""),
            created_at=str(data.get("createdAt") or ""),
        )


def _reject_duplicate_ids(entities: list[Any], what: str) -> None:
    seen: set[str] = set()
    for entity in entities:
        if entity.id in seen:
            raise InvalidFormatError(f"duplicate {what} id {entity.id!r}")
        seen.add(entity.id)


def decode_tasks(raw: Any) -> list[Task]:
    if not isinstance(raw, list):
        raise InvalidFormatError("tasks must be a list")
    tasks = [Task.from_dict(item) for item in raw]
    _reject_duplicate_ids(tasks, "task")
    return tasks


def decode_persons(raw: Any) -> list[Person]:
    if not isinstance(raw, list):
        raise InvalidFormatError("persons must be a list")
    persons = [Person.from_dict(item) for item in raw]
    _reject_duplicate_ids(persons, "person")
    return persons
