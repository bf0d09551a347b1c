# src/tcelflow/persistence/coordinator.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from ..core.errors import InvalidFormatError, QuotaExceededError, StorageError
from ..core.models import (
    UNKNOWN_PERSON_NAME,
    Person,
    Task,
    TaskStatus,
    decode_persons,
    decode_tasks,
    new_entity_id,
    now_iso,
)
from ..core.ports import DurableBackend, FallbackBackend, Notifier
from ..storage.chain import DurableSource, FallbackSource, Failed, Ok, ReadSource, read_first

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"
PERSONS_KEY = "persons"
# Older builds stored persons under "pics"; read-only alias.
LEGACY_PERSONS_KEY = "pics"


def _decodes(decoder: Callable[[Any], Any]) -> Callable[[Any], bool]:
    def accept(value: Any) -> bool:
        try:
            decoder(value)
        except InvalidFormatError:
            return False
        return True

    return accept


@dataclass(slots=True)
class LoadReport:
    tasks_source: str | None = None
    persons_source: str | None = None
    failures: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SaveReport:
    fallback_ok: bool = True
    durable_ok: bool = True
    errors: list[str] = field(default_factory=list)


class PersistenceStore:
    """
    Owner of the in-memory task/person collections.

    Reads go through an ordered list of sources (durable, then fallback).
    Every mutator schedules a full-snapshot save; saves write the fallback
    store first and then the durable store, key by key. Storage errors are
    logged here and never reach the caller.

    Overlapping saves are not serialized: each backend keeps whichever
    snapshot it wrote last.
    """

    def __init__(
        self,
        durable: DurableBackend,
        fallback: FallbackBackend,
        *,
        notifier: Notifier | None = None,
    ) -> None:
        self.durable = durable
        self.fallback = fallback
        self.notifier = notifier

        self._tasks: list[Task] = []
        self._persons: list[Person] = []

        self._pending: set[asyncio.Task[SaveReport]] = set()
        self._dirty = False

    # ---- collections (read-only views) ----

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def persons(self) -> list[Person]:
        return list(self._persons)

    @property
    def task_count(self) -> int:
        return len(self._tasks)

    @property
    def person_count(self) -> int:
        return len(self._persons)

    def tasks_with_status(self, status: TaskStatus) -> list[Task]:
        return [t for t in self._tasks if t.status == status]

    @property
    def not_started(self) -> list[Task]:
        return self.tasks_with_status(TaskStatus.NOT_STARTED)

    @property
    def in_progress(self) -> list[Task]:
        return self.tasks_with_status(TaskStatus.IN_PROGRESS)

    @property
    def done(self) -> list[Task]:
        return self.tasks_with_status(TaskStatus.DONE)

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self._tasks if t.id == task_id), None)

    def get_person(self, person_id: str) -> Person | None:
        return next((p for p in self._persons if p.id == person_id), None)

    def person_name(self, person_id: str) -> str:
        person = self.get_person(person_id)
        return person.name if person else UNKNOWN_PERSON_NAME

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        return {
            TASKS_KEY: [t.to_dict() for t in self._tasks],
            PERSONS_KEY: [p.to_dict() for p in self._persons],
        }

    # ---- load / save ----

    def _sources(self) -> list[ReadSource]:
        return [DurableSource(self.durable), FallbackSource(self.fallback)]

    async def load(self) -> LoadReport:
        """
        Populate both collections from storage.

        Per collection: durable value if present and well-formed, else the
        fallback value if well-formed, else empty. Never raises.
        """
        report = LoadReport()
        sources = self._sources()

        hit = await read_first(sources, [TASKS_KEY], _decodes(decode_tasks))
        if isinstance(hit.result, Ok):
            self._tasks = decode_tasks(hit.result.value)
            report.tasks_source = hit.source
        elif isinstance(hit.result, Failed):
            report.failures.append(f"tasks: {hit.result.reason}")

        hit = await read_first(sources, [PERSONS_KEY, LEGACY_PERSONS_KEY], _decodes(decode_persons))
        if isinstance(hit.result, Ok):
            self._persons = decode_persons(hit.result.value)
            report.persons_source = hit.source
        elif isinstance(hit.result, Failed):
            report.failures.append(f"persons: {hit.result.reason}")

        logger.info(
            "Loaded tasks=%d (from %s) persons=%d (from %s)",
            len(self._tasks),
            report.tasks_source or "-",
            len(self._persons),
            report.persons_source or "-",
        )
        return report

    async def save(self) -> SaveReport:
        """
        Write the current snapshot to both backends (fallback first).

        Failures are logged and reported, never raised; a durable failure
        does not undo the fallback write.
        """
        report = SaveReport()
        snap = self.snapshot()
        self._dirty = False

        for key, value in snap.items():
            try:
                self.fallback.set(key, value)
            except QuotaExceededError as e:
                report.fallback_ok = False
                report.errors.append(f"fallback/{key}: {e}")
                logger.warning("Fallback save of %s failed: %s", key, e)
                if self.notifier is not None:
                    self.notifier.notify(f"Local storage is full: {key} could not be saved.", "error")
            except StorageError as e:
                report.fallback_ok = False
                report.errors.append(f"fallback/{key}: {e}")
                logger.warning("Fallback save of %s failed: %s", key, e)

        for key, value in snap.items():
            try:
                await self.durable.set(key, value)
            except StorageError as e:
                report.durable_ok = False
                report.errors.append(f"durable/{key}: {e}")
                logger.warning("Durable save of %s failed: %s", key, e)

        logger.debug(
            "Saved tasks=%d persons=%d fallback_ok=%s durable_ok=%s",
            len(snap[TASKS_KEY]),
            len(snap[PERSONS_KEY]),
            report.fallback_ok,
            report.durable_ok,
        )
        return report

    def schedule_save(self) -> asyncio.Task[SaveReport] | None:
        """Fire-and-forget save. Without a running loop, defer to flush()."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._dirty = True
            logger.debug("No running event loop; save deferred until flush().")
            return None

        task = loop.create_task(self.save())
        self._pending.add(task)
        task.add_done_callback(self._save_finished)
        return task

    def _save_finished(self, task: asyncio.Task[SaveReport]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background save crashed.", exc_info=exc)

    async def flush(self) -> None:
        """Wait for scheduled saves; run one more if a mutation happened outside the loop."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        if self._dirty:
            await self.save()

    # ---- mutators (each schedules a save) ----

    def add_task(
        self,
        title: str,
        description: str = "",
        status: TaskStatus = TaskStatus.NOT_STARTED,
        assigned_person_ids: Iterable[str] = (),
    ) -> Task:
        if not title or not title.strip():
            raise ValueError("title is required")
        task = Task(
            id=new_entity_id(),
            title=title,
            description=description,
            status=status,
            assigned_person_ids=list(assigned_person_ids),
            created_at=now_iso(),
        )
        self._tasks.append(task)
        logger.debug("Task added id=%s status=%s", task.id, task.status.value)
        self.schedule_save()
        return task

    def update_task(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | None = None,
        assigned_person_ids: Iterable[str] | None = None,
    ) -> Task | None:
        for i, current in enumerate(self._tasks):
            if current.id != task_id:
                continue
            if title is not None and not title.strip():
                raise ValueError("title is required")
            updated = replace(
                current,
                title=current.title if title is None else title,
                description=current.description if description is None else description,
                status=current.status if status is None else status,
                assigned_person_ids=(
                    list(current.assigned_person_ids)
                    if assigned_person_ids is None
                    else list(assigned_person_ids)
                ),
            )
            self._tasks[i] = updated
            self.schedule_save()
            return updated
        return None

    def remove_task(self, task_id: str) -> bool:
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        if len(self._tasks) == before:
            return False
        self.schedule_save()
        return True

    def add_person(self, name: str, role: str) -> Person:
        if not name or not name.strip():
            raise ValueError("name is required")
        if not role or not role.strip():
            raise ValueError("role is required")
        person = Person(id=new_entity_id(), name=name, role=role, created_at=now_iso())
        self._persons.append(person)
        logger.debug("Person added id=%s", person.id)
        self.schedule_save()
        return person

    def update_person(
        self, person_id: str, *, name: str | None = None, role: str | None = None
    ) -> Person | None:
        for i, current in enumerate(self._persons):
            if current.id != person_id:
                continue
            if name is not None and not name.strip():
                raise ValueError("name is required")
            if role is not None and not role.strip():
                raise ValueError("role is required")
            updated = replace(
                current,
                name=current.name if name is None else name,
                role=current.role if role is None else role,
            )
            self._persons[i] = updated
            self.schedule_save()
            return updated
        return None

    def remove_person(self, person_id: str) -> bool:
        """Remove a person. Tasks keep their assignment ids (shown as Unknown)."""
        before = len(self._persons)
        self._persons = [p for p in self._persons if p.id != person_id]
        if len(self._persons) == before:
            return False
        self.schedule_save()
        return True

    def replace_all(self, tasks: Iterable[Task], persons: Iterable[Person]) -> None:
        self._tasks = list(tasks)
        self._persons = list(persons)
        self.schedule_save()

    # ---- diagnostics ----

    async def describe_backends(self) -> dict[str, dict[str, Any]]:
        """What each backend currently holds: its stored keys, then per key the entry count or the error."""
        listed: dict[str, Any] = {}
        try:
            listed["durable"] = await self.durable.keys()
        except StorageError as e:
            listed["durable"] = f"error: {e}"
        try:
            listed["fallback"] = sorted(self.fallback.keys())
        except StorageError as e:
            listed["fallback"] = f"error: {e}"

        out: dict[str, dict[str, Any]] = {}
        for source in self._sources():
            entry: dict[str, Any] = {"keys": listed.get(source.name)}
            for key in (TASKS_KEY, PERSONS_KEY):
                result = await source.read(key)
                if isinstance(result, Ok):
                    value = result.value
                    entry[key] = len(value) if isinstance(value, list) else f"<{type(value).__name__}>"
                elif isinstance(result, Failed):
                    entry[key] = f"error: {result.reason}"
                else:
                    entry[key] = None
            out[source.name] = entry
        return out
