# src/tcelflow/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import cast

from ..core.models import TaskStatus
from ..core.state import AppState
from ..tracker.actions import (
    PersonForm,
    TaskForm,
    delete_person,
    delete_task,
    save_person,
    save_task,
    toggle_assignment,
)

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_STATUS_ALIASES = {
    "notstarted": TaskStatus.NOT_STARTED,
    "not_started": TaskStatus.NOT_STARTED,
    "todo": TaskStatus.NOT_STARTED,
    "inprogress": TaskStatus.IN_PROGRESS,
    "in_progress": TaskStatus.IN_PROGRESS,
    "doing": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.DONE,
}


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return await h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return await h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _split_fields(args: list[str]) -> list[str]:
    """'a b | c d' -> ['a b', 'c d']"""
    return [part.strip() for part in " ".join(args).split("|")]


def _parse_status(raw: str) -> TaskStatus | None:
    key = raw.strip().lower().replace("-", "_")
    if key in _STATUS_ALIASES:
        return _STATUS_ALIASES[key]
    try:
        return TaskStatus(raw)
    except ValueError:
        return None


def _format_task(state: AppState, task) -> str:
    names = ", ".join(state.store.person_name(pid) for pid in task.assigned_person_ids) or "-"
    line = f"  [{task.id}] {task.title} (PIC: {names})"
    if task.description:
        line += f"\n      {task.description}"
    return line


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    store = state.store
    durable = "ON" if getattr(settings, "durable_enabled", True) else "OFF (fallback only)"
    used = store.fallback.used_bytes() if hasattr(store.fallback, "used_bytes") else "?"
    quota = getattr(settings, "fallback_quota_bytes", "?")
    return (
        "Status:\n"
        f"  Tasks: {store.task_count} "
        f"(not started {len(store.not_started)}, in progress {len(store.in_progress)}, done {len(store.done)})\n"
        f"  People: {store.person_count}\n"
        f"  Durable store: {durable}\n"
        f"  Fallback store: {used}/{quota} bytes"
    )


async def cmd_tasks(state: AppState, args: list[str]) -> str:
    """
    /tasks            -> all tasks grouped by status
    /tasks <status>   -> only one status column
    """
    statuses = list(TaskStatus)
    if args:
        wanted = _parse_status(args[0])
        if wanted is None:
            return "Usage: /tasks [notstarted|inprogress|done]"
        statuses = [wanted]

    if not state.store.task_count:
        return "No tasks yet. Add one with /task add <title> | <description>."

    lines: list[str] = []
    for status in statuses:
        column = state.store.tasks_with_status(status)
        lines.append(f"{status.value} ({len(column)}):")
        lines.extend(_format_task(state, t) for t in column)
    return "\n".join(lines)


async def cmd_task(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /task add <title> [| description]
    /task edit <id> <title> [| description]
    /task status <id> <status>
    /task assign <id> <person_id>   (toggles)
    /task rm <id>
    """
    usage = (
        "Usage:\n"
        "  /task add <title> [| description]\n"
        "  /task edit <id> <title> [| description]\n"
        "  /task status <id> <notstarted|inprogress|done>\n"
        "  /task assign <id> <person_id>\n"
        "  /task rm <id>"
    )
    if not args:
        return usage

    sub, rest = args[0].lower(), args[1:]

    if sub == "add":
        fields = _split_fields(rest)
        form = TaskForm(title=fields[0], description=fields[1] if len(fields) > 1 else "")
        task = save_task(state, form)
        return f"Task created: [{task.id}] {task.title}" if task else "Title is required."

    if sub in ("edit", "status", "assign", "rm") and not rest:
        return usage

    if sub == "rm":
        if emit:
            with contextlib.suppress(Exception):
                emit("Waiting for confirmation (y/n)...")
        deleted = await delete_task(state, rest[0])
        return "Task deleted." if deleted else "Task kept."

    task = state.store.get_task(rest[0])
    if task is None:
        return f"No task with id {rest[0]}."
    form = TaskForm.from_task(task)

    if sub == "edit":
        fields = _split_fields(rest[1:])
        form.title = fields[0]
        if len(fields) > 1:
            form.description = fields[1]
    elif sub == "status":
        status = _parse_status(rest[1]) if len(rest) > 1 else None
        if status is None:
            return usage
        form.status = status
    elif sub == "assign":
        if len(rest) < 2:
            return usage
        toggle_assignment(form, rest[1])
    else:
        return usage

    updated = save_task(state, form, editing_id=task.id)
    return _format_task(state, updated).strip() if updated else "Title is required."


async def cmd_pics(state: AppState, args: list[str]) -> str:
    persons = state.store.persons
    if not persons:
        return "No people yet. Add one with /pic add <name> | <role>."
    lines = [f"People ({len(persons)}):"]
    for p in persons:
        lines.append(f"  [{p.id}] {p.name} - {p.role}")
    return "\n".join(lines)


async def cmd_pic(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /pic add <name> | <role>
    /pic edit <id> <name> | <role>
    /pic rm <id>
    """
    usage = "Usage:\n  /pic add <name> | <role>\n  /pic edit <id> <name> | <role>\n  /pic rm <id>"
    if not args:
        return usage

    sub, rest = args[0].lower(), args[1:]

    if sub == "add":
        fields = _split_fields(rest)
        if len(fields) < 2:
            return usage
        person = save_person(state, PersonForm(name=fields[0], role=fields[1]))
        return f"Person created: [{person.id}] {person.name}" if person else "Name and role are required."

    if not rest:
        return usage

    if sub == "rm":
        if emit:
            with contextlib.suppress(Exception):
                emit("Waiting for confirmation (y/n)...")
        deleted = await delete_person(state, rest[0])
        return "Person deleted." if deleted else "Person kept."

    if sub == "edit":
        fields = _split_fields(rest[1:])
        if len(fields) < 2:
            return usage
        person = save_person(state, PersonForm(name=fields[0], role=fields[1]), editing_id=rest[0])
        return f"Person updated: [{person.id}] {person.name}" if person else f"No person with id {rest[0]}."

    return usage


async def cmd_export(state: AppState, args: list[str]) -> str:
    path = state.transfer.export_data()
    return f"Exported to {path}" if path else "Export failed."


async def cmd_import(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /import <path-to-export.json>"
    if emit:
        with contextlib.suppress(Exception):
            emit("Reading import file...")
    imported = await state.transfer.import_file(" ".join(args))
    return "Import complete." if imported else "Nothing imported."


async def cmd_notes(state: AppState, args: list[str]) -> str:
    """
    /notes              -> list active notifications
    /notes dismiss <id> -> dismiss one
    """
    if args and args[0].lower() == "dismiss":
        if len(args) < 2:
            return "Usage: /notes dismiss <id>"
        return "Dismissed." if state.notifications.dismiss(args[1]) else f"No notification {args[1]}."

    items = state.notifications.items
    if not items:
        return "No active notifications."
    return "\n".join(f"  [{n.id}] ({n.kind}) {n.message}" for n in items)


def _format_storage_value(value) -> str:
    if value is None:
        return "unset"
    if isinstance(value, list):
        return "[" + " ".join(value) + "]"
    return str(value)


async def cmd_storage(state: AppState, args: list[str]) -> str:
    dump = await state.store.describe_backends()
    lines = ["Storage:"]
    for backend, keys in dump.items():
        detail = ", ".join(f"{k}={_format_storage_value(v)}" for k, v in keys.items())
        lines.append(f"  {backend}: {detail}")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show counts and storage state.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [status].")
registry.register("task", cmd_task, help_text="Manage a task: /task add|edit|status|assign|rm.")
registry.register("pics", cmd_pics, help_text="List people in contact.", aliases=["people"])
registry.register("pic", cmd_pic, help_text="Manage a person: /pic add|edit|rm.")
registry.register("export", cmd_export, help_text="Export all data to a JSON file.")
registry.register("import", cmd_import, help_text="Import data from an export file (overwrites).")
registry.register("notes", cmd_notes, help_text="List or dismiss notifications.")
registry.register("storage", cmd_storage, help_text="Show what each storage backend holds.")
