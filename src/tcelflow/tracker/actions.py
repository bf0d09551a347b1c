# src/tcelflow/tracker/actions.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..core.models import Person, Task, TaskStatus
from ..core.state import AppState

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TaskForm:
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.NOT_STARTED
    assigned_person_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_task(cls, task: Task) -> TaskForm:
        # Copy the assignment list so editing the form never touches the stored task.
        return cls(
            title=task.title,
            description=task.description,
            status=task.status,
            assigned_person_ids=list(task.assigned_person_ids),
        )


@dataclass(slots=True)
class PersonForm:
    name: str = ""
    role: str = ""

    @classmethod
    def from_person(cls, person: Person) -> PersonForm:
        return cls(name=person.name, role=person.role)


def toggle_assignment(form: TaskForm, person_id: str) -> None:
    if person_id in form.assigned_person_ids:
        form.assigned_person_ids.remove(person_id)
    else:
        form.assigned_person_ids.append(person_id)


def save_task(state: AppState, form: TaskForm, editing_id: str | None = None) -> Task | None:
    """
    Create a task, or update `editing_id` in place.

    Returns None (and changes nothing) when the title is blank or the
    edited task no longer exists.
    """
    if not form.title.strip():
        return None

    store = state.store
    if editing_id:
        task = store.update_task(
            editing_id,
            title=form.title,
            description=form.description,
            status=form.status,
            assigned_person_ids=form.assigned_person_ids,
        )
        if task is not None:
            state.notifications.notify("Task updated!", "success")
        return task

    task = store.add_task(
        form.title,
        description=form.description,
        status=form.status,
        assigned_person_ids=form.assigned_person_ids,
    )
    state.notifications.notify("Task added!", "success")
    return task


async def delete_task(state: AppState, task_id: str) -> bool:
    ok = await state.confirmations.request_confirmation(
        "Are you sure you want to delete this task?", "Delete Task"
    )
    if not ok:
        return False
    if not state.store.remove_task(task_id):
        logger.debug("delete_task: no task id=%s", task_id)
        return False
    state.notifications.notify("Task deleted!", "success")
    return True


def save_person(state: AppState, form: PersonForm, editing_id: str | None = None) -> Person | None:
    if not form.name.strip() or not form.role.strip():
        return None

    store = state.store
    if editing_id:
        person = store.update_person(editing_id, name=form.name, role=form.role)
        if person is not None:
            state.notifications.notify("Person updated!", "success")
        return person

    person = store.add_person(form.name, form.role)
    state.notifications.notify("Person added!", "success")
    return person


async def delete_person(state: AppState, person_id: str) -> bool:
    ok = await state.confirmations.request_confirmation(
        "Are you sure? Tasks assigned to this person will be kept.", "Delete Person"
    )
    if not ok:
        return False
    if not state.store.remove_person(person_id):
        logger.debug("delete_person: no person id=%s", person_id)
        return False
    state.notifications.notify("Person deleted!", "success")
    return True
