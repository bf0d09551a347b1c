# tests/test_models.py

from __future__ import annotations

import pytest

from tcelflow.core.errors import InvalidFormatError
from tcelflow.core.models import Person, Task, TaskStatus, decode_persons, decode_tasks, new_entity_id


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("InProgress", TaskStatus.IN_PROGRESS),
        ("Done", TaskStatus.DONE),
        ("Belum Dimulai", TaskStatus.NOT_STARTED),
        ("Selesai", TaskStatus.DONE),
        ("", TaskStatus.NOT_STARTED),
        (None, TaskStatus.NOT_STARTED),
        ("archived", TaskStatus.NOT_STARTED),
    ],
)
def test_status_from_raw(raw, expected) -> None:
    assert TaskStatus.from_raw(raw) is expected


def test_new_entity_ids_do_not_collide() -> None:
    ids = {new_entity_id() for _ in range(2000)}
    assert len(ids) == 2000


def test_task_and_person_wire_form() -> None:
    task = Task(
        id="1",
        title="T",
        status=TaskStatus.DONE,
        assigned_person_ids=["p", "p"],
        created_at="2024-01-01T00:00:00.000Z",
    )
    wire = task.to_dict()

    assert wire == {
        "id": "1",
        "title": "T",
        "description": "",
        "status": "Done",
        "assignedPersonIds": ["p", "p"],
        "createdAt": "2024-01-01T00:00:00.000Z",
    }
    assert Task.from_dict(wire) == task

    person = Person(id="p", name="Ana", role="Lead", created_at="x")
    assert Person.from_dict(person.to_dict()) == person


def test_decode_rejects_bad_entries() -> None:
    with pytest.raises(InvalidFormatError):
        decode_tasks({"id": "1"})
    with pytest.raises(InvalidFormatError):
        decode_tasks(["not an object"])
    with pytest.raises(InvalidFormatError):
        decode_tasks([{"id": "1", "title": "T", "assignedPersonIds": "p1"}])


@pytest.mark.parametrize("status", [5, True, ["Done"], {"v": "Done"}])
def test_non_string_status_is_invalid_format(status) -> None:
    with pytest.raises(InvalidFormatError):
        Task.from_dict({"id": "1", "title": "T", "status": status})
    assert TaskStatus.from_raw(status) is TaskStatus.NOT_STARTED


def test_decode_rejects_duplicate_ids() -> None:
    with pytest.raises(InvalidFormatError):
        decode_tasks([{"id": "1", "title": "a"}, {"id": "1", "title": "b"}])
    with pytest.raises(InvalidFormatError):
        decode_persons([{"id": "p", "name": "A", "role": "x"}, {"id": "p", "name": "B", "role": "y"}])
