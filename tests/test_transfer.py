# tests/test_transfer.py

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import pytest

from tcelflow.core.errors import InvalidFormatError
from tcelflow.core.models import TaskStatus
from tcelflow.core.state import AppState
from tcelflow.transfer.export_import import (
    build_export_document,
    export_filename,
    parse_import_document,
)

from .fakes import answer_next


def _populate(state: AppState) -> None:
    store = state.store
    ana = store.add_person("Ana", "Lead")
    budi = store.add_person("Budi", "QA")
    store.add_task("Write spec", description="first draft", assigned_person_ids=[ana.id])
    task = store.add_task("Review", assigned_person_ids=[ana.id, budi.id, ana.id])
    store.update_task(task.id, status=TaskStatus.IN_PROGRESS)


def test_export_document_uses_pics_wire_field(state: AppState) -> None:
    state.store.add_person("Ana", "Lead")
    now = datetime(2024, 5, 1, 12, 30, 15, tzinfo=timezone.utc)

    doc = build_export_document(state.store, now)

    assert set(doc) == {"exportedAt", "tasks", "pics"}
    assert doc["exportedAt"] == "2024-05-01T12:30:15.000Z"
    assert doc["pics"][0]["name"] == "Ana"
    assert ":" not in export_filename(now)
    assert export_filename(now).startswith("tcelflow-export-2024-05-01T12-30-15")


@pytest.mark.asyncio
async def test_export_then_import_round_trip(state: AppState) -> None:
    _populate(state)
    before = (state.store.tasks, state.store.persons)

    path = state.transfer.export_data()
    assert path is not None and path.exists()
    text = path.read_text("utf-8")

    state.store.replace_all([], [])
    assert state.store.task_count == 0

    answering = asyncio.create_task(answer_next(state.confirmations, True))
    imported = await state.transfer.import_data(text)
    await answering
    await state.store.flush()

    assert imported is True
    assert (state.store.tasks, state.store.persons) == before
    assert state.store.fallback.get("tasks") == [t.to_dict() for t in before[0]]


@pytest.mark.asyncio
async def test_import_confirmation_shows_counts(state: AppState) -> None:
    text = json.dumps(
        {
            "exportedAt": "2024-05-01T12:30:15.000Z",
            "tasks": [{"id": "t1", "title": "A", "status": "Done", "assignedPersonIds": []}],
            "pics": [],
        }
    )

    pending = asyncio.create_task(state.transfer.import_data(text))
    await asyncio.sleep(0)
    request = state.confirmations.current

    assert request is not None
    assert request.title == "Import Data"
    assert "Tasks: 1, People: 0" in request.message

    state.confirmations.decline()
    assert await pending is False


@pytest.mark.asyncio
async def test_import_missing_pics_is_rejected_and_state_kept(state: AppState) -> None:
    task = state.store.add_task("Existing")

    with pytest.raises(InvalidFormatError):
        parse_import_document('{"tasks":[]}')

    assert await state.transfer.import_data('{"tasks":[]}') is False
    assert [t.id for t in state.store.tasks] == [task.id]
    assert state.confirmations.current is None
    assert any(n.kind == "error" for n in state.notifications.items)

    await state.store.flush()


@pytest.mark.asyncio
async def test_import_with_bad_status_notifies_and_keeps_state(state: AppState) -> None:
    task = state.store.add_task("Existing")
    text = json.dumps({"exportedAt": "x", "tasks": [{"id": "t1", "title": "x", "status": ["Done"]}], "pics": []})

    assert await state.transfer.import_data(text) is False

    assert [t.id for t in state.store.tasks] == [task.id]
    assert state.confirmations.current is None
    assert any(n.kind == "error" and "invalid format" in n.message for n in state.notifications.items)

    await state.store.flush()


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        '{"tasks": {}, "pics": []}',
        '{"tasks": [], "pics": "nope"}',
        '{"tasks": [{"title": "no id"}], "pics": []}',
        '{"tasks": [{"id": "t1", "status": ["Done"]}], "pics": []}',
        '{"tasks": [{"id": "t1", "status": 5}], "pics": []}',
        '{"tasks": [{"id": "t1"}, {"id": "t1"}], "pics": []}',
        '{"tasks": [], "pics": [{"id": "p1"}, {"id": "p1"}]}',
    ],
)
def test_parse_import_document_rejects_malformed(text: str) -> None:
    with pytest.raises(InvalidFormatError):
        parse_import_document(text)


@pytest.mark.asyncio
async def test_declined_import_leaves_state_unchanged(state: AppState) -> None:
    state.store.add_task("Keep")
    before = state.store.tasks
    text = json.dumps({"exportedAt": "x", "tasks": [], "pics": []})

    answering = asyncio.create_task(answer_next(state.confirmations, False))
    assert await state.transfer.import_data(text) is False
    await answering

    assert state.store.tasks == before
    await state.store.flush()


def test_import_accepts_legacy_export_fields() -> None:
    legacy = json.dumps(
        {
            "exportedAt": "2023-10-01T08:00:00.000Z",
            "tasks": [
                {
                    "id": "1696147200000",
                    "title": "Lama",
                    "description": "",
                    "status": "Sedang Dikerjakan",
                    "assignedPics": ["1696147100000"],
                    "createdAt": "2023-10-01T08:00:00.000Z",
                }
            ],
            "pics": [{"id": "1696147100000", "name": "Sari", "role": "PM", "createdAt": ""}],
        }
    )

    doc = parse_import_document(legacy)

    assert doc.tasks[0].status == TaskStatus.IN_PROGRESS
    assert doc.tasks[0].assigned_person_ids == ["1696147100000"]
    assert doc.persons[0].name == "Sari"
