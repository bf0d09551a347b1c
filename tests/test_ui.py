# tests/test_ui.py

from __future__ import annotations

import asyncio

import pytest

from tcelflow.core.state import AppState
from tcelflow.tracker.actions import PersonForm, TaskForm, delete_person, delete_task, save_person, save_task
from tcelflow.ui.confirm import ConfirmationQueue
from tcelflow.ui.notifications import NotificationCenter

from .fakes import answer_next


@pytest.mark.asyncio
async def test_notifications_expire_and_can_be_dismissed() -> None:
    center = NotificationCenter(default_timeout_ms=20)
    seen: list[str] = []
    center.subscribe(lambda n: seen.append(n.message))

    first = center.notify("saved")
    second = center.notify("oops", "error", timeout_ms=10_000)
    assert first != second
    assert [n.message for n in center.items] == ["saved", "oops"]
    assert seen == ["saved", "oops"]

    await asyncio.sleep(0.1)
    assert [n.id for n in center.items] == [second]

    assert center.dismiss(second) is True
    assert center.dismiss(second) is False
    assert center.items == []


@pytest.mark.asyncio
async def test_confirmations_are_queued_and_all_resolved() -> None:
    queue = ConfirmationQueue()
    shown: list[str] = []
    queue.subscribe(lambda r: shown.append(r.title))

    first = queue.request_confirmation("Delete A?", "A")
    second = queue.request_confirmation("Delete B?")

    assert queue.current is not None and queue.current.title == "A"
    assert queue.pending_count == 2

    assert queue.accept() is True
    assert queue.current is not None and queue.current.title == "Confirm"
    assert queue.decline() is True
    assert queue.current is None
    assert queue.decline() is False

    assert await first is True
    assert await second is False
    assert shown == ["A", "Confirm"]


@pytest.mark.asyncio
async def test_cancelled_caller_releases_the_visible_request() -> None:
    queue = ConfirmationQueue()
    shown: list[str] = []
    queue.subscribe(lambda r: shown.append(r.title))

    async def ask(title: str) -> bool:
        return await queue.request_confirmation(f"{title}?", title)

    first = asyncio.create_task(ask("A"))
    await asyncio.sleep(0)
    second = queue.request_confirmation("B?", "B")
    assert queue.current is not None and queue.current.title == "A"

    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first
    await asyncio.sleep(0)

    assert queue.current is not None and queue.current.title == "B"
    assert queue.pending_count == 1
    assert shown == ["A", "B"]

    assert queue.accept() is True
    assert await second is True
    assert queue.current is None


@pytest.mark.asyncio
async def test_cancel_all_declines_everything_pending() -> None:
    queue = ConfirmationQueue()
    a = queue.request_confirmation("a")
    b = queue.request_confirmation("b")

    queue.cancel_all()

    assert (await a, await b) == (False, False)
    assert queue.current is None


@pytest.mark.asyncio
async def test_declined_delete_keeps_task(state: AppState) -> None:
    task = save_task(state, TaskForm(title="Write spec"))
    assert task is not None

    answering = asyncio.create_task(answer_next(state.confirmations, False))
    assert await delete_task(state, task.id) is False
    await answering
    assert [t.id for t in state.store.tasks] == [task.id]

    answering = asyncio.create_task(answer_next(state.confirmations, True))
    assert await delete_task(state, task.id) is True
    await answering
    assert state.store.tasks == []

    await state.store.flush()


@pytest.mark.asyncio
async def test_two_people_assigned_then_one_deleted(state: AppState) -> None:
    ana = save_person(state, PersonForm(name="Ana", role="Lead"))
    budi = save_person(state, PersonForm(name="Budi", role="QA"))
    assert ana is not None and budi is not None
    assert save_person(state, PersonForm(name="", role="QA")) is None

    form = TaskForm(title="Pair review")
    form.assigned_person_ids.extend([ana.id, budi.id])
    task = save_task(state, form)
    assert task is not None

    answering = asyncio.create_task(answer_next(state.confirmations, True))
    assert await delete_person(state, ana.id) is True
    await answering

    stored = state.store.get_task(task.id)
    assert stored is not None
    assert len(stored.assigned_person_ids) == 2
    assert state.store.person_name(ana.id) == "Unknown"

    await state.store.flush()


@pytest.mark.asyncio
async def test_edit_form_copies_assignments(state: AppState) -> None:
    task = save_task(state, TaskForm(title="T", assigned_person_ids=["p1"]))
    assert task is not None

    form = TaskForm.from_task(task)
    form.assigned_person_ids.append("p2")
    assert state.store.get_task(task.id).assigned_person_ids == ["p1"]

    updated = save_task(state, form, editing_id=task.id)
    assert updated is not None and updated.assigned_person_ids == ["p1", "p2"]
    assert save_task(state, TaskForm(title="  ")) is None

    await state.store.flush()
