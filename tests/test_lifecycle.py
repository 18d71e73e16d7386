from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

import pytest

from notif.models.reminder import CalendarFields, Reminder
from notif.reminders.errors import SinkError, ValidationError
from notif.reminders.lifecycle import ReminderLifecycleController
from notif.reminders.scheduler import NotificationScheduler
from notif.reminders.store import ReminderStore, encode
from notif.storage.kv_store import InMemoryKeyValueStore


T1 = datetime(2099, 6, 1, 9, 0)
T2 = datetime(2099, 6, 2, 10, 30)


class FakeSink:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.pending: dict = {}
        self.cancelled: List[str] = []

    def register(self, trigger_id: str, fire_at: CalendarFields, body: str, title: str) -> None:
        if self.fail:
            raise SinkError("permission denied")
        self.pending[trigger_id] = body

    def cancel(self, trigger_id: str) -> bool:
        self.cancelled.append(trigger_id)
        return self.pending.pop(trigger_id, None) is not None


class FailingKeyValueStore(InMemoryKeyValueStore):
    def set(self, key: str, value: bytes) -> None:
        raise OSError("read-only file system")


class RecordingObserver:
    def __init__(self) -> None:
        self.created: List[Reminder] = []

    def on_reminder_created(self, reminder: Reminder) -> None:
        self.created.append(reminder)


def build_controller(kv=None, sink=None, observer=None) -> ReminderLifecycleController:
    kv = kv if kv is not None else InMemoryKeyValueStore()
    sink = sink if sink is not None else FakeSink()
    controller = ReminderLifecycleController(
        store=ReminderStore(kv),
        scheduler=NotificationScheduler(sink),
        observer=observer,
    )
    controller.load()
    return controller


def texts(reminders) -> List[str]:
    return [r.text for r in reminders]


def test_create_then_find() -> None:
    controller = build_controller()
    controller.create("Buy milk", T1)
    assert [(r.text, r.due_at) for r in controller.filtered] == [("Buy milk", T1)]
    assert not controller.is_empty


def test_create_persists_and_schedules() -> None:
    kv = InMemoryKeyValueStore()
    sink = FakeSink()
    controller = build_controller(kv=kv, sink=sink)

    result = controller.create("Buy milk", T1)

    assert result.persisted and result.scheduled
    assert texts(ReminderStore(kv).load()) == ["Buy milk"]
    assert list(sink.pending.values()) == ["Buy milk"]


def test_create_rejects_empty_text() -> None:
    kv = InMemoryKeyValueStore()
    sink = FakeSink()
    controller = build_controller(kv=kv, sink=sink)
    controller.create("Keep", T1)

    with pytest.raises(ValidationError):
        controller.create("", T2)

    assert texts(controller.reminders) == ["Keep"]
    assert texts(controller.filtered) == ["Keep"]
    assert len(sink.pending) == 1


def test_create_with_non_matching_query_stays_out_of_view() -> None:
    controller = build_controller()
    controller.set_query("milk")
    controller.create("Call mom", T1)
    controller.create("Buy MILK", T2)
    assert texts(controller.reminders) == ["Call mom", "Buy MILK"]
    assert texts(controller.filtered) == ["Buy MILK"]


def test_scheduling_failure_keeps_reminder() -> None:
    kv = InMemoryKeyValueStore()
    controller = build_controller(kv=kv, sink=FakeSink(fail=True))

    result = controller.create("Buy milk", T1)

    assert result.schedule_error is not None
    assert not result.scheduled
    assert texts(controller.reminders) == ["Buy milk"]
    assert texts(controller.filtered) == ["Buy milk"]
    assert texts(ReminderStore(kv).load()) == ["Buy milk"]


def test_persist_failure_does_not_roll_back() -> None:
    controller = build_controller(kv=FailingKeyValueStore())
    result = controller.create("Buy milk", T1)
    assert not result.persisted
    assert result.scheduled
    assert texts(controller.filtered) == ["Buy milk"]


def test_delete_cascade() -> None:
    controller = build_controller()
    controller.create("x", T1)
    controller.create("y", T2)

    result = controller.remove_at(0)

    assert texts(result.removed) == ["x"]
    assert [(r.text, r.due_at) for r in controller.reminders] == [("y", T2)]
    assert [(r.text, r.due_at) for r in controller.filtered] == [("y", T2)]


def test_remove_at_out_of_range() -> None:
    controller = build_controller()
    controller.create("x", T1)
    with pytest.raises(IndexError):
        controller.remove_at(1)
    with pytest.raises(IndexError):
        controller.remove_at(-1)
    assert texts(controller.reminders) == ["x"]


def test_remove_at_removes_the_selected_duplicate() -> None:
    controller = build_controller()
    first = controller.create("Same", T1).reminder
    second = controller.create("Same", T1).reminder
    assert first == second

    controller.remove_at(1)

    assert [r.id for r in controller.reminders] == [first.id]
    assert [r.id for r in controller.filtered] == [first.id]


def test_filtered_remove_all_keeps_hidden_reminders() -> None:
    kv = InMemoryKeyValueStore()
    controller = build_controller(kv=kv)
    controller.create("apple", T1)
    controller.create("banana", T2)

    assert texts(controller.set_query("ban")) == ["banana"]
    result = controller.remove_all()

    assert texts(result.removed) == ["banana"]
    assert controller.is_empty
    assert [(r.text, r.due_at) for r in controller.reminders] == [("apple", T1)]
    assert texts(ReminderStore(kv).load()) == ["apple"]


def test_remove_all_on_empty_view_reports_nothing_to_remove() -> None:
    controller = build_controller()
    controller.create("apple", T1)
    controller.set_query("zzz")

    result = controller.remove_all()

    assert result.nothing_to_remove
    assert result.removed == []
    assert texts(controller.reminders) == ["apple"]


def test_delete_cancels_trigger() -> None:
    sink = FakeSink()
    controller = build_controller(sink=sink)
    created = controller.create("x", T1)
    controller.create("y", T2)

    controller.remove_at(0)
    assert sink.cancelled == [created.trigger.trigger_id]
    assert list(sink.pending.values()) == ["y"]

    controller.remove_all()
    assert sink.pending == {}


def test_set_query_filters_full_store_not_previous_view() -> None:
    controller = build_controller()
    controller.create("apple pie", T1)
    controller.create("banana", T2)

    controller.set_query("banana")
    assert texts(controller.set_query("a")) == ["apple pie", "banana"]
    assert texts(controller.set_query("")) == texts(controller.reminders)


def test_load_restores_persisted_state() -> None:
    kv = InMemoryKeyValueStore()
    build_controller(kv=kv).create("Buy milk", T1)

    restored = build_controller(kv=kv)

    assert texts(restored.reminders) == ["Buy milk"]
    assert texts(restored.filtered) == ["Buy milk"]


def test_rearm_only_future_reminders() -> None:
    now = datetime(2026, 6, 1, 12, 0)
    kv = InMemoryKeyValueStore({"reminders": encode([
        Reminder(text="past", due_at=now - timedelta(hours=1)),
        Reminder(text="future", due_at=now + timedelta(hours=1)),
    ])})
    sink = FakeSink()
    controller = build_controller(kv=kv, sink=sink)

    assert controller.rearm(now) == 1
    assert list(sink.pending.values()) == ["future"]


def test_create_in_the_past_is_saved_but_not_armed() -> None:
    now = datetime(2026, 6, 1, 12, 0)
    kv = InMemoryKeyValueStore()
    sink = FakeSink()
    controller = build_controller(kv=kv, sink=sink)

    result = controller.create("Too late", now - timedelta(minutes=5), now=now)

    assert result.persisted
    assert not result.scheduled
    assert result.schedule_error is None
    assert sink.pending == {}
    assert texts(ReminderStore(kv).load()) == ["Too late"]


def test_observer_called_after_create() -> None:
    observer = RecordingObserver()
    controller = build_controller(observer=observer)
    result = controller.create("Buy milk", T1)
    assert observer.created == [result.reminder]

    with pytest.raises(ValidationError):
        controller.create("", T1)
    assert len(observer.created) == 1


def test_observer_failure_does_not_fail_create() -> None:
    class BrokenObserver:
        def on_reminder_created(self, reminder: Reminder) -> None:
            raise RuntimeError("ui gone")

    controller = build_controller(observer=BrokenObserver())
    controller.create("Buy milk", T1)
    assert texts(controller.reminders) == ["Buy milk"]
