from __future__ import annotations

from datetime import datetime, timedelta

from fastapi.testclient import TestClient

from config.config import AppConfig, NotificationsConfig, StorageConfig
from notif.api.server import create_app
from notif.app.reminder_app import ReminderApp
from notif.reminders.store import ReminderStore
from notif.storage.kv_store import InMemoryKeyValueStore


def build_test_client(kv: InMemoryKeyValueStore | None = None, notifications_enabled: bool = True) -> TestClient:
    config = AppConfig(
        storage=StorageConfig(backend="memory"),
        notifications=NotificationsConfig(enabled=notifications_enabled, check_interval_seconds=60),
    )
    reminder_app = ReminderApp(config=config, kv_store=kv or InMemoryKeyValueStore())
    return TestClient(create_app(reminder_app))


def future(hours: int = 1) -> str:
    return (datetime.now() + timedelta(hours=hours)).replace(microsecond=0).isoformat()


def test_create_and_list_reminders() -> None:
    with build_test_client() as client:
        resp = client.post("/reminders", json={"text": "Buy milk", "date": future()})
        assert resp.status_code == 201
        body = resp.json()
        assert body["reminder"]["text"] == "Buy milk"
        assert body["persisted"] is True
        assert body["scheduled"] is True

        listing = client.get("/reminders").json()
        assert listing["is_empty"] is False
        assert [r["text"] for r in listing["reminders"]] == ["Buy milk"]


def test_empty_text_is_rejected() -> None:
    with build_test_client() as client:
        resp = client.post("/reminders", json={"text": "", "date": future()})
        assert resp.status_code == 422
        assert client.get("/reminders").json()["is_empty"] is True


def test_scheduling_disabled_still_creates() -> None:
    with build_test_client(notifications_enabled=False) as client:
        resp = client.post("/reminders", json={"text": "Buy milk", "date": future()})
        assert resp.status_code == 201
        assert resp.json()["scheduled"] is False
        assert resp.json()["warnings"]
        assert len(client.get("/reminders").json()["reminders"]) == 1


def test_query_and_remove_all() -> None:
    kv = InMemoryKeyValueStore()
    with build_test_client(kv) as client:
        client.post("/reminders", json={"text": "apple", "date": future(1)})
        client.post("/reminders", json={"text": "banana", "date": future(2)})

        view = client.put("/query", json={"query": "BAN"}).json()
        assert view["query"] == "BAN"
        assert [r["text"] for r in view["reminders"]] == ["banana"]

        removed = client.delete("/reminders").json()
        assert [r["text"] for r in removed["removed"]] == ["banana"]
        assert removed["nothing_to_remove"] is False

        again = client.delete("/reminders").json()
        assert again["nothing_to_remove"] is True

    assert [r.text for r in ReminderStore(kv).load()] == ["apple"]


def test_remove_by_index() -> None:
    with build_test_client() as client:
        client.post("/reminders", json={"text": "x", "date": future(1)})
        client.post("/reminders", json={"text": "y", "date": future(2)})

        resp = client.delete("/reminders/0")
        assert resp.status_code == 200
        assert [r["text"] for r in resp.json()["removed"]] == ["x"]

        assert client.delete("/reminders/5").status_code == 404
        assert [r["text"] for r in client.get("/reminders").json()["reminders"]] == ["y"]


def test_reminders_survive_restart() -> None:
    kv = InMemoryKeyValueStore()
    with build_test_client(kv) as client:
        client.post("/reminders", json={"text": "Persist me", "date": future()})

    with build_test_client(kv) as client:
        listing = client.get("/reminders").json()
        assert [r["text"] for r in listing["reminders"]] == ["Persist me"]
        health = client.get("/health").json()
        assert health["reminders"]["armed_triggers"] == 1


def test_notifications_endpoint_starts_empty() -> None:
    with build_test_client() as client:
        resp = client.get("/notifications")
        assert resp.status_code == 200
        assert resp.json() == {"notifications": []}


def test_health_endpoint_returns_snapshot() -> None:
    with build_test_client() as client:
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["is_started"] is True
        assert data["config_loaded"] is True
