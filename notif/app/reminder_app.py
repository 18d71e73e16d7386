"""Application wiring for programmatic access.

This module centralizes startup/shutdown of the reminder engine so it can be
reused by different front-ends (terminal loop, HTTP API, ...).
"""

from __future__ import annotations

import asyncio
from collections import deque
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional

from config.config import AppConfig, load_config
from notif.reminders.lifecycle import ReminderCreatedObserver, ReminderLifecycleController
from notif.reminders.notification_dispatcher import Notification, NotificationDispatcher
from notif.reminders.notification_sink import LocalNotificationSink
from notif.reminders.scheduler import NotificationScheduler
from notif.reminders.store import ReminderStore
from notif.storage.kv_store import FileKeyValueStore, InMemoryKeyValueStore, KeyValueStore
from notif.utils.logger import log_error, log_info, setup_logging


def build_kv_store(config: AppConfig) -> KeyValueStore:
    """Pick the key-value backend named in the storage config."""
    if config.storage.backend == "memory":
        return InMemoryKeyValueStore()
    return FileKeyValueStore(Path(config.storage.path))


class ReminderApp:
    """Coordinates the reminder engine and its background services."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        config: Optional[AppConfig] = None,
        kv_store: Optional[KeyValueStore] = None,
        observer: Optional[ReminderCreatedObserver] = None
    ) -> None:
        self._config_path = config_path
        self._config: Optional[AppConfig] = config
        self._kv_store = kv_store
        self._observer = observer

        self._dispatcher: Optional[NotificationDispatcher] = None
        self._sink: Optional[LocalNotificationSink] = None
        self._scheduler: Optional[NotificationScheduler] = None
        self._controller: Optional[ReminderLifecycleController] = None

        self._startup_lock = asyncio.Lock()
        self._is_started = False

        self._notification_queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=100)
        self._notification_history: Deque[Notification] = deque(maxlen=100)

    @property
    def config(self) -> AppConfig:
        if not self._config:
            raise RuntimeError("ReminderApp not started yet; config unavailable")
        return self._config

    @property
    def controller(self) -> ReminderLifecycleController:
        if not self._controller:
            raise RuntimeError("ReminderApp not started yet; controller unavailable")
        return self._controller

    @property
    def sink(self) -> LocalNotificationSink:
        if not self._sink:
            raise RuntimeError("ReminderApp not started yet; sink unavailable")
        return self._sink

    @property
    def is_started(self) -> bool:
        return self._is_started

    async def startup(self) -> None:
        """Load configuration, restore reminders and start background tasks."""

        async with self._startup_lock:
            if self._is_started:
                return

            if self._config is None:
                log_info("ReminderApp startup: loading configuration")
                self._config = load_config(self._config_path)
            setup_logging(self._config.logging.level, self._config.logging.show_timestamps)

            self._dispatcher = NotificationDispatcher()
            self._dispatcher.add_channel("capture", self._handle_notification)

            notifications = self._config.notifications
            self._sink = LocalNotificationSink(
                dispatcher=self._dispatcher,
                check_interval_seconds=notifications.check_interval_seconds,
                enabled=notifications.enabled,
            )
            self._scheduler = NotificationScheduler(sink=self._sink, title=notifications.title)
            self._sink.add_fired_listener(self._scheduler.mark_fired)

            store = ReminderStore(
                kv_store=self._kv_store if self._kv_store is not None else build_kv_store(self._config),
                key=self._config.storage.key,
            )
            self._controller = ReminderLifecycleController(
                store=store,
                scheduler=self._scheduler,
                observer=self._observer,
            )

            log_info("ReminderApp startup: restoring reminders")
            self._controller.load()
            if notifications.enabled:
                self._controller.rearm()

            await self._dispatcher.start()
            await self._sink.start()

            self._is_started = True
            log_info("ReminderApp startup complete")

    async def shutdown(self) -> None:
        """Stop background tasks. Pending triggers are dropped."""

        if not self._is_started:
            return

        log_info("ReminderApp shutdown: stopping services")

        if self._sink:
            try:
                await self._sink.stop()
            except Exception as exc:  # pragma: no cover - best effort cleanup
                log_error(f"Error stopping notification sink: {exc}")

        if self._dispatcher:
            try:
                await self._dispatcher.stop()
            except Exception as exc:  # pragma: no cover - best effort cleanup
                log_error(f"Error stopping NotificationDispatcher: {exc}")

        self._is_started = False
        log_info("ReminderApp shutdown complete")

    def add_channel(self, name: str, callback: Callable[[Notification], None]) -> None:
        """Deliver fired notifications to ``callback`` as well."""
        if not self._dispatcher:
            raise RuntimeError("ReminderApp not started yet; cannot add channel")
        self._dispatcher.add_channel(name, callback)

    async def get_notifications(self, *, limit: int = 20, flush: bool = True) -> List[Dict[str, Any]]:
        """Retrieve notifications fired so far.

        Args:
            limit: Maximum number of notifications to return
            flush: If True, consume pending notifications; otherwise return recent history
        """

        if flush:
            notifications: List[Dict[str, Any]] = []
            for _ in range(limit):
                try:
                    record = self._notification_queue.get_nowait()
                except asyncio.QueueEmpty:
                    break
                notifications.append(record.to_dict())

            if notifications:
                return notifications

        history_sample = list(self._notification_history)[:limit]
        return [record.to_dict() for record in history_sample]

    def get_stats(self) -> Dict[str, Any]:
        return {
            "reminders": self._controller.get_stats() if self._controller else None,
            "sink": self._sink.get_stats() if self._sink else None,
            "dispatcher": {"queue_size": self._dispatcher.get_queue_size()} if self._dispatcher else None,
        }

    def snapshot(self) -> Dict[str, Any]:
        """Return a health snapshot of the application state."""

        return {
            "is_started": self._is_started,
            "config_loaded": self._config is not None,
            **self.get_stats(),
        }

    def _handle_notification(self, notification: Notification) -> None:
        """Capture notifications delivered by the dispatcher."""

        self._notification_history.appendleft(notification)

        try:
            self._notification_queue.put_nowait(notification)
        except asyncio.QueueFull:
            # Drop the oldest pending item to make room and retry
            try:
                _ = self._notification_queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            else:
                self._notification_queue.put_nowait(notification)
