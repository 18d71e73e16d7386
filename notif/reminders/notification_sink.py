"""Notification sinks: where armed triggers wait until they fire.

The core only talks to the :class:`NotificationSink` protocol. The bundled
:class:`LocalNotificationSink` keeps triggers in memory and polls for due
ones from a background asyncio task, much like an OS notification centre
would, but scoped to the running process.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional, Protocol, Set, runtime_checkable

from notif.models.reminder import CalendarFields
from notif.reminders.errors import SinkError
from notif.reminders.notification_dispatcher import Notification, NotificationDispatcher
from notif.utils.logger import log_info, log_error, log_debug


@runtime_checkable
class NotificationSink(Protocol):
    """What the scheduler needs from a notification backend."""

    def register(self, trigger_id: str, fire_at: CalendarFields, body: str, title: str) -> None:
        """Arm a one-shot trigger. Raises SinkError when refused."""
        ...

    def cancel(self, trigger_id: str) -> bool:
        """Disarm a trigger. Returns False if it was not pending."""
        ...


@dataclass
class PendingTrigger:
    """A trigger registered with the local sink."""
    trigger_id: str
    fire_at: CalendarFields
    body: str
    title: str

    def is_due(self, now: datetime) -> bool:
        return self.fire_at.to_datetime() <= now


class LocalNotificationSink:
    """In-process sink that fires each registered trigger at most once.

    A trigger leaves the pending set before it is dispatched and its id is
    remembered, so repeated checks and re-registration can never fire it
    twice. Only the most recent ``max_fired`` ids are kept; trigger ids are
    random, so an evicted id is not expected to come back.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        check_interval_seconds: int = 30,
        enabled: bool = True,
        max_fired: int = 1000
    ):
        self.dispatcher = dispatcher
        self.check_interval = check_interval_seconds
        self.enabled = enabled

        self._pending: Dict[str, PendingTrigger] = {}
        self._fired: Set[str] = set()
        self._fired_order: Deque[str] = deque()
        self._max_fired = max_fired
        self._fired_count = 0
        self._fired_listeners: List[Callable[[str], None]] = []

        self._is_running: bool = False
        self._monitor_task: Optional[asyncio.Task] = None

        log_debug(f"LocalNotificationSink initialized, check interval: {check_interval_seconds}s")

    def register(self, trigger_id: str, fire_at: CalendarFields, body: str, title: str) -> None:
        if not self.enabled:
            raise SinkError("Notifications are disabled")
        if trigger_id in self._pending or trigger_id in self._fired:
            raise SinkError(f"Trigger already registered: {trigger_id}")

        self._pending[trigger_id] = PendingTrigger(
            trigger_id=trigger_id,
            fire_at=fire_at,
            body=body,
            title=title,
        )
        log_debug(f"Trigger {trigger_id} armed for {fire_at}")

    def cancel(self, trigger_id: str) -> bool:
        trigger = self._pending.pop(trigger_id, None)
        if trigger is None:
            return False
        log_debug(f"Trigger {trigger_id} cancelled")
        return True

    def add_fired_listener(self, listener: Callable[[str], None]) -> None:
        """Call ``listener(trigger_id)`` after each trigger fires."""
        self._fired_listeners.append(listener)

    def is_pending(self, trigger_id: str) -> bool:
        return trigger_id in self._pending

    def has_fired(self, trigger_id: str) -> bool:
        return trigger_id in self._fired

    async def fire_due(self, now: Optional[datetime] = None) -> List[str]:
        """Fire every pending trigger whose time has come.

        Args:
            now: Reference time, defaults to the host clock

        Returns:
            Ids of the triggers fired by this call
        """
        now = now or datetime.now()
        due = [trigger for trigger in self._pending.values() if trigger.is_due(now)]

        fired = []
        for trigger in due:
            # Claim the trigger before anything can await
            if self._pending.pop(trigger.trigger_id, None) is None:
                continue
            self._remember_fired(trigger.trigger_id)

            log_info(f"Firing reminder: '{trigger.body}'")
            await self.dispatcher.send_notification(Notification(
                trigger_id=trigger.trigger_id,
                title=trigger.title,
                body=trigger.body,
                fire_at=trigger.fire_at.to_datetime(),
                created_at=datetime.now(),
            ))
            fired.append(trigger.trigger_id)

            for listener in self._fired_listeners:
                try:
                    listener(trigger.trigger_id)
                except Exception as e:
                    log_error(f"Fired listener failed for {trigger.trigger_id}: {e}")

        return fired

    def _remember_fired(self, trigger_id: str) -> None:
        self._fired.add(trigger_id)
        self._fired_order.append(trigger_id)
        self._fired_count += 1
        while len(self._fired_order) > self._max_fired:
            self._fired.discard(self._fired_order.popleft())

    async def start(self) -> None:
        """Start the background due-check loop."""
        if self._is_running:
            log_debug("LocalNotificationSink already running")
            return

        self._is_running = True
        self._monitor_task = asyncio.create_task(self._monitor_loop())
        log_info("LocalNotificationSink started")

    async def stop(self) -> None:
        if not self._is_running:
            return

        self._is_running = False
        if self._monitor_task:
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
            self._monitor_task = None

        log_info("LocalNotificationSink stopped")

    async def _monitor_loop(self) -> None:
        log_debug("Sink monitor loop started")

        while self._is_running:
            try:
                await self.fire_due()
                await asyncio.sleep(self.check_interval)

            except asyncio.CancelledError:
                log_debug("Sink monitor loop cancelled")
                break
            except Exception as e:
                log_error(f"Error in sink monitor loop: {e}")
                await asyncio.sleep(self.check_interval)

        log_debug("Sink monitor loop ended")

    def get_stats(self) -> Dict[str, int]:
        return {
            "pending": len(self._pending),
            "fired": self._fired_count,
            "is_running": int(self._is_running),
            "enabled": int(self.enabled),
        }
