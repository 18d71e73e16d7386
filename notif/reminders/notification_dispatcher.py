"""Notification dispatcher for delivering fired reminders to the user.

Fired triggers are queued here and handed to every registered channel
callback (terminal output, API capture, ...) from a background task.
"""

import asyncio
from datetime import datetime
from typing import Callable, Dict, Optional
from dataclasses import dataclass

from notif.utils.logger import log_info, log_error, log_debug, log_warning


@dataclass
class Notification:
    """A notification produced by a fired trigger."""
    trigger_id: str
    title: str
    body: str
    fire_at: datetime
    created_at: datetime

    @property
    def message(self) -> str:
        return f"{self.title}: {self.body}"

    def to_dict(self) -> Dict[str, str]:
        return {
            "trigger_id": self.trigger_id,
            "title": self.title,
            "body": self.body,
            "message": self.message,
            "fire_at": self.fire_at.isoformat(),
            "created_at": self.created_at.isoformat(),
        }


class NotificationDispatcher:
    """Delivers notifications to named channels.

    Channels are plain callables taking a :class:`Notification`. A failing
    channel is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._channels: Dict[str, Callable[[Notification], None]] = {}
        self._notification_queue: asyncio.Queue = asyncio.Queue()
        self._is_running: bool = False
        self._dispatch_task: Optional[asyncio.Task] = None

        log_debug("NotificationDispatcher initialized")

    def add_channel(self, name: str, callback: Callable[[Notification], None]) -> None:
        """Register (or replace) a delivery channel.

        Args:
            name: Channel name, e.g. "terminal"
            callback: Called with each dispatched notification
        """
        self._channels[name] = callback
        log_debug(f"Notification channel registered: {name}")

    async def start(self) -> None:
        """Start the background dispatch task."""
        if self._is_running:
            log_debug("NotificationDispatcher already running")
            return

        self._is_running = True
        self._dispatch_task = asyncio.create_task(self._dispatch_loop())
        log_info("NotificationDispatcher started")

    async def stop(self) -> None:
        """Stop dispatching, then deliver whatever is still queued."""
        if not self._is_running:
            return

        self._is_running = False
        if self._dispatch_task:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass
            self._dispatch_task = None

        await self.drain()
        log_info("NotificationDispatcher stopped")

    async def send_notification(self, notification: Notification) -> None:
        """Queue a notification for dispatch."""
        await self._notification_queue.put(notification)
        log_debug(f"Notification queued: {notification.body[:50]}")

    async def drain(self) -> int:
        """Deliver every queued notification right away.

        Returns:
            Number of notifications delivered
        """
        delivered = 0
        while True:
            try:
                notification = self._notification_queue.get_nowait()
            except asyncio.QueueEmpty:
                return delivered
            self._dispatch_to_channels(notification)
            delivered += 1

    async def _dispatch_loop(self) -> None:
        """Background task that processes the notification queue."""
        log_debug("Notification dispatch loop started")

        while self._is_running:
            try:
                try:
                    notification = await asyncio.wait_for(
                        self._notification_queue.get(),
                        timeout=1.0
                    )
                except asyncio.TimeoutError:
                    continue

                self._dispatch_to_channels(notification)

            except asyncio.CancelledError:
                log_debug("Dispatch loop cancelled")
                break
            except Exception as e:
                log_error(f"Error in dispatch loop: {e}")
                await asyncio.sleep(1)

        log_debug("Notification dispatch loop ended")

    def _dispatch_to_channels(self, notification: Notification) -> None:
        if not self._channels:
            log_warning(f"No notification channels registered for: {notification.message}")
            return

        for name, callback in list(self._channels.items()):
            try:
                callback(notification)
                log_debug(f"Notification sent to {name}: {notification.body}")
            except Exception as e:
                log_error(f"Failed to send {name} notification: {e}")

    def get_queue_size(self) -> int:
        """Number of notifications waiting to be dispatched."""
        return self._notification_queue.qsize()
