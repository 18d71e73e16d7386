"""Turns reminders into one-shot notification triggers.

The scheduler owns the mapping from reminder id to the trigger armed for it,
which is what makes cancelling a deleted reminder's notification possible.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import uuid4

from notif.models.reminder import CalendarFields, Reminder, TriggerHandle
from notif.reminders.errors import ScheduleError, SinkError
from notif.reminders.notification_sink import NotificationSink
from notif.utils.logger import log_info, log_error, log_debug, log_warning


DEFAULT_TITLE = "Reminder"


def to_calendar_fields(due_at: datetime) -> CalendarFields:
    """Decompose a due time to year, month, day, hour and minute."""
    return CalendarFields.from_datetime(due_at)


class NotificationScheduler:
    """Arms, tracks and cancels triggers for reminders."""

    def __init__(self, sink: Optional[NotificationSink] = None, title: str = DEFAULT_TITLE):
        """
        Args:
            sink: Default sink used when a call does not pass one
            title: Title given to every notification
        """
        self.sink = sink
        self.title = title
        self._triggers: Dict[str, TriggerHandle] = {}

    def _resolve_sink(self, sink: Optional[NotificationSink]) -> NotificationSink:
        sink = sink or self.sink
        if sink is None:
            raise ScheduleError("No notification sink configured")
        return sink

    def schedule(self, reminder: Reminder, sink: Optional[NotificationSink] = None) -> TriggerHandle:
        """Register exactly one non-repeating trigger for ``reminder``.

        A trigger already armed for the same reminder is cancelled once the
        new one is registered; if registration fails the old one stays armed.

        Raises:
            ScheduleError: If there is no sink or the sink refuses the trigger
        """
        sink = self._resolve_sink(sink)
        previous = self._triggers.get(reminder.id)

        handle = TriggerHandle(
            reminder_id=reminder.id,
            trigger_id=uuid4().hex,
            fire_at=to_calendar_fields(reminder.due_at),
        )

        try:
            sink.register(handle.trigger_id, handle.fire_at, reminder.text, self.title)
        except SinkError as e:
            raise ScheduleError(f"Sink refused trigger for '{reminder.text}': {e}", reminder.id) from e
        except Exception as e:
            raise ScheduleError(f"Failed to register trigger for '{reminder.text}': {e}", reminder.id) from e

        if previous is not None:
            self.cancel(reminder.id, sink)
        self._triggers[reminder.id] = handle
        log_info(f"Scheduled '{reminder.text}' for {handle.fire_at}")
        return handle

    def cancel(self, reminder_id: str, sink: Optional[NotificationSink] = None) -> bool:
        """Disarm the trigger tracked for ``reminder_id``.

        Returns:
            True if a tracked trigger was cancelled in the sink
        """
        handle = self._triggers.pop(reminder_id, None)
        if handle is None:
            return False

        try:
            cancelled = self._resolve_sink(sink).cancel(handle.trigger_id)
        except Exception as e:
            log_error(f"Failed to cancel trigger {handle.trigger_id}: {e}")
            return False

        if cancelled:
            log_debug(f"Cancelled trigger {handle.trigger_id} for reminder {reminder_id}")
        else:
            log_warning(f"Trigger {handle.trigger_id} was no longer pending in the sink")
        return cancelled

    def mark_fired(self, trigger_id: str) -> None:
        """Forget a trigger the sink has fired."""
        for reminder_id, handle in list(self._triggers.items()):
            if handle.trigger_id == trigger_id:
                del self._triggers[reminder_id]
                log_debug(f"Trigger {trigger_id} fired for reminder {reminder_id}")
                return

    def get_handle(self, reminder_id: str) -> Optional[TriggerHandle]:
        return self._triggers.get(reminder_id)

    def pending(self) -> List[TriggerHandle]:
        return list(self._triggers.values())

    def get_stats(self) -> Dict[str, int]:
        return {"armed_triggers": len(self._triggers)}
