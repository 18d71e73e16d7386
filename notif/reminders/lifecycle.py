"""Reminder lifecycle controller.

Owns the full reminder list and the filtered view shown to the user, and
keeps them, the persisted copy and the armed triggers in step for every
create, delete and search intent.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Protocol, Tuple

from notif.models.reminder import Reminder, TriggerHandle
from notif.reminders import filtering
from notif.reminders.errors import PersistError, ScheduleError, ValidationError
from notif.reminders.scheduler import NotificationScheduler
from notif.reminders.store import ReminderStore
from notif.utils.logger import log_info, log_error, log_debug, log_warning


class ReminderCreatedObserver(Protocol):
    """Told about every reminder once it has been created."""

    def on_reminder_created(self, reminder: Reminder) -> None:
        ...


@dataclass
class CreateResult:
    """Outcome of a create intent."""
    reminder: Reminder
    trigger: Optional[TriggerHandle] = None
    persist_error: Optional[PersistError] = None
    schedule_error: Optional[ScheduleError] = None

    @property
    def persisted(self) -> bool:
        return self.persist_error is None

    @property
    def scheduled(self) -> bool:
        return self.trigger is not None


@dataclass
class RemovalResult:
    """Outcome of a delete intent."""
    removed: List[Reminder] = field(default_factory=list)
    nothing_to_remove: bool = False
    persist_error: Optional[PersistError] = None

    @property
    def persisted(self) -> bool:
        return self.persist_error is None


class ReminderLifecycleController:
    """Single owner of the reminder list, its filtered view and triggers.

    Calls are expected from one control path at a time; nothing here locks.
    """

    def __init__(
        self,
        store: ReminderStore,
        scheduler: NotificationScheduler,
        observer: Optional[ReminderCreatedObserver] = None
    ):
        self.store = store
        self.scheduler = scheduler
        self.observer = observer

        self._reminders: List[Reminder] = []
        self._filtered: List[Reminder] = []
        self._query: str = ""

    @property
    def reminders(self) -> Tuple[Reminder, ...]:
        return tuple(self._reminders)

    @property
    def filtered(self) -> Tuple[Reminder, ...]:
        return tuple(self._filtered)

    @property
    def query(self) -> str:
        return self._query

    @property
    def is_empty(self) -> bool:
        """True when the filtered view has nothing to show."""
        return not self._filtered

    def load(self) -> List[Reminder]:
        """Replace in-memory state with the persisted reminders."""
        self._reminders = self.store.load()
        self._filtered = filtering.apply(self._reminders, self._query)
        log_info(f"Loaded {len(self._reminders)} reminder(s)")
        return list(self._reminders)

    def rearm(self, now: Optional[datetime] = None) -> int:
        """Arm triggers for loaded reminders that are still in the future.

        Returns:
            Number of triggers armed
        """
        armed = 0
        for reminder in self._reminders:
            if not _is_future(reminder.due_at, now):
                continue
            try:
                self.scheduler.schedule(reminder)
                armed += 1
            except ScheduleError as e:
                log_error(f"Could not re-arm reminder '{reminder.text}': {e}")
        if armed:
            log_info(f"Re-armed {armed} reminder trigger(s)")
        return armed

    def create(self, text: str, due_at: datetime, now: Optional[datetime] = None) -> CreateResult:
        """Add a reminder, persist the list and arm its trigger.

        A due time that is not in the future is saved but never armed.

        Raises:
            ValidationError: If ``text`` is empty. Nothing is changed.
        """
        if not text:
            raise ValidationError("Reminder text must not be empty")

        reminder = Reminder(text=text, due_at=due_at)
        self._reminders.append(reminder)
        if filtering.matches(reminder, self._query):
            self._filtered.append(reminder)

        result = CreateResult(reminder=reminder)
        result.persist_error = self._persist()

        if not _is_future(due_at, now):
            log_debug(f"Not arming '{text}', due time {due_at.isoformat()} has passed")
        else:
            try:
                result.trigger = self.scheduler.schedule(reminder)
            except ScheduleError as e:
                log_error(f"Reminder saved without notification: {e}")
                result.schedule_error = e

        if self.observer is not None:
            try:
                self.observer.on_reminder_created(reminder)
            except Exception as e:
                log_error(f"Reminder created observer failed: {e}")

        log_info(f"Created reminder '{text}' due {due_at.isoformat()}")
        return result

    def remove_all(self) -> RemovalResult:
        """Delete every reminder in the filtered view.

        Reminders hidden by the active query are kept.
        """
        if not self._filtered:
            log_debug("Remove all requested with nothing visible")
            return RemovalResult(nothing_to_remove=True)

        removed = self._filtered
        self._filtered = []
        removed_ids = {reminder.id for reminder in removed}
        self._reminders = [r for r in self._reminders if r.id not in removed_ids]

        result = RemovalResult(removed=list(removed))
        result.persist_error = self._persist()
        for reminder in removed:
            self.scheduler.cancel(reminder.id)

        log_info(f"Removed {len(removed)} reminder(s)")
        return result

    def remove_at(self, index: int) -> RemovalResult:
        """Delete the reminder at ``index`` of the filtered view.

        Raises:
            IndexError: If ``index`` is outside the filtered view
        """
        if not 0 <= index < len(self._filtered):
            raise IndexError(f"No reminder at position {index}")

        reminder = self._filtered.pop(index)
        for position, candidate in enumerate(self._reminders):
            if candidate.id == reminder.id:
                del self._reminders[position]
                break

        result = RemovalResult(removed=[reminder])
        result.persist_error = self._persist()
        self.scheduler.cancel(reminder.id)

        log_info(f"Removed reminder '{reminder.text}'")
        return result

    def set_query(self, query: str) -> List[Reminder]:
        """Filter the full reminder list by ``query``."""
        self._query = query
        self._filtered = filtering.apply(self._reminders, query)
        log_debug(f"Query '{query}' matches {len(self._filtered)} reminder(s)")
        return list(self._filtered)

    def _persist(self) -> Optional[PersistError]:
        try:
            self.store.save(self._reminders)
        except PersistError as e:
            log_warning(f"Reminders not saved: {e}")
            return e
        return None

    def get_stats(self) -> dict:
        return {
            "total": len(self._reminders),
            "visible": len(self._filtered),
            "query": self._query,
            **self.scheduler.get_stats(),
        }


def _is_future(due_at: datetime, now: Optional[datetime]) -> bool:
    if now is None:
        now = datetime.now(due_at.tzinfo) if due_at.tzinfo else datetime.now()
    elif (now.tzinfo is None) != (due_at.tzinfo is None):
        # Compare in host local time when awareness differs
        due_at = due_at.astimezone().replace(tzinfo=None) if due_at.tzinfo else due_at
        now = now.astimezone().replace(tzinfo=None) if now.tzinfo else now
    return due_at > now
