"""Durable, ordered reminder collection.

The whole list lives under one key of a :class:`KeyValueStore` as a JSON
array of ``{"id", "text", "date"}`` objects. There is no in-place update:
callers compute the new list and save all of it.
"""

from typing import List, Sequence

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from notif.models.reminder import Reminder
from notif.reminders.errors import PersistError
from notif.storage.kv_store import KeyValueStore
from notif.utils.logger import log_debug, log_warning


DEFAULT_KEY = "reminders"

_reminder_list = TypeAdapter(List[Reminder])


def encode(reminders: Sequence[Reminder]) -> bytes:
    """Serialize reminders to the stored JSON array."""
    return _reminder_list.dump_json(list(reminders), by_alias=True)


def decode(data: bytes) -> List[Reminder]:
    """Parse the stored JSON array.

    Records written before reminders carried an ``id`` get a fresh one.

    Raises:
        pydantic.ValidationError: If ``data`` is not a valid reminder array
    """
    return _reminder_list.validate_json(data)


class ReminderStore:
    """Load/save round-trip of the reminder list."""

    def __init__(self, kv_store: KeyValueStore, key: str = DEFAULT_KEY):
        self.kv_store = kv_store
        self.key = key

    def load(self) -> List[Reminder]:
        """Return the persisted reminders, or an empty list.

        Missing or unreadable state is not an error here.
        """
        try:
            data = self.kv_store.get(self.key)
        except (OSError, ValueError) as e:
            log_warning(f"Could not read stored reminders: {e}")
            return []

        if not data:
            log_debug("No stored reminders found")
            return []

        try:
            reminders = decode(data)
        except PydanticValidationError as e:
            log_warning(f"Stored reminders are unreadable, starting empty: {e.error_count()} error(s)")
            return []

        log_debug(f"Loaded {len(reminders)} reminder(s)")
        return reminders

    def save(self, reminders: Sequence[Reminder]) -> None:
        """Persist the full list.

        Raises:
            PersistError: If encoding or writing fails. The previously stored
                value is left as it was.
        """
        try:
            data = encode(reminders)
        except Exception as e:
            raise PersistError(f"Failed to encode reminders: {e}") from e

        try:
            self.kv_store.set(self.key, data)
        except Exception as e:
            raise PersistError(f"Failed to write reminders: {e}") from e

        log_debug(f"Saved {len(reminders)} reminder(s)")
