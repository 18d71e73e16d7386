"""Search filter over the reminder list."""

from typing import List, Sequence

from notif.models.reminder import Reminder


def matches(reminder: Reminder, query: str) -> bool:
    """Case-insensitive substring match of ``query`` against the text."""
    return query.lower() in reminder.text.lower()


def apply(source: Sequence[Reminder], query: str) -> List[Reminder]:
    """Return the reminders of ``source`` matching ``query``, in order.

    An empty query returns every reminder.
    """
    if not query:
        return list(source)
    return [reminder for reminder in source if matches(reminder, query)]
