"""Date and time parsing for reminder due times typed at the terminal.

Turns phrases like "in 10 minutes", "tomorrow 9am" or "2026-01-05 14:30"
into datetimes, and formats due times for display.
"""

from datetime import datetime, timedelta
from typing import Optional
from dateutil import parser as dateutil_parser
from dateutil.relativedelta import relativedelta
import re

from notif.utils.logger import log_debug


DISPLAY_FORMAT = "%d-%m-%Y %H:%M"

_RELATIVE = re.compile(
    r"^in\s+(\d+)\s+(minute|minutes|min|mins|hour|hours|hr|hrs|day|days|week|weeks|month|months)$"
)
_DAY_WORD = re.compile(r"^(today|tomorrow)\b\s*(.*)$")


def parse_relative(text: str, reference_date: datetime) -> Optional[datetime]:
    """Parse "in N <unit>" phrases.

    Returns:
        The shifted datetime, or None if ``text`` is not a relative phrase
    """
    match = _RELATIVE.match(text)
    if not match:
        return None

    amount = int(match.group(1))
    unit = match.group(2)

    if unit.startswith("min"):
        return reference_date + timedelta(minutes=amount)
    if unit.startswith("h"):
        return reference_date + timedelta(hours=amount)
    if unit.startswith("day"):
        return reference_date + timedelta(days=amount)
    if unit.startswith("week"):
        return reference_date + timedelta(weeks=amount)
    return reference_date + relativedelta(months=amount)


def parse_due_time(text: str, reference_date: Optional[datetime] = None) -> Optional[datetime]:
    """Parse a due time phrase into a datetime.

    Supports formats like:
    - "in 10 minutes", "in 2 hours", "in 3 days"
    - "today 18:00", "tomorrow 9am", "tomorrow"
    - "2026-01-05 14:30", "Jan 5 2026 2pm"

    Args:
        text: Due time phrase
        reference_date: Reference for relative phrases (defaults to now)

    Returns:
        Parsed datetime with seconds cleared, or None if parsing fails
    """
    if not text or not text.strip():
        return None

    text = text.lower().strip()
    ref_date = reference_date or datetime.now()

    relative = parse_relative(text, ref_date)
    if relative is not None:
        log_debug(f"Parsed '{text}' as {relative}")
        return relative.replace(microsecond=0)

    day_match = _DAY_WORD.match(text)
    if day_match:
        base = ref_date if day_match.group(1) == "today" else ref_date + timedelta(days=1)
        rest = day_match.group(2).strip()
        if not rest:
            return base.replace(microsecond=0)
        text = rest
        ref_date = base

    try:
        parsed = dateutil_parser.parse(text, default=ref_date.replace(second=0, microsecond=0))
    except (ValueError, OverflowError) as e:
        log_debug(f"Failed to parse due time '{text}': {e}")
        return None

    result = parsed.replace(second=0, microsecond=0)
    log_debug(f"Parsed '{text}' as {result}")
    return result


def format_due(dt: datetime) -> str:
    """Format a due time for display (dd-mm-yyyy HH:MM)."""
    return dt.strftime(DISPLAY_FORMAT)
