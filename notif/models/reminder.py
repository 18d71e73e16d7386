"""Data models for reminders and their scheduled triggers."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_reminder_id() -> str:
    """Return a fresh opaque reminder identifier."""
    return uuid4().hex


class Reminder(BaseModel):
    """A short text bound to a due time.

    Two reminders are equal when their ``text`` and ``due_at`` match, which is
    what deduplication and display care about. ``id`` is what the lifecycle
    controller uses to tell apart entries that compare equal.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_reminder_id, description="Opaque identifier assigned at creation")
    text: str = Field(description="Human readable reminder text")
    due_at: datetime = Field(alias="date", description="When the reminder is due")

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Reminder):
            return NotImplemented
        return self.text == other.text and self.due_at == other.due_at

    def __hash__(self) -> int:
        return hash((self.text, self.due_at))

    def to_dict(self) -> dict:
        """Serialize using the stored field names (``date`` for the due time)."""
        return self.model_dump(mode="json", by_alias=True)


class CalendarFields(BaseModel):
    """Calendar decomposition of a due time, down to the minute."""
    model_config = ConfigDict(frozen=True)

    year: int
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)

    @classmethod
    def from_datetime(cls, value: datetime) -> "CalendarFields":
        """Decompose ``value`` in host local time; seconds are dropped."""
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return cls(
            year=value.year,
            month=value.month,
            day=value.day,
            hour=value.hour,
            minute=value.minute,
        )

    def to_datetime(self) -> datetime:
        """Rebuild a naive local datetime at second zero."""
        return datetime(self.year, self.month, self.day, self.hour, self.minute)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d} {self.hour:02d}:{self.minute:02d}"


class TriggerHandle(BaseModel):
    """A one-shot trigger armed for a reminder."""
    model_config = ConfigDict(frozen=True)

    reminder_id: str = Field(description="Reminder this trigger belongs to")
    trigger_id: str = Field(description="Identifier the sink knows the trigger by")
    fire_at: CalendarFields = Field(description="Calendar time the trigger fires at")
    repeats: bool = Field(default=False, description="Always False, reminders are one-shot")
    registered_at: datetime = Field(default_factory=datetime.now)
