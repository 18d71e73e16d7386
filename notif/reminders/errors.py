"""Exceptions raised by the reminder core."""


class ReminderError(Exception):
    """Base class for reminder errors."""


class ValidationError(ReminderError):
    """A create intent was rejected before any state changed."""


class PersistError(ReminderError):
    """The reminder list could not be encoded or written."""


class ScheduleError(ReminderError):
    """A notification trigger could not be registered."""

    def __init__(self, message: str, reminder_id: str = ""):
        super().__init__(message)
        self.reminder_id = reminder_id


class SinkError(ReminderError):
    """Raised by a notification sink that refuses a request."""
