"""Reminder lifecycle and scheduling engine."""

from notif.reminders.errors import (
    ReminderError,
    ValidationError,
    PersistError,
    ScheduleError,
    SinkError,
)
from notif.reminders.store import ReminderStore
from notif.reminders.notification_dispatcher import Notification, NotificationDispatcher
from notif.reminders.notification_sink import NotificationSink, LocalNotificationSink
from notif.reminders.scheduler import NotificationScheduler
from notif.reminders.lifecycle import (
    CreateResult,
    RemovalResult,
    ReminderCreatedObserver,
    ReminderLifecycleController,
)

__all__ = [
    'ReminderError',
    'ValidationError',
    'PersistError',
    'ScheduleError',
    'SinkError',
    'ReminderStore',
    'Notification',
    'NotificationDispatcher',
    'NotificationSink',
    'LocalNotificationSink',
    'NotificationScheduler',
    'CreateResult',
    'RemovalResult',
    'ReminderCreatedObserver',
    'ReminderLifecycleController',
]
