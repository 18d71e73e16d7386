"""notif: local timed reminders with one-shot notifications."""
