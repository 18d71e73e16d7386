"""Interactive terminal front-end for notif."""

import asyncio
import sys
from typing import Optional

from notif.app.reminder_app import ReminderApp
from notif.reminders.errors import ValidationError
from notif.reminders.lifecycle import ReminderLifecycleController
from notif.reminders.notification_dispatcher import Notification
from notif.utils.date_parser import format_due, parse_due_time
from notif.utils.logger import log_info, log_error


EMPTY_PLACEHOLDER = "Nothing here yet"

HELP_TEXT = """
Available commands:
  /add <when> | <text>  - Create a reminder, e.g. /add tomorrow 9am | Call mom
  /list                 - Show reminders matching the current search
  /search [query]       - Filter reminders by text (no query clears the filter)
  /delete <n>           - Delete reminder number n from the list
  /clear                - Delete every reminder currently listed
  /stats                - Show reminder statistics
  /help                 - Show this help message
  /quit                 - Exit the application
"""


def display_notification(notification: Notification):
    """Terminal channel: print a fired reminder over the input prompt."""
    print(f"\r🔔 {notification.title}: {notification.body}")
    print("You: ", end="", flush=True)


def render_view(controller: ReminderLifecycleController) -> str:
    """Render the filtered view as numbered rows."""
    if controller.is_empty:
        return EMPTY_PLACEHOLDER

    lines = []
    if controller.query:
        lines.append(f"Search: '{controller.query}'")
    for number, reminder in enumerate(controller.filtered, 1):
        lines.append(f"  {number}. {reminder.text}")
        lines.append(f"     {format_due(reminder.due_at)}")
    return "\n".join(lines)


def handle_command(controller: ReminderLifecycleController, command: str) -> Optional[str]:
    """Run one slash command against the controller.

    Returns:
        Text to show the user, or None when the command means quit
    """
    name, _, argument = command.partition(" ")
    argument = argument.strip()

    if name in ("/quit", "/exit"):
        return None

    if name == "/help":
        return HELP_TEXT

    if name == "/list":
        return render_view(controller)

    if name == "/search":
        controller.set_query(argument)
        return render_view(controller)

    if name == "/add":
        when, sep, text = argument.partition("|")
        if not sep:
            return "Usage: /add <when> | <text>"
        due_at = parse_due_time(when)
        if due_at is None:
            return f"Could not understand the time '{when.strip()}'"
        try:
            result = controller.create(text.strip(), due_at)
        except ValidationError:
            return "Reminder text must not be empty"
        reply = f"Reminder set: '{result.reminder.text}' at {format_due(result.reminder.due_at)}"
        if not result.persisted:
            reply += "\n(warning: could not save reminders to disk)"
        if result.schedule_error is not None:
            reply += "\n(warning: no notification will be shown for this reminder)"
        return reply

    if name == "/delete":
        try:
            position = int(argument)
        except ValueError:
            return "Usage: /delete <n>"
        try:
            result = controller.remove_at(position - 1)
        except IndexError:
            return f"There is no reminder number {position}"
        return f"Deleted '{result.removed[0].text}'"

    if name == "/clear":
        result = controller.remove_all()
        if result.nothing_to_remove:
            return "There are no reminders yet. Add a new reminder with /add"
        return f"Deleted {len(result.removed)} reminder(s)"

    if name == "/stats":
        stats = controller.get_stats()
        return (
            "\nReminder Statistics:\n"
            f"  Total reminders: {stats['total']}\n"
            f"  Listed: {stats['visible']}\n"
            f"  Armed notifications: {stats['armed_triggers']}\n"
        )

    return f"Unknown command: {name}\nType /help for available commands."


async def main():
    """Main application loop."""

    print("=" * 60)
    print("  notif - reminders")
    print("=" * 60)
    print()

    reminder_app = ReminderApp()
    try:
        await reminder_app.startup()
    except Exception as e:
        log_error(f"Failed to start: {e}")
        print(f"Error: {e}")
        return

    reminder_app.add_channel("terminal", display_notification)
    controller = reminder_app.controller

    print(render_view(controller))
    print("\nType /help for available commands.\n")

    try:
        while True:
            try:
                user_input = await asyncio.to_thread(input, "You: ")
                user_input = user_input.strip()

                if not user_input:
                    continue

                if not user_input.startswith("/"):
                    print("Commands start with '/'. Type /help for available commands.\n")
                    continue

                reply = handle_command(controller, user_input)
                if reply is None:
                    print("\nGoodbye! 👋")
                    break
                print(f"\n{reply}\n")

            except KeyboardInterrupt:
                print("\n\nInterrupted. Type /quit to exit gracefully.\n")
                continue

            except Exception as e:
                log_error(f"Error in command loop: {e}")
                print("\nSomething went wrong. Please try again.\n")
                continue

    finally:
        log_info("Shutting down...")
        await reminder_app.shutdown()


def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(0)


if __name__ == "__main__":
    run()
