"""Reminder scheduling tool."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any

from whatsapp_agent.reminders import ReminderStore
from whatsapp_agent.tools.base import Tool


def human_datetime(value: datetime, tz: tzinfo) -> str:
    """Format like ``Monday, March 3, 2025 7:05 PM``."""

    local = value.astimezone(tz)
    hour = local.hour % 12 or 12
    return f"{local:%A, %B} {local.day}, {local.year} {hour}:{local:%M %p}"


class SetReminderTool(Tool):
    """Schedule a WhatsApp message for later delivery to the requester."""

    name = "set_reminder"
    description = (
        "Set a reminder to send a WhatsApp message at a future time. Use when the user says "
        "\"remind me\", \"don't let me forget\", or wants a notification about something later. "
        "Give either a delay or a specific time; a specific time takes precedence over delays."
    )
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "message": {"type": "string", "description": "The reminder message to send."},
            "delayMinutes": {"type": "number", "description": "Minutes from now to send the reminder."},
            "delayHours": {"type": "number", "description": "Hours from now to send the reminder."},
            "delayDays": {"type": "number", "description": "Days from now to send the reminder."},
            "specificTime": {
                "type": "string",
                "description": "Specific date/time in ISO format (alternative to a delay).",
            },
        },
        "required": ["message"],
        "additionalProperties": False,
    }
    uses_sender = True

    def __init__(self, store: ReminderStore, display_tz: tzinfo) -> None:
        self._store = store
        self._display_tz = display_tz

    async def run(self, **kwargs: Any) -> dict[str, Any]:
        item = self._store.create(
            kwargs["message"],
            specific_time=kwargs.get("specificTime"),
            delay_minutes=kwargs.get("delayMinutes"),
            delay_hours=kwargs.get("delayHours"),
            delay_days=kwargs.get("delayDays"),
            recipient=kwargs.get("sender"),
        )
        return {
            "success": True,
            "reminderId": item.id,
            "message": item.payload,
            "scheduledFor": human_datetime(item.due_at, self._display_tz),
        }
