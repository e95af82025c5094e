"""Google Calendar tools."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from whatsapp_agent.google_calendar import (
    RECURRENCE_RULES,
    CalendarClient,
    clock_time,
    event_end,
    event_start,
    is_all_day,
)
from whatsapp_agent.tools.base import Tool

_UPCOMING_MAX_RESULTS = 20


class CreateCalendarEventTool(Tool):
    """Add an event, optionally recurring, to the calendar."""

    name = "create_calendar_event"
    description = (
        "Create a new event on Google Calendar. Use this when the user wants to schedule "
        "something, set up a meeting, add an appointment, or create a recurring event like a class."
    )
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "title": {
                "type": "string",
                "description": 'The title of the event (e.g. "Bachata Class", "Meeting with John").',
            },
            "date": {
                "type": "string",
                "description": "Event date as YYYY-MM-DD. For recurring events, the first occurrence.",
            },
            "startTime": {"type": "string", "description": 'Start time in 24h HH:MM (e.g. "19:00").'},
            "endTime": {"type": "string", "description": 'End time in 24h HH:MM (e.g. "21:00").'},
            "recurring": {"type": "boolean", "description": "Whether this is a recurring event."},
            "recurrenceType": {
                "type": "string",
                "enum": sorted(RECURRENCE_RULES),
                "description": "How often the event repeats.",
            },
        },
        "required": ["title", "date", "startTime", "endTime"],
        "additionalProperties": False,
    }

    def __init__(self, client: CalendarClient) -> None:
        self._client = client

    async def run(self, **kwargs: Any) -> dict[str, Any]:
        recurring = bool(kwargs.get("recurring"))
        event = await self._client.create_event(
            title=kwargs["title"],
            date_str=kwargs["date"],
            start_time=kwargs["startTime"],
            end_time=kwargs["endTime"],
            recurrence_type=kwargs.get("recurrenceType") if recurring else None,
        )
        return {
            "success": True,
            "eventId": event.get("id"),
            "title": kwargs["title"],
            "date": kwargs["date"],
            "time": f"{kwargs['startTime']} - {kwargs['endTime']}",
            "recurring": recurring,
            "timezone": self._client.zone.key,
        }


class GetTodaysEventsTool(Tool):
    """List everything on today's calendar."""

    name = "get_todays_events"
    description = (
        "Get all events scheduled for today. Use when the user asks about today's schedule, "
        "what's on their calendar today, or wants to know their agenda."
    )
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {},
        "additionalProperties": False,
    }

    def __init__(self, client: CalendarClient) -> None:
        self._client = client

    async def run(self, **kwargs: Any) -> dict[str, Any]:
        now = datetime.now(self._client.zone)
        events = await self._client.todays_events(now)
        return {
            "date": f"{now:%A, %B} {now.day}, {now.year}",
            "eventCount": len(events),
            "events": [
                {
                    "title": event.get("summary", "(no title)"),
                    "start": event_start(event),
                    "end": event_end(event),
                    "allDay": is_all_day(event),
                }
                for event in events
            ],
        }


class GetUpcomingEventsTool(Tool):
    """List events over the next few days."""

    name = "get_upcoming_events"
    description = (
        "Get upcoming events for the next few days. Use when the user asks about their week, "
        "upcoming events, or schedule for the next few days."
    )
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "days": {
                "type": "integer",
                "description": "Number of days to look ahead (default 7).",
                "default": 7,
            },
        },
        "additionalProperties": False,
    }

    def __init__(self, client: CalendarClient) -> None:
        self._client = client

    async def run(self, **kwargs: Any) -> dict[str, Any]:
        days = int(kwargs.get("days") or 7)
        zone = self._client.zone
        now = datetime.now(zone)
        events = await self._client.list_events(now, now + timedelta(days=days), max_results=_UPCOMING_MAX_RESULTS)

        summaries = []
        for event in events:
            if is_all_day(event):
                date_label, time_label = event_start(event), "All day"
            else:
                local = datetime.fromisoformat(event_start(event)).astimezone(zone)
                date_label = f"{local:%a, %b} {local.day}"
                time_label = clock_time(event_start(event), zone)
            summaries.append({"title": event.get("summary", "(no title)"), "date": date_label, "time": time_label})

        return {"period": f"Next {days} days", "eventCount": len(summaries), "events": summaries}
