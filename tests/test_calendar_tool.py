"""Tests for the calendar client, calendar tools and the daily digest."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

import pytest
from googleapiclient.errors import HttpError

from whatsapp_agent.digest import DailySummary, format_daily_summary
from whatsapp_agent.errors import ExternalCollaboratorFailure
from whatsapp_agent.google_calendar import CalendarClient
from whatsapp_agent.tools.calendar_tool import (
    CreateCalendarEventTool,
    GetTodaysEventsTool,
    GetUpcomingEventsTool,
)

ZONE = "America/New_York"


def _client() -> CalendarClient:
    return CalendarClient(service_account_info={}, calendar_id="primary", timezone=ZONE)


def _timed(title: str, start: str, end: str) -> dict:
    return {"summary": title, "start": {"dateTime": start}, "end": {"dateTime": end}}


def _all_day(title: str, day: str) -> dict:
    return {"summary": title, "start": {"date": day}, "end": {"date": day}}


def _service_with(execute_result: dict) -> MagicMock:
    service = MagicMock()
    service.events.return_value.insert.return_value.execute.return_value = execute_result
    service.events.return_value.list.return_value.execute.return_value = execute_result
    return service


@pytest.mark.asyncio
async def test_create_event_builds_recurring_body():
    client = _client()
    service = _service_with({"id": "evt-1"})

    with patch.object(CalendarClient, "_service", return_value=service):
        result = await CreateCalendarEventTool(client).run(
            title="Bachata Class",
            date="2025-03-04",
            startTime="19:00",
            endTime="21:00",
            recurring=True,
            recurrenceType="weekly",
        )

    body = service.events.return_value.insert.call_args.kwargs["body"]
    assert body["start"] == {"dateTime": "2025-03-04T19:00:00", "timeZone": ZONE}
    assert body["end"] == {"dateTime": "2025-03-04T21:00:00", "timeZone": ZONE}
    assert body["recurrence"] == ["RRULE:FREQ=WEEKLY"]
    assert [o["minutes"] for o in body["reminders"]["overrides"]] == [60, 10]
    assert result == {
        "success": True,
        "eventId": "evt-1",
        "title": "Bachata Class",
        "date": "2025-03-04",
        "time": "19:00 - 21:00",
        "recurring": True,
        "timezone": ZONE,
    }


@pytest.mark.asyncio
async def test_create_event_rejects_bad_date():
    with pytest.raises(ValueError):
        await _client().create_event("x", "03/04/2025", "19:00", "20:00")


@pytest.mark.asyncio
async def test_api_errors_become_collaborator_failures():
    service = MagicMock()
    service.events.return_value.list.return_value.execute.side_effect = HttpError(
        MagicMock(status=403, reason="Forbidden"), b"{}"
    )
    with patch.object(CalendarClient, "_service", return_value=service):
        with pytest.raises(ExternalCollaboratorFailure):
            await _client().todays_events()


@pytest.mark.asyncio
async def test_todays_events_spans_local_day():
    service = _service_with({"items": []})
    now = datetime(2025, 3, 4, 15, 0, tzinfo=ZoneInfo(ZONE))

    with patch.object(CalendarClient, "_service", return_value=service):
        await _client().todays_events(now)

    params = service.events.return_value.list.call_args.kwargs
    assert params["timeMin"] == "2025-03-04T00:00:00-05:00"
    assert params["timeMax"] == "2025-03-05T00:00:00-05:00"
    assert params["singleEvents"] is True


@pytest.mark.asyncio
async def test_get_todays_events_shapes_output():
    client = _client()
    client.todays_events = AsyncMock(
        return_value=[
            _timed("Standup", "2025-03-04T09:00:00-05:00", "2025-03-04T09:15:00-05:00"),
            _all_day("Holiday", "2025-03-04"),
        ]
    )

    result = await GetTodaysEventsTool(client).run()

    assert result["eventCount"] == 2
    assert result["events"][0] == {
        "title": "Standup",
        "start": "2025-03-04T09:00:00-05:00",
        "end": "2025-03-04T09:15:00-05:00",
        "allDay": False,
    }
    assert result["events"][1]["allDay"] is True


@pytest.mark.asyncio
async def test_get_upcoming_events_formats_dates_and_times():
    client = _client()
    client.list_events = AsyncMock(
        return_value=[
            _timed("Dinner", "2025-03-05T00:30:00+00:00", "2025-03-05T02:00:00+00:00"),
            _all_day("Trip", "2025-03-07"),
        ]
    )

    result = await GetUpcomingEventsTool(client).run(days=3)

    assert result["period"] == "Next 3 days"
    assert result["events"] == [
        {"title": "Dinner", "date": "Tue, Mar 4", "time": "7:30 PM"},
        {"title": "Trip", "date": "2025-03-07", "time": "All day"},
    ]
    assert client.list_events.call_args.kwargs["max_results"] == 20


def test_daily_summary_lists_events():
    today = datetime(2025, 3, 4, 7, 0, tzinfo=ZoneInfo(ZONE))
    events = [
        _all_day("Holiday", "2025-03-04"),
        _timed("Standup", "2025-03-04T14:00:00+00:00", "2025-03-04T14:15:00+00:00"),
    ]

    text = format_daily_summary(events, today, _client())

    assert text.startswith("🌅 *Good morning!*")
    assert "Today's Schedule (Tuesday, March 4, 2025)" in text
    assert "1. 🌅 *Holiday* (All day)" in text
    assert "2. ⏰ *Standup* at 9:00 AM" in text


def test_daily_summary_without_events():
    text = format_daily_summary([], datetime(2025, 3, 4, tzinfo=timezone.utc), _client())

    assert "No events scheduled for today" in text


@pytest.mark.asyncio
async def test_daily_summary_sends_to_operator():
    client = _client()
    client.todays_events = AsyncMock(return_value=[])
    gateway = MagicMock()
    gateway.send = AsyncMock(return_value=1)

    await DailySummary(client, gateway, recipient="whatsapp:+1999").send()

    recipient, text = gateway.send.call_args.args
    assert recipient == "whatsapp:+1999"
    assert "Good morning" in text
