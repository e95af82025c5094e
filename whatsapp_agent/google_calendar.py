"""
Google Calendar API client.
Thin async wrapper around the synchronous google-api-python-client.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, time, timedelta
from typing import Any, Callable
from zoneinfo import ZoneInfo

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from whatsapp_agent.errors import ExternalCollaboratorFailure

LOGGER = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]

# Matches YYYY-MM-DD
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Matches HH:MM
_TIME_RE = re.compile(r"^\d{1,2}:\d{2}$")

RECURRENCE_RULES = {
    "daily": "RRULE:FREQ=DAILY",
    "weekly": "RRULE:FREQ=WEEKLY",
    "biweekly": "RRULE:FREQ=WEEKLY;INTERVAL=2",
    "monthly": "RRULE:FREQ=MONTHLY",
}


class CalendarClient:
    """Wraps Google Calendar v3 calls made as a service account."""

    def __init__(self, service_account_info: dict[str, str], calendar_id: str, timezone: str) -> None:
        self._service_account_info = service_account_info
        self._calendar_id = calendar_id
        self._timezone = timezone

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self._timezone)

    def _service(self) -> Any:
        credentials = service_account.Credentials.from_service_account_info(
            self._service_account_info, scopes=SCOPES
        )
        return build("calendar", "v3", credentials=credentials, cache_discovery=False)

    async def _call(self, action: str, fn: Callable[[], Any]) -> Any:
        try:
            return await asyncio.to_thread(fn)
        except (HttpError, GoogleAuthError, ValueError, OSError) as exc:
            # google-auth raises ValueError for malformed credentials
            LOGGER.error("Calendar %s failed: %s", action, exc)
            raise ExternalCollaboratorFailure(f"Calendar {action} failed: {exc}") from exc

    async def create_event(
        self,
        title: str,
        date_str: str,
        start_time: str,
        end_time: str,
        recurrence_type: str | None = None,
    ) -> dict[str, Any]:
        """Create an event; times are wall-clock in the configured zone."""

        if not _DATE_RE.match(date_str):
            raise ValueError(f"Invalid date format '{date_str}', expected YYYY-MM-DD")
        for value in (start_time, end_time):
            if not _TIME_RE.match(value):
                raise ValueError(f"Invalid time format '{value}', expected HH:MM")

        body: dict[str, Any] = {
            "summary": title,
            "start": {"dateTime": f"{date_str}T{start_time}:00", "timeZone": self._timezone},
            "end": {"dateTime": f"{date_str}T{end_time}:00", "timeZone": self._timezone},
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "popup", "minutes": 60},
                    {"method": "popup", "minutes": 10},
                ],
            },
        }
        if recurrence_type in RECURRENCE_RULES:
            body["recurrence"] = [RECURRENCE_RULES[recurrence_type]]

        LOGGER.info("Creating event %r on %s (%s)", title, self._calendar_id, self._timezone)
        return await self._call(
            "insert",
            lambda: self._service().events().insert(calendarId=self._calendar_id, body=body).execute(),
        )

    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        max_results: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "calendarId": self._calendar_id,
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "singleEvents": True,
            "orderBy": "startTime",
        }
        if max_results is not None:
            params["maxResults"] = max_results
        result = await self._call("list", lambda: self._service().events().list(**params).execute())
        return result.get("items", [])

    async def todays_events(self, now: datetime | None = None) -> list[dict[str, Any]]:
        """Events between local midnight and the end of today."""

        local_now = (now or datetime.now(self.zone)).astimezone(self.zone)
        start = datetime.combine(local_now.date(), time.min, tzinfo=self.zone)
        return await self.list_events(start, start + timedelta(days=1))


def event_start(event: dict[str, Any]) -> str:
    start = event.get("start", {})
    return start.get("dateTime") or start.get("date", "")


def event_end(event: dict[str, Any]) -> str:
    end = event.get("end", {})
    return end.get("dateTime") or end.get("date", "")


def is_all_day(event: dict[str, Any]) -> bool:
    return not event.get("start", {}).get("dateTime")


def clock_time(value: str, zone: ZoneInfo) -> str:
    """``2025-03-03T19:05:00-05:00`` -> ``7:05 PM`` in ``zone``."""

    local = datetime.fromisoformat(value).astimezone(zone)
    hour = local.hour % 12 or 12
    return f"{hour}:{local:%M %p}"
