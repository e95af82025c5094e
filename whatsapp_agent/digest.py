"""Morning digest of today's calendar."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from whatsapp_agent.delivery import DeliveryGateway
from whatsapp_agent.google_calendar import CalendarClient, clock_time, event_start, is_all_day

LOGGER = logging.getLogger(__name__)


def format_daily_summary(events: list[dict[str, Any]], today: datetime, client: CalendarClient) -> str:
    lines = ["🌅 *Good morning!*", ""]
    if not events:
        lines.append("📅 No events scheduled for today. Enjoy your free day! 🎉")
        return "\n".join(lines)

    lines.append(f"📅 *Today's Schedule ({today:%A, %B} {today.day}, {today.year}):*")
    lines.append("")
    for index, event in enumerate(events, start=1):
        title = event.get("summary", "(no title)")
        if is_all_day(event):
            lines.append(f"{index}. 🌅 *{title}* (All day)")
        else:
            lines.append(f"{index}. ⏰ *{title}* at {clock_time(event_start(event), client.zone)}")
    lines.append("")
    lines.append("Have a productive day! 💪")
    return "\n".join(lines)


class DailySummary:
    """Sends today's schedule to the operator."""

    def __init__(self, calendar: CalendarClient, gateway: DeliveryGateway, recipient: str) -> None:
        self._calendar = calendar
        self._gateway = gateway
        self._recipient = recipient

    async def send(self) -> None:
        today = datetime.now(self._calendar.zone)
        events = await self._calendar.todays_events(today)
        await self._gateway.send(self._recipient, format_daily_summary(events, today, self._calendar))
        LOGGER.info("Daily summary sent with %d event(s)", len(events))
