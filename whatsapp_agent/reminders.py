"""Scheduled reminder storage and due-item scanning.

Due times are resolved once, at creation:

* an explicit ``specific_time`` (ISO-8601) wins whenever it is supplied,
  even if offsets are also present; naive times are read in the store's
  default time zone;
* otherwise every positive offset (minutes, hours, days) is added to the
  creation time, so ``delay_hours=2, delay_days=1`` means 26 hours;
* with neither, creation fails with :class:`InvalidSchedule`.
"""

from __future__ import annotations

import dataclasses
import logging
import secrets
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable

from whatsapp_agent.errors import InvalidSchedule
from whatsapp_agent.models import ScheduledItem
from whatsapp_agent.storage.base import ScheduledItemBackend

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_ID_ATTEMPTS = 8


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_due_at(
    now: datetime,
    specific_time: str | None = None,
    delay_minutes: float | None = None,
    delay_hours: float | None = None,
    delay_days: float | None = None,
    default_tz: tzinfo = timezone.utc,
) -> datetime:
    """Compute an absolute due time from an explicit time or offsets."""

    if specific_time is not None and specific_time.strip():
        try:
            parsed = datetime.fromisoformat(specific_time.strip())
        except ValueError as exc:
            raise InvalidSchedule(f"Could not parse reminder time {specific_time!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=default_tz)
        return parsed

    offset = timedelta()
    if delay_minutes and delay_minutes > 0:
        offset += timedelta(minutes=delay_minutes)
    if delay_hours and delay_hours > 0:
        offset += timedelta(hours=delay_hours)
    if delay_days and delay_days > 0:
        offset += timedelta(days=delay_days)
    if not offset:
        raise InvalidSchedule("A reminder needs a specific time or a positive delay")
    return now + offset


class ReminderStore:
    """Owns scheduled items; readers only ever see immutable snapshots."""

    def __init__(
        self,
        backend: ScheduledItemBackend,
        clock: Clock = utc_now,
        default_tz: tzinfo = timezone.utc,
    ) -> None:
        self._backend = backend
        self._clock = clock
        self._default_tz = default_tz

    def create(
        self,
        payload: str,
        specific_time: str | None = None,
        delay_minutes: float | None = None,
        delay_hours: float | None = None,
        delay_days: float | None = None,
        recipient: str | None = None,
    ) -> ScheduledItem:
        """Schedule ``payload`` and return the stored item."""

        now = self._clock()
        due_at = resolve_due_at(
            now,
            specific_time=specific_time,
            delay_minutes=delay_minutes,
            delay_hours=delay_hours,
            delay_days=delay_days,
            default_tz=self._default_tz,
        )
        item = ScheduledItem(
            id=self._new_id(now),
            payload=payload,
            due_at=due_at,
            created_at=now,
            recipient=recipient,
        )
        self._backend.put_item(item)
        LOGGER.info("Reminder %s scheduled for %s", item.id, due_at.isoformat())
        return item

    def get(self, item_id: str) -> ScheduledItem | None:
        return self._backend.get_item(item_id)

    def due_items(self, now: datetime) -> list[ScheduledItem]:
        """Undelivered items whose due time is at or before ``now``."""

        return [item for item in self._backend.scan_items() if not item.delivered and item.due_at <= now]

    def mark_delivered(self, item_id: str) -> None:
        """Flip the delivered flag; unknown ids and repeats are no-ops."""

        item = self._backend.get_item(item_id)
        if item is None or item.delivered:
            return
        self._backend.put_item(dataclasses.replace(item, delivered=True))

    def _new_id(self, now: datetime) -> str:
        millis = int(now.timestamp() * 1000)
        for _ in range(_ID_ATTEMPTS):
            candidate = f"rem_{millis}_{secrets.token_hex(4)}"
            if self._backend.get_item(candidate) is None:
                return candidate
        raise RuntimeError("Could not allocate a unique reminder id")
