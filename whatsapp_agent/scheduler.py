"""Due-reminder delivery, driven by a trigger endpoint or a polling loop."""

from __future__ import annotations

import asyncio
import logging

from whatsapp_agent.delivery import DeliveryGateway
from whatsapp_agent.reminders import Clock, ReminderStore, utc_now

LOGGER = logging.getLogger(__name__)


def format_reminder(payload: str) -> str:
    return f"⏰ *Reminder:*\n\n{payload}"


class ReminderProcessor:
    """Delivers due reminders and marks them delivered."""

    def __init__(
        self,
        store: ReminderStore,
        gateway: DeliveryGateway,
        default_recipient: str,
        clock: Clock = utc_now,
        poll_interval_seconds: float = 60.0,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._default_recipient = default_recipient
        self._clock = clock
        self._poll_interval_seconds = poll_interval_seconds
        self._stop_event = asyncio.Event()
        # Ids claimed by a running process_due; overlapping runs skip them.
        self._in_flight: set[str] = set()

    async def process_due(self) -> int:
        """Deliver every due reminder; returns how many were delivered.

        A reminder whose send fails stays pending for the next run. Items
        already being sent by an overlapping run are skipped.
        """

        delivered = 0
        for item in self._store.due_items(self._clock()):
            current = self._store.get(item.id)
            if item.id in self._in_flight or current is None or current.delivered:
                continue
            self._in_flight.add(item.id)
            recipient = item.recipient or self._default_recipient
            try:
                await self._gateway.send(recipient, format_reminder(item.payload))
            except Exception:  # noqa: BLE001
                LOGGER.exception("Failed to send reminder %s", item.id)
                continue
            else:
                self._store.mark_delivered(item.id)
            finally:
                self._in_flight.discard(item.id)
            delivered += 1
            LOGGER.info("Sent reminder %s to %s", item.id, recipient)
        return delivered

    async def run_forever(self) -> None:
        """Run the polling loop until stop() is called."""

        while not self._stop_event.is_set():
            try:
                await self.process_due()
            except Exception:  # noqa: BLE001
                LOGGER.exception("Reminder poll failed")
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval_seconds)
            except asyncio.TimeoutError:
                pass

    def stop(self) -> None:
        """Signal the loop to stop."""

        self._stop_event.set()
