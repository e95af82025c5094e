"""Twilio WhatsApp adapter."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

import httpx

from whatsapp_agent.errors import DeliveryFailure
from whatsapp_agent.models import InboundEvent, MediaItem

LOGGER = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class TwilioWhatsAppClient:
    """Adapter around the Twilio Messages REST API."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout_seconds: float = 20.0,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._timeout_seconds = timeout_seconds

    @property
    def auth(self) -> tuple[str, str]:
        return (self._account_sid, self._auth_token)

    async def send_message(self, recipient: str, text: str) -> None:
        """Send a single WhatsApp message; the body must already fit the channel limit."""

        url = f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.post(
                    url,
                    auth=self.auth,
                    data={"From": self._from_number, "To": recipient, "Body": text},
                )
        except httpx.HTTPError as exc:
            raise DeliveryFailure(f"Twilio send to {recipient} failed: {exc}") from exc
        if response.status_code >= 400:
            raise DeliveryFailure(
                f"Twilio send to {recipient} failed (HTTP {response.status_code}): {response.text.strip()}"
            )

    async def download_media(self, url: str) -> bytes:
        """Fetch an inbound media attachment; Twilio media URLs need account auth."""

        async with httpx.AsyncClient(timeout=self._timeout_seconds, follow_redirects=True) as client:
            response = await client.get(url, auth=self.auth)
            response.raise_for_status()
            return response.content


def parse_inbound_form(form: Mapping[str, Any]) -> InboundEvent | None:
    """Normalise a Twilio webhook form into an InboundEvent.

    Returns None when the form carries no sender address.
    """
    sender = str(form.get("From") or "").strip()
    if not sender:
        return None

    try:
        media_count = int(form.get("NumMedia") or 0)
    except (TypeError, ValueError):
        media_count = 0

    media: list[MediaItem] = []
    for index in range(media_count):
        url = form.get(f"MediaUrl{index}")
        if not url:
            continue
        media.append(
            MediaItem(
                content_type=str(form.get(f"MediaContentType{index}") or "application/octet-stream"),
                url=str(url),
            )
        )

    return InboundEvent(
        sender=sender,
        text=str(form.get("Body") or ""),
        timestamp=datetime.now(timezone.utc),
        media=media,
        message_id=str(form.get("MessageSid") or "") or None,
    )
