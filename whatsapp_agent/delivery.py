"""Outbound delivery with channel-sized chunking."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whatsapp_agent.whatsapp import TwilioWhatsAppClient

LOGGER = logging.getLogger(__name__)

# WhatsApp rejects bodies over 1600 characters; leave room for provider overhead.
DEFAULT_MAX_LENGTH = 1500


def split_message(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> list[str]:
    """Split text into chunks no longer than ``max_length``.

    Prefers breaking at a newline in the second half of the window, then at
    the last space, and falls back to a hard cut.
    """

    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break

        window = remaining[: max_length + 1]
        break_point = window.rfind("\n")
        if break_point == -1 or break_point < max_length / 2:
            break_point = window.rfind(" ")
        if break_point <= 0:
            break_point = max_length

        chunks.append(remaining[:break_point])
        remaining = remaining[break_point:].strip()
    return chunks


class DeliveryGateway:
    """Sends text to a recipient as one or more transport messages.

    Chunks go out in order. A failure stops the send and propagates, so
    earlier chunks may already have been delivered.
    """

    def __init__(self, transport: TwilioWhatsAppClient, max_length: int = DEFAULT_MAX_LENGTH) -> None:
        self._transport = transport
        self._max_length = max_length

    async def send(self, recipient: str, text: str) -> int:
        chunks = split_message(text, self._max_length)
        for chunk in chunks:
            await self._transport.send_message(recipient, chunk)
        LOGGER.info("Sent %d message chunk(s) to %s", len(chunks), recipient)
        return len(chunks)
