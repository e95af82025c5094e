"""Tests for the Twilio WhatsApp adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from whatsapp_agent.errors import DeliveryFailure
from whatsapp_agent.whatsapp import TWILIO_API_BASE, TwilioWhatsAppClient, parse_inbound_form


def _mock_client(response: MagicMock | None = None, error: Exception | None = None) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        mock_client.post = AsyncMock(side_effect=error)
    else:
        mock_client.post = AsyncMock(return_value=response)
    return mock_client


def _response(status_code: int = 201, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    return resp


def _client() -> TwilioWhatsAppClient:
    return TwilioWhatsAppClient("AC123", "token", "whatsapp:+14155238886")


def test_parse_text_message():
    event = parse_inbound_form({"From": "whatsapp:+1555", "Body": "hello", "NumMedia": "0", "MessageSid": "SM1"})

    assert event is not None
    assert event.sender == "whatsapp:+1555"
    assert event.text == "hello"
    assert event.media == []
    assert event.audio is None
    assert event.message_id == "SM1"


def test_parse_voice_note():
    event = parse_inbound_form(
        {
            "From": "whatsapp:+1555",
            "Body": "",
            "NumMedia": "2",
            "MediaUrl0": "https://api.twilio.com/img",
            "MediaContentType0": "image/jpeg",
            "MediaUrl1": "https://api.twilio.com/voice",
            "MediaContentType1": "audio/ogg",
        }
    )

    assert event is not None
    assert len(event.media) == 2
    assert event.audio is not None
    assert event.audio.url == "https://api.twilio.com/voice"


def test_parse_without_sender_returns_none():
    assert parse_inbound_form({"Body": "hi"}) is None


def test_parse_tolerates_bad_media_count():
    event = parse_inbound_form({"From": "whatsapp:+1555", "NumMedia": "many"})

    assert event is not None
    assert event.text == ""
    assert event.media == []


@pytest.mark.asyncio
async def test_send_message_posts_to_messages_endpoint():
    mock_client = _mock_client(_response())

    with patch("whatsapp_agent.whatsapp.httpx.AsyncClient", return_value=mock_client):
        await _client().send_message("whatsapp:+1555", "hi there")

    args, kwargs = mock_client.post.call_args
    assert args[0] == f"{TWILIO_API_BASE}/Accounts/AC123/Messages.json"
    assert kwargs["auth"] == ("AC123", "token")
    assert kwargs["data"] == {"From": "whatsapp:+14155238886", "To": "whatsapp:+1555", "Body": "hi there"}


@pytest.mark.asyncio
async def test_send_message_rejected_by_twilio_raises():
    mock_client = _mock_client(_response(400, '{"message": "invalid To"}'))

    with patch("whatsapp_agent.whatsapp.httpx.AsyncClient", return_value=mock_client):
        with pytest.raises(DeliveryFailure, match="HTTP 400"):
            await _client().send_message("whatsapp:+1555", "hi")


@pytest.mark.asyncio
async def test_send_message_network_error_raises():
    mock_client = _mock_client(error=httpx.ConnectError("refused"))

    with patch("whatsapp_agent.whatsapp.httpx.AsyncClient", return_value=mock_client):
        with pytest.raises(DeliveryFailure):
            await _client().send_message("whatsapp:+1555", "hi")


@pytest.mark.asyncio
async def test_download_media_uses_account_auth():
    resp = MagicMock()
    resp.content = b"OggS"
    resp.raise_for_status = MagicMock()
    mock_client = _mock_client()
    mock_client.get = AsyncMock(return_value=resp)

    with patch("whatsapp_agent.whatsapp.httpx.AsyncClient", return_value=mock_client):
        data = await _client().download_media("https://api.twilio.com/voice")

    assert data == b"OggS"
    assert mock_client.get.call_args.kwargs["auth"] == ("AC123", "token")
