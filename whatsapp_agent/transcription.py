"""Voice-note transcription via the OpenAI audio API."""

from __future__ import annotations

import logging

import httpx

from whatsapp_agent.errors import TranscriptionFailure
from whatsapp_agent.models import MediaItem
from whatsapp_agent.whatsapp import TwilioWhatsAppClient

LOGGER = logging.getLogger(__name__)

_EXTENSIONS = {
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
    "audio/amr": "amr",
    "audio/wav": "wav",
    "audio/webm": "webm",
}


class WhisperTranscriber:
    """Downloads audio from the transport and transcribes it with Whisper."""

    def __init__(
        self,
        transport: TwilioWhatsAppClient,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "whisper-1",
        timeout_seconds: float = 60.0,
    ) -> None:
        self._transport = transport
        self._api_key = api_key
        self._base_url = base_url
        self._model = model
        self._timeout_seconds = timeout_seconds

    async def transcribe(self, media: MediaItem) -> str:
        try:
            audio = await self._transport.download_media(media.url)
        except httpx.HTTPError as exc:
            raise TranscriptionFailure(f"Failed to download audio: {exc}") from exc
        LOGGER.info("Downloaded audio (%d bytes, %s)", len(audio), media.content_type)

        content_type = media.content_type.split(";")[0].strip()
        filename = f"audio.{_EXTENSIONS.get(content_type, 'ogg')}"
        try:
            async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout_seconds) as client:
                response = await client.post(
                    "/audio/transcriptions",
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    data={"model": self._model},
                    files={"file": (filename, audio, content_type)},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TranscriptionFailure(f"Transcription request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise TranscriptionFailure(f"Unexpected transcription response: {type(data).__name__}")
        text = str(data.get("text") or "")
        LOGGER.info("Transcribed audio: %r", text[:200])
        return text
