"""Inbound event dispatch: transcribe, reason, persist, deliver."""

from __future__ import annotations

import logging

from whatsapp_agent.agent_runtime import AgentRuntime
from whatsapp_agent.delivery import DeliveryGateway
from whatsapp_agent.errors import TranscriptionFailure
from whatsapp_agent.models import InboundEvent
from whatsapp_agent.sessions import SessionStore
from whatsapp_agent.transcription import WhisperTranscriber

LOGGER = logging.getLogger(__name__)

AUDIO_APOLOGY = "😅 Sorry, I couldn't understand that audio. Could you try again or type your message?"
EMPTY_MESSAGE_REPLY = "I didn't catch that. Could you try again?"
GENERIC_APOLOGY = "😅 Oops! Something went wrong. Please try again in a moment."


class InboundDispatcher:
    """Processes one inbound event end to end.

    ``handle`` never raises. Every failure ends in a best-effort message to
    the sender and a log record.
    """

    def __init__(
        self,
        sessions: SessionStore,
        agent: AgentRuntime,
        gateway: DeliveryGateway,
        transcriber: WhisperTranscriber,
    ) -> None:
        self._sessions = sessions
        self._agent = agent
        self._gateway = gateway
        self._transcriber = transcriber

    async def handle(self, event: InboundEvent) -> None:
        sender = event.sender
        LOGGER.info("Message from %s", sender)

        audio = event.audio
        if audio is not None:
            try:
                text = await self._transcriber.transcribe(audio)
            except TranscriptionFailure:
                LOGGER.exception("Transcription failed for %s", sender)
                await self._notify(sender, AUDIO_APOLOGY)
                return
        else:
            text = event.text

        text = text.strip()
        if not text:
            await self._notify(sender, EMPTY_MESSAGE_REPLY)
            return

        try:
            history = self._sessions.get_history(sender)
            reply = await self._agent.reply(sender, text, history)
            self._sessions.append_turn(sender, text, reply)
            await self._gateway.send(sender, reply)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Error handling message from %s", sender)
            await self._notify(sender, GENERIC_APOLOGY)

    async def _notify(self, sender: str, text: str) -> None:
        try:
            await self._gateway.send(sender, text)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Could not deliver notice to %s", sender)
