"""Application entrypoint."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from whatsapp_agent.agent_runtime import AgentRuntime
from whatsapp_agent.config import Settings, google_service_account_info, load_settings, local_zone
from whatsapp_agent.delivery import DeliveryGateway
from whatsapp_agent.digest import DailySummary
from whatsapp_agent.dispatcher import InboundDispatcher
from whatsapp_agent.google_calendar import CalendarClient
from whatsapp_agent.llm.chat_completions import ChatCompletionsProvider
from whatsapp_agent.reminders import ReminderStore
from whatsapp_agent.scheduler import ReminderProcessor
from whatsapp_agent.server import AppServices, create_app
from whatsapp_agent.sessions import SessionStore
from whatsapp_agent.storage.base import Storage
from whatsapp_agent.storage.memory import InMemoryStorage
from whatsapp_agent.storage.sqlite import SQLiteStorage
from whatsapp_agent.tools.calendar_tool import (
    CreateCalendarEventTool,
    GetTodaysEventsTool,
    GetUpcomingEventsTool,
)
from whatsapp_agent.tools.notes_tool import GetNotesTool, SaveNoteTool
from whatsapp_agent.tools.registry import ToolRegistry
from whatsapp_agent.tools.reminder_tool import SetReminderTool
from whatsapp_agent.tools.web_search_tool import TavilySearchTool
from whatsapp_agent.transcription import WhisperTranscriber
from whatsapp_agent.whatsapp import TwilioWhatsAppClient

logging.basicConfig(level=logging.INFO)
LOGGER = logging.getLogger(__name__)


def build_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "sqlite":
        storage = SQLiteStorage(settings.database_path)
        storage.initialize()
        return storage
    return InMemoryStorage()


def build_services(settings: Settings) -> AppServices:
    """Initialize app layers from settings."""

    zone = local_zone(settings)
    storage = build_storage(settings)
    reminder_store = ReminderStore(storage, default_tz=zone)

    transport = TwilioWhatsAppClient(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_whatsapp_number,
    )
    gateway = DeliveryGateway(transport, max_length=settings.message_chunk_length)
    calendar = CalendarClient(
        service_account_info=google_service_account_info(settings),
        calendar_id=settings.google_calendar_id,
        timezone=settings.timezone,
    )

    tools = ToolRegistry()
    tools.register(CreateCalendarEventTool(calendar))
    tools.register(GetTodaysEventsTool(calendar))
    tools.register(GetUpcomingEventsTool(calendar))
    tools.register(SetReminderTool(reminder_store, display_tz=zone))
    tools.register(SaveNoteTool(storage))
    tools.register(GetNotesTool(storage, display_tz=zone))
    tools.register(TavilySearchTool(settings.tavily_api_key))

    runtime = AgentRuntime(
        llm=ChatCompletionsProvider(settings),
        tool_registry=tools,
        memory_window_messages=settings.memory_window_messages,
        request_timeout_seconds=settings.request_timeout_seconds,
        timezone_name=settings.timezone,
    )
    transcriber = WhisperTranscriber(
        transport,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.transcription_model,
    )
    dispatcher = InboundDispatcher(
        sessions=SessionStore(storage, max_history=settings.max_history_messages),
        agent=runtime,
        gateway=gateway,
        transcriber=transcriber,
    )

    return AppServices(
        dispatcher=dispatcher,
        reminders=ReminderProcessor(
            reminder_store,
            gateway,
            default_recipient=settings.operator_whatsapp_number,
            poll_interval_seconds=settings.reminder_poll_interval_seconds or 60.0,
        ),
        daily_summary=DailySummary(calendar, gateway, recipient=settings.operator_whatsapp_number),
        tools=tools,
        cron_secret=settings.cron_secret,
    )


def build_app(settings: Settings) -> FastAPI:
    services = build_services(settings)
    poll = settings.reminder_poll_interval_seconds > 0

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        poller = None
        if poll:
            poller = asyncio.create_task(services.reminders.run_forever(), name="reminder-poller")
        LOGGER.info("Available tools: %s", ", ".join(t["name"] for t in services.tools.list_tools()))
        try:
            yield
        finally:
            if poller is not None:
                services.reminders.stop()
                poller.cancel()
                with suppress(asyncio.CancelledError):
                    await poller
            LOGGER.info("Assistant shutdown complete")

    return create_app(services, lifespan=lifespan)


def main() -> None:
    """Load settings and serve the app with uvicorn."""

    settings = load_settings()
    uvicorn.run(build_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
