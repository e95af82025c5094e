"""HTTP surface: Twilio webhook, liveness and cron triggers."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from whatsapp_agent.digest import DailySummary
from whatsapp_agent.dispatcher import InboundDispatcher
from whatsapp_agent.errors import Unauthorized
from whatsapp_agent.scheduler import ReminderProcessor
from whatsapp_agent.tools.registry import ToolRegistry
from whatsapp_agent.whatsapp import parse_inbound_form

LOGGER = logging.getLogger(__name__)

TWIML_ACK = "<Response></Response>"


@dataclass(slots=True)
class AppServices:
    """Everything the HTTP layer needs, built once at startup."""

    dispatcher: InboundDispatcher
    reminders: ReminderProcessor
    daily_summary: DailySummary
    tools: ToolRegistry
    cron_secret: str


async def _log_failures(label: str, work: Callable[..., Awaitable[None]], *args: Any) -> None:
    try:
        await work(*args)
    except Exception:  # noqa: BLE001
        LOGGER.exception("Background %s failed", label)


def create_app(services: AppServices, lifespan: Any = None) -> FastAPI:
    app = FastAPI(title="WhatsApp AI Agent", lifespan=lifespan)

    @app.exception_handler(Unauthorized)
    async def _unauthorized(request: Request, exc: Unauthorized) -> JSONResponse:
        LOGGER.warning("Rejected trigger call to %s", request.url.path)
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    def require_cron_secret(request: Request) -> None:
        supplied = request.headers.get("x-cron-secret") or request.query_params.get("secret") or ""
        expected = services.cron_secret
        if not expected or not hmac.compare_digest(supplied.encode(), expected.encode()):
            raise Unauthorized("Invalid cron secret")

    @app.get("/")
    async def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "message": "🤖 WhatsApp AI Agent is running",
            "tools": services.tools.list_tools(),
        }

    @app.post("/webhook/whatsapp")
    async def whatsapp_webhook(request: Request, background_tasks: BackgroundTasks) -> Response:
        # Twilio only needs a fast acknowledgement; the reply goes out via the REST API.
        try:
            form = await request.form()
            event = parse_inbound_form(form)
        except Exception:  # noqa: BLE001
            LOGGER.exception("Could not parse webhook payload")
            event = None
        if event is None:
            LOGGER.warning("Ignoring webhook call without a sender")
        else:
            background_tasks.add_task(_log_failures, "message handling", services.dispatcher.handle, event)
        return Response(content=TWIML_ACK, media_type="text/xml")

    @app.get("/webhook/whatsapp")
    async def webhook_status() -> PlainTextResponse:
        return PlainTextResponse("WhatsApp webhook is active ✓")

    cron = APIRouter(prefix="/cron", dependencies=[Depends(require_cron_secret)])

    @cron.api_route("/daily-summary", methods=["GET", "POST"])
    async def daily_summary() -> JSONResponse:
        LOGGER.info("Running daily summary")
        try:
            await services.daily_summary.send()
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Daily summary failed")
            return JSONResponse({"error": str(exc)}, status_code=500)
        return JSONResponse({"success": True, "message": "Daily summary sent"})

    @cron.api_route("/reminders", methods=["GET", "POST"])
    async def process_reminders() -> JSONResponse:
        LOGGER.info("Processing pending reminders")
        try:
            count = await services.reminders.process_due()
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Reminder processing failed")
            return JSONResponse({"error": str(exc)}, status_code=500)
        return JSONResponse({"success": True, "processed": count})

    app.include_router(cron)
    return app
