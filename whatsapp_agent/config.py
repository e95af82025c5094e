"""Application configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings validated at startup."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    openai_api_key: str = Field(..., alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o", alias="OPENAI_MODEL")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    llm_temperature: float = Field(default=0.7, alias="LLM_TEMPERATURE")
    transcription_model: str = Field(default="whisper-1", alias="TRANSCRIPTION_MODEL")

    twilio_account_sid: str = Field(..., alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: str = Field(..., alias="TWILIO_AUTH_TOKEN")
    # Sender address, e.g. whatsapp:+14155238886
    twilio_whatsapp_number: str = Field(..., alias="TWILIO_WHATSAPP_NUMBER")
    operator_whatsapp_number: str = Field(..., alias="YOUR_WHATSAPP_NUMBER")

    google_project_id: str = Field(default="", alias="GOOGLE_PROJECT_ID")
    google_private_key_id: str = Field(default="", alias="GOOGLE_PRIVATE_KEY_ID")
    google_private_key: str = Field(default="", alias="GOOGLE_PRIVATE_KEY")
    google_client_email: str = Field(default="", alias="GOOGLE_CLIENT_EMAIL")
    google_client_id: str = Field(default="", alias="GOOGLE_CLIENT_ID")
    google_calendar_id: str = Field(default="primary", alias="GOOGLE_CALENDAR_ID")

    tavily_api_key: str | None = Field(default=None, alias="TAVILY_API_KEY")

    cron_secret: str = Field(default="", alias="CRON_SECRET")
    timezone: str = Field(default="America/New_York", alias="TIMEZONE")

    storage_backend: Literal["memory", "sqlite"] = Field(default="memory", alias="STORAGE_BACKEND")
    database_path: Path = Field(default=Path("whatsapp_agent.db"), alias="DATABASE_PATH")

    max_history_messages: int = Field(default=20, alias="MAX_HISTORY_MESSAGES")
    memory_window_messages: int = Field(default=10, alias="MEMORY_WINDOW_MESSAGES")
    message_chunk_length: int = Field(default=1500, alias="MESSAGE_CHUNK_LENGTH")
    request_timeout_seconds: float = Field(default=30.0, alias="REQUEST_TIMEOUT_SECONDS")
    # 0 disables the in-process poller; the /cron/reminders trigger always works.
    reminder_poll_interval_seconds: float = Field(default=0.0, alias="REMINDER_POLL_INTERVAL_SECONDS")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")


def load_settings() -> Settings:
    """Load and validate settings."""

    return Settings()


def local_zone(settings: Settings) -> ZoneInfo:
    return ZoneInfo(settings.timezone)


def google_service_account_info(settings: Settings) -> dict[str, str]:
    """Build the service-account mapping expected by google-auth.

    Private keys pasted into env files usually carry literal ``\\n`` escapes.
    """
    return {
        "type": "service_account",
        "project_id": settings.google_project_id,
        "private_key_id": settings.google_private_key_id,
        "private_key": settings.google_private_key.replace("\\n", "\n"),
        "client_email": settings.google_client_email,
        "client_id": settings.google_client_id,
        "token_uri": "https://oauth2.googleapis.com/token",
    }
