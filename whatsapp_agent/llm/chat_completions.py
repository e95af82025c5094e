"""OpenAI-compatible chat completions implementation of LLMProvider."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from whatsapp_agent.config import Settings
from whatsapp_agent.errors import ExternalCollaboratorFailure
from whatsapp_agent.llm.base import LLMProvider
from whatsapp_agent.models import LLMResponse, LLMToolCall

_LOGGER = logging.getLogger(__name__)

# Waits before each retry of a rate-limited (429) request.
_RATE_LIMIT_BACKOFF_SECONDS = (5, 15, 45)


class ChatCompletionsProvider(LLMProvider):
    """Calls ``POST {OPENAI_BASE_URL}/chat/completions`` with function tools.

    Transport errors, non-2xx answers and unreadable bodies surface as
    :class:`ExternalCollaboratorFailure`.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def generate(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        body: dict[str, Any] = {
            "model": self._settings.openai_model,
            "messages": messages,
            "temperature": self._settings.llm_temperature,
        }
        if tools:
            body["tools"] = tools

        data = await self._complete(body)
        try:
            return _parse_completion(data)
        except (KeyError, IndexError, TypeError) as exc:
            raise ExternalCollaboratorFailure(f"Unexpected model response shape: {exc!r}") from exc

    async def _complete(self, body: dict[str, Any]) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._settings.openai_api_key}"}
        timeout = httpx.Timeout(self._settings.request_timeout_seconds)
        try:
            async with httpx.AsyncClient(base_url=self._settings.openai_base_url, timeout=timeout) as client:
                response = await client.post("/chat/completions", headers=headers, json=body)
                for wait in _RATE_LIMIT_BACKOFF_SECONDS:
                    if response.status_code != 429:
                        break
                    _LOGGER.warning("Model API rate limited, retrying in %ds", wait)
                    await asyncio.sleep(wait)
                    response = await client.post("/chat/completions", headers=headers, json=body)

                if response.status_code >= 400:
                    raise ExternalCollaboratorFailure(
                        f"Model API returned HTTP {response.status_code}: {response.text[:200]}"
                    )
                return response.json()
        except httpx.HTTPError as exc:
            raise ExternalCollaboratorFailure(f"Model API request failed: {exc}") from exc
        except ValueError as exc:
            raise ExternalCollaboratorFailure("Model API returned invalid JSON") from exc


def _parse_completion(data: dict[str, Any]) -> LLMResponse:
    choice = data["choices"][0]
    message = choice["message"]
    content = message.get("content") or ""
    raw_calls = message.get("tool_calls") or []
    _LOGGER.info(
        "Model finished (%s) with %d tool call(s): %r",
        choice.get("finish_reason"),
        len(raw_calls),
        content[:200],
    )

    calls = []
    for raw in raw_calls:
        function = raw.get("function") or {}
        calls.append(
            LLMToolCall(
                name=function.get("name", ""),
                arguments=_decode_arguments(function.get("arguments")),
                call_id=raw.get("id"),
            )
        )
    return LLMResponse(content=content, tool_calls=calls, raw=data)


def _decode_arguments(raw: Any) -> dict[str, Any]:
    """Tool arguments arrive as a JSON string; anything unreadable becomes ``{}``."""

    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw or "{}")
    except (TypeError, json.JSONDecodeError):
        return {}
    return parsed if isinstance(parsed, dict) else {}
