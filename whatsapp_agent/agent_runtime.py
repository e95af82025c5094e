"""Core agent runtime."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from whatsapp_agent.llm.base import LLMProvider
from whatsapp_agent.tools.registry import ToolRegistry

LOGGER = logging.getLogger(__name__)

FALLBACK_REPLY = "I've completed the task!"


class AgentRuntime:
    """Maps a conversation to a reply, running at most one round of tool calls."""

    def __init__(
        self,
        llm: LLMProvider,
        tool_registry: ToolRegistry,
        memory_window_messages: int,
        request_timeout_seconds: float,
        timezone_name: str = "America/New_York",
    ) -> None:
        self._llm = llm
        self._tool_registry = tool_registry
        self._memory_window_messages = memory_window_messages
        self._request_timeout_seconds = request_timeout_seconds
        self._timezone_name = timezone_name

    async def reply(self, sender: str, text: str, history: list[dict[str, str]]) -> str:
        """Return the assistant's reply to ``text`` given prior ``history``."""

        context = self._build_context(text, history)
        response = await asyncio.wait_for(
            self._llm.generate(context, tools=self._tool_registry.list_tool_specs()),
            timeout=self._request_timeout_seconds,
        )

        if response.tool_calls:
            tool_messages: list[dict[str, Any]] = []
            for tool_call in response.tool_calls:
                result = await self._tool_registry.execute(sender, tool_call.name, tool_call.arguments)
                tool_messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": tool_call.call_id,
                        "content": json.dumps(result, default=str),
                    }
                )

            assistant_message: dict[str, Any] = {
                "role": "assistant",
                "content": response.content,
                "tool_calls": [
                    {
                        "id": tc.call_id,
                        "type": "function",
                        "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)},
                    }
                    for tc in response.tool_calls
                ],
            }
            final_response = await asyncio.wait_for(
                self._llm.generate(context + [assistant_message] + tool_messages),
                timeout=self._request_timeout_seconds,
            )
            reply = final_response.content
        else:
            reply = response.content

        reply = to_whatsapp_formatting(reply or "")
        LOGGER.info("Agent reply for %s: %r", sender, reply[:100])
        return reply or FALLBACK_REPLY

    def _build_context(self, text: str, history: list[dict[str, str]]) -> list[dict[str, Any]]:
        now = datetime.now(timezone.utc)
        local_now = now.astimezone(ZoneInfo(self._timezone_name))
        system_content = (
            "You are a helpful personal assistant on WhatsApp. You help the user manage their life.\n\n"
            "You have access to various tools. Use them when appropriate. You can use multiple "
            "tools in sequence if needed.\n\n"
            "When the user asks you to do something:\n"
            "1. Figure out which tool(s) you need\n"
            "2. Call them with the right parameters\n"
            "3. Respond naturally based on the results\n\n"
            "Never claim to have set a reminder, created an event or saved a note without "
            "calling the matching tool. Be conversational, friendly, and helpful. "
            "Use emojis occasionally.\n\n"
            f"Current date/time: {now.isoformat()} ({local_now:%A, %Y-%m-%d %H:%M} local)\n"
            f"User's timezone: {self._timezone_name}"
        )
        window = [
            {"role": entry["role"], "content": entry["content"]}
            for entry in history[-self._memory_window_messages :]
            if entry.get("role") in ("user", "assistant")
        ]
        return [{"role": "system", "content": system_content}, *window, {"role": "user", "content": text}]


def to_whatsapp_formatting(text: str) -> str:
    # Code blocks
    text = re.sub(r"```(?:\w+\n)?(.*?)```", r"\1", text, flags=re.DOTALL)
    # Headers become bold lines
    text = re.sub(r"^#{1,6}\s+(.+)$", r"*\1*", text, flags=re.MULTILINE)
    # Markdown bold (**x** / __x__) to WhatsApp bold (*x*)
    text = re.sub(r"\*\*(.+?)\*\*", r"*\1*", text, flags=re.DOTALL)
    text = re.sub(r"__(.+?)__", r"*\1*", text, flags=re.DOTALL)
    # Links: [text](url) -> text (url)
    text = re.sub(r"\[(.+?)\]\((.+?)\)", r"\1 (\2)", text)
    return text.strip()
