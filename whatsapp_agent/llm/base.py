"""Reasoning engine seam used by the agent runtime."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from whatsapp_agent.models import LLMResponse


class LLMProvider(ABC):
    """Decides, from the conversation so far, on a final answer or tool calls."""

    @abstractmethod
    async def generate(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        """Return either reply text or the tool invocations to run next.

        ``messages`` uses chat-completions roles (system, user, assistant,
        tool). Without ``tools`` the provider must answer in text.
        """
