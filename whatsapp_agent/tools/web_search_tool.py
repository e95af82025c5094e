"""Tavily web search tool."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from whatsapp_agent.errors import ExternalCollaboratorFailure
from whatsapp_agent.tools.base import Tool

LOGGER = logging.getLogger(__name__)

TAVILY_URL = "https://api.tavily.com/search"
_MAX_RESULTS = 5
_RETURNED_RESULTS = 3
_SNIPPET_LENGTH = 200


class TavilySearchTool(Tool):
    """Search the web using the Tavily API."""

    name = "web_search"
    description = (
        "Search the internet for current information. Use when the user asks about news, facts, "
        "current events, or anything you don't know from your training data. Also use for "
        "looking up businesses, restaurants, reviews, etc."
    )
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "The search query."},
        },
        "required": ["query"],
        "additionalProperties": False,
    }

    def __init__(self, api_key: str | None, timeout_seconds: float = 15.0) -> None:
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    async def run(self, **kwargs: Any) -> dict[str, Any]:
        if not self._api_key:
            LOGGER.warning("Web search disabled: no TAVILY_API_KEY")
            return {
                "success": False,
                "error": "Web search is not configured. Add TAVILY_API_KEY to enable.",
            }

        query = str(kwargs["query"]).strip()
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(
                    TAVILY_URL,
                    json={
                        "api_key": self._api_key,
                        "query": query,
                        "search_depth": "basic",
                        "include_answer": True,
                        "max_results": _MAX_RESULTS,
                    },
                    timeout=self._timeout_seconds,
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ExternalCollaboratorFailure("Failed to search the web") from exc

        results = [
            {
                "title": item.get("title"),
                "snippet": (item.get("content") or "")[:_SNIPPET_LENGTH],
                "url": item.get("url"),
            }
            for item in (data.get("results") or [])[:_RETURNED_RESULTS]
        ]
        return {"success": True, "answer": data.get("answer"), "results": results}
