"""Core domain models used across layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class MediaItem:
    """Media attachment descriptor delivered with an inbound message."""

    content_type: str
    url: str


@dataclass(slots=True)
class InboundEvent:
    """Inbound message normalized by the transport for the dispatcher."""

    sender: str
    text: str
    timestamp: datetime
    media: list[MediaItem] = field(default_factory=list)
    message_id: str | None = None

    @property
    def audio(self) -> MediaItem | None:
        """First audio attachment, if the event carries one."""

        for item in self.media:
            if item.content_type.startswith("audio/"):
                return item
        return None


@dataclass(slots=True, frozen=True)
class ScheduledItem:
    """A stored intent to deliver a message at a future time.

    Instances are immutable snapshots; the store replaces them wholesale
    when the delivered flag flips.
    """

    id: str
    payload: str
    due_at: datetime
    created_at: datetime
    recipient: str | None = None
    delivered: bool = False


@dataclass(slots=True, frozen=True)
class Note:
    """Short note saved on behalf of a conversation."""

    id: str
    owner: str
    content: str
    created_at: datetime
    tags: tuple[str, ...] = ()


@dataclass(slots=True)
class LLMToolCall:
    """Tool invocation returned by an LLM provider."""

    name: str
    arguments: dict[str, Any]
    call_id: str | None = None


@dataclass(slots=True)
class LLMResponse:
    """Result from an LLM generation request."""

    content: str
    tool_calls: list[LLMToolCall] = field(default_factory=list)
    raw: dict[str, Any] | None = None
