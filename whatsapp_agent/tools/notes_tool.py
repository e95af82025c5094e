"""Simple notes tools."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone, tzinfo
from typing import Any

from whatsapp_agent.models import Note
from whatsapp_agent.storage.base import NoteBackend
from whatsapp_agent.tools.base import Tool

_PREVIEW_LENGTH = 100


class SaveNoteTool(Tool):
    """Persist a note in the sender's namespace."""

    name = "save_note"
    description = (
        "Save a quick note or piece of information for later. Use when the user says "
        "\"remember this\", \"note that\", \"save this\", or wants to jot something down."
    )
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "content": {"type": "string", "description": "The note content to save."},
            "tags": {
                "type": "array",
                "items": {"type": "string"},
                "description": 'Optional tags to categorize the note (e.g. ["shopping", "urgent"]).',
            },
        },
        "required": ["content"],
        "additionalProperties": False,
    }
    uses_sender = True

    def __init__(self, backend: NoteBackend) -> None:
        self._backend = backend

    async def run(self, **kwargs: Any) -> dict[str, Any]:
        content: str = kwargs["content"]
        tags = tuple(str(tag).strip().lower() for tag in kwargs.get("tags") or [] if str(tag).strip())
        now = datetime.now(timezone.utc)
        note = Note(
            id=f"note_{int(now.timestamp() * 1000)}_{secrets.token_hex(4)}",
            owner=kwargs["sender"],
            content=content,
            tags=tags,
            created_at=now,
        )
        self._backend.add_note(note)

        preview = content[:_PREVIEW_LENGTH] + ("..." if len(content) > _PREVIEW_LENGTH else "")
        return {"success": True, "noteId": note.id, "content": preview, "tags": list(tags)}


class GetNotesTool(Tool):
    """List saved notes for the sender, newest first."""

    name = "get_notes"
    description = (
        "Retrieve saved notes. Use when the user asks about their notes, wants to recall "
        "something they saved, or asks \"what did I note about X\"."
    )
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "tag": {"type": "string", "description": "Filter notes by this tag."},
            "limit": {
                "type": "integer",
                "description": "Maximum number of notes to return (default 5).",
                "default": 5,
            },
        },
        "additionalProperties": False,
    }
    uses_sender = True

    def __init__(self, backend: NoteBackend, display_tz: tzinfo = timezone.utc) -> None:
        self._backend = backend
        self._display_tz = display_tz

    async def run(self, **kwargs: Any) -> dict[str, Any]:
        limit = int(kwargs.get("limit") or 5)
        notes = self._backend.list_notes(kwargs["sender"])
        if tag := kwargs.get("tag"):
            notes = [note for note in notes if tag.strip().lower() in note.tags]
        notes = list(reversed(notes))[:limit]
        return {
            "noteCount": len(notes),
            "notes": [
                {
                    "content": note.content,
                    "tags": list(note.tags),
                    "createdAt": _short_stamp(note.created_at.astimezone(self._display_tz)),
                }
                for note in notes
            ],
        }


def _short_stamp(value: datetime) -> str:
    hour = value.hour % 12 or 12
    return f"{value:%b} {value.day}, {hour}:{value:%M %p}"
