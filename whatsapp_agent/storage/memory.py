"""Volatile in-process storage backend."""

from __future__ import annotations

import copy

from whatsapp_agent.models import Note, ScheduledItem
from whatsapp_agent.storage.base import Storage


class InMemoryStorage(Storage):
    """Process-lifetime maps; contents are lost on restart."""

    def __init__(self) -> None:
        self._items: dict[str, ScheduledItem] = {}
        self._sessions: dict[str, list[dict[str, str]]] = {}
        self._notes: list[Note] = []

    def get_item(self, item_id: str) -> ScheduledItem | None:
        return self._items.get(item_id)

    def put_item(self, item: ScheduledItem) -> None:
        self._items[item.id] = item

    def scan_items(self) -> list[ScheduledItem]:
        # dicts keep insertion order, which is creation order here
        return list(self._items.values())

    def get_history(self, key: str) -> list[dict[str, str]]:
        return copy.deepcopy(self._sessions.get(key, []))

    def put_history(self, key: str, history: list[dict[str, str]]) -> None:
        self._sessions[key] = copy.deepcopy(history)

    def add_note(self, note: Note) -> None:
        self._notes.append(note)

    def list_notes(self, owner: str) -> list[Note]:
        return [note for note in self._notes if note.owner == owner]
