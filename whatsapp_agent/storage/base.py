"""Store contracts injected into the orchestration layers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from whatsapp_agent.models import Note, ScheduledItem


class ScheduledItemBackend(ABC):
    """Keyed storage for scheduled reminder items."""

    @abstractmethod
    def get_item(self, item_id: str) -> ScheduledItem | None:
        """Return the item snapshot, or None when unknown."""

    @abstractmethod
    def put_item(self, item: ScheduledItem) -> None:
        """Insert or replace an item by id."""

    @abstractmethod
    def scan_items(self) -> list[ScheduledItem]:
        """Return every stored item in creation order."""


class SessionBackend(ABC):
    """Keyed storage for per-counterparty message history."""

    @abstractmethod
    def get_history(self, key: str) -> list[dict[str, str]]:
        """Return a copy of the stored history, empty for unknown keys."""

    @abstractmethod
    def put_history(self, key: str, history: list[dict[str, str]]) -> None:
        """Replace the stored history for a key."""


class NoteBackend(ABC):
    """Storage for notes saved by the notes tools."""

    @abstractmethod
    def add_note(self, note: Note) -> None:
        """Persist a new note."""

    @abstractmethod
    def list_notes(self, owner: str) -> list[Note]:
        """Return notes for an owner in creation order."""


class Storage(ScheduledItemBackend, SessionBackend, NoteBackend, ABC):
    """A backend that serves every store used by the application."""
