"""Rolling per-counterparty conversation history."""

from __future__ import annotations

from whatsapp_agent.storage.base import SessionBackend

MAX_HISTORY = 20


class SessionStore:
    """Keeps the most recent turns for each sender key."""

    def __init__(self, backend: SessionBackend, max_history: int = MAX_HISTORY) -> None:
        self._backend = backend
        self._max_history = max_history

    def get_history(self, key: str) -> list[dict[str, str]]:
        return self._backend.get_history(key)

    def append_turn(self, key: str, user_text: str, assistant_text: str) -> None:
        """Append a user/assistant pair and drop the oldest entries past the cap."""

        history = self._backend.get_history(key)
        history.append({"role": "user", "content": user_text})
        history.append({"role": "assistant", "content": assistant_text})
        if len(history) > self._max_history:
            history = history[-self._max_history :]
        self._backend.put_history(key, history)
