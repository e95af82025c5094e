"""SQLite persistence backend."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from whatsapp_agent.models import Note, ScheduledItem
from whatsapp_agent.storage.base import Storage

SCHEMA_VERSION = 1


class SQLiteStorage(Storage):
    """Small SQLite wrapper with explicit schema management."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create or migrate schema."""

        with self._connect() as conn:
            conn.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
            if row is None:
                self._create_schema(conn)
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
            elif row["version"] != SCHEMA_VERSION:
                raise RuntimeError(
                    f"Unsupported schema version {row['version']} (expected {SCHEMA_VERSION})"
                )

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS scheduled_items (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                payload TEXT NOT NULL,
                recipient TEXT,
                due_at TEXT NOT NULL,
                created_at TEXT NOT NULL,
                delivered INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS sessions (
                session_key TEXT PRIMARY KEY,
                history_json TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS notes (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                owner TEXT NOT NULL,
                content TEXT NOT NULL,
                tags_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """
        )

    def get_item(self, item_id: str) -> ScheduledItem | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, payload, recipient, due_at, created_at, delivered
                FROM scheduled_items
                WHERE id = ?
                """,
                (item_id,),
            ).fetchone()
        return _to_item(row) if row else None

    def put_item(self, item: ScheduledItem) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO scheduled_items(id, payload, recipient, due_at, created_at, delivered)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET delivered = MAX(delivered, excluded.delivered)
                """,
                (
                    item.id,
                    item.payload,
                    item.recipient,
                    item.due_at.isoformat(),
                    item.created_at.isoformat(),
                    int(item.delivered),
                ),
            )

    def scan_items(self) -> list[ScheduledItem]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, payload, recipient, due_at, created_at, delivered
                FROM scheduled_items
                ORDER BY seq ASC
                """
            ).fetchall()
        return [_to_item(row) for row in rows]

    def get_history(self, key: str) -> list[dict[str, str]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT history_json FROM sessions WHERE session_key = ?", (key,)
            ).fetchone()
        return json.loads(row["history_json"]) if row else []

    def put_history(self, key: str, history: list[dict[str, str]]) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO sessions(session_key, history_json, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(session_key) DO UPDATE SET
                    history_json = excluded.history_json,
                    updated_at = excluded.updated_at
                """,
                (key, json.dumps(history), datetime.now().astimezone().isoformat()),
            )

    def add_note(self, note: Note) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO notes(id, owner, content, tags_json, created_at) VALUES (?, ?, ?, ?, ?)",
                (note.id, note.owner, note.content, json.dumps(list(note.tags)), note.created_at.isoformat()),
            )

    def list_notes(self, owner: str) -> list[Note]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, owner, content, tags_json, created_at FROM notes WHERE owner = ? ORDER BY seq ASC",
                (owner,),
            ).fetchall()
        return [
            Note(
                id=row["id"],
                owner=row["owner"],
                content=row["content"],
                tags=tuple(json.loads(row["tags_json"])),
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]


def _to_item(row: sqlite3.Row) -> ScheduledItem:
    return ScheduledItem(
        id=row["id"],
        payload=row["payload"],
        recipient=row["recipient"],
        due_at=datetime.fromisoformat(row["due_at"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        delivered=bool(row["delivered"]),
    )
