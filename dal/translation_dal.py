"""Async Data Access Layer for the TRANSLATION table.

Provides TranslationDAL with the append/list/delete operations the
transcript log needs, compatible with
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import time
from typing import List, Sequence

from models.session_models import TranslationEntry
from models.translation_record import TranslationRecord
from utils.database_init import AsyncDatabaseInitializer


class TranslationDAL:
    """Data access layer for TRANSLATION records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "session_id",
        "entry_id",
        "text",
        "confidence",
        "timestamp_ms",
        "created_at",
    )
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def append_entry(self, session_id: str, entry: TranslationEntry) -> int:
        """Insert an accepted history entry and return the new row id."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO TRANSLATION ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    session_id,
                    entry.id,
                    entry.text,
                    entry.confidence,
                    entry.timestamp,
                    int(time.time()),
                ),
            )
            await conn.commit()
            return cur.lastrowid

    async def list_for_session(self, session_id: str, limit: int = 500, offset: int = 0) -> List[TranslationRecord]:
        """Return a session's entries in acceptance order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM TRANSLATION WHERE session_id = ? ORDER BY id ASC LIMIT ? OFFSET ?",
                (session_id, limit, offset),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def delete_session(self, session_id: str) -> int:
        """Delete all entries of a session. Returns the number of rows removed."""
        async with self._db.connection() as conn:
            cur = await conn.execute("DELETE FROM TRANSLATION WHERE session_id = ?", (session_id,))
            await conn.commit()
            return cur.rowcount

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> TranslationRecord:
        """Convert a DB row tuple into a TranslationRecord."""
        return TranslationRecord(
            id=row[0],
            session_id=row[1],
            entry_id=row[2],
            text=row[3],
            confidence=row[4],
            timestamp_ms=row[5],
            created_at=row[6],
        )
