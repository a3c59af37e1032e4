"""Print the translation transcript stored in the project's SQLite database.

Groups accepted entries by session and prints them in acceptance order,
followed by the raw sentence they form. Reuses the same `DATABASE_DIR`
behavior as the application via `utils.database_init.AsyncDatabaseInitializer`.

Run: set the `DATABASE_DIR` environment variable and run
     `python print_db.py` while the service database is in place.
"""
import asyncio
from itertools import groupby
from typing import List, Tuple

import aiosqlite

from utils.database_init import AsyncDatabaseInitializer


async def _fetch_rows(conn: aiosqlite.Connection) -> List[Tuple]:
    """Return (session_id, text, confidence, created_at) rows ordered by session then id."""
    cur = await conn.execute(
        "SELECT session_id, text, confidence, created_at FROM TRANSLATION ORDER BY session_id, id"
    )
    return list(await cur.fetchall())


def _print_session(session_id: str, rows: List[Tuple]) -> None:
    print(f"Session: {session_id}")
    for _, text, confidence, created_at in rows:
        print(f"  {created_at}: {text} ({confidence:.2f})")
    print(f"  sentence: {' '.join(row[1] for row in rows)}")
    print()


async def main() -> None:
    """Open the transcript DB and print every session's entries."""
    initializer = AsyncDatabaseInitializer(fresh=False)
    if not initializer.db_path.exists():
        print(f"No database found at {initializer.db_path}")
        return
    async with initializer.connection() as conn:
        rows = await _fetch_rows(conn)
    for session_id, group in groupby(rows, key=lambda row: row[0]):
        _print_session(session_id, list(group))


if __name__ == "__main__":
    asyncio.run(main())
