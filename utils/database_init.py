import os
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite transcript database.

    - The database file is located at: <db_dir>/app.db, where `db_dir` is the
      constructor argument or, when omitted, the DATABASE_DIR environment variable.
    - A RuntimeError is raised if neither is set or the path is not a usable directory.
    - On the first call to `ensure_database()` for a given instance:
        * Any existing database file at that path is deleted (unless `fresh=False`).
        * A new database file is created.
        * The TRANSLATION table and its session index are created.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, db_dir: Optional[Path | str] = None, fresh: bool = True) -> None:
        env_dir = str(db_dir) if db_dir is not None else os.getenv("DATABASE_DIR")

        if env_dir is None or not env_dir.strip():
            raise RuntimeError(
                "DATABASE_DIR environment variable must be set to a writable "
                "directory path where the SQLite database file will be stored."
            )

        directory = Path(env_dir).expanduser()

        # If the path exists but is not a directory, that's a configuration error.
        if directory.exists() and not directory.is_dir():
            raise RuntimeError(
                f"DATABASE_DIR={env_dir!r} points to a file, not a directory "
                f"({directory}). Please set DATABASE_DIR to a directory path."
            )

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {directory}"
            ) from exc

        self.db_dir = directory
        self.db_path = self.db_dir / "app.db"
        self.fresh = fresh

        # Internal flag to make the "wipe and recreate" behavior one-time per instance.
        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure a fresh SQLite database exists at `self.db_path`.

        Transcripts only live for the lifetime of the process, so the first
        call deletes any previous file before creating the schema. Readers
        such as `print_db.py` pass `fresh=False` to keep the existing file.
        """
        if self._initialized:
            return

        if self.fresh and self.db_path.exists():
            try:
                self.db_path.unlink()
            except Exception as exc:
                raise RuntimeError(
                    f"Failed to delete existing database at {self.db_path}"
                ) from exc

        max_attempts = 3
        for attempt in range(1, max_attempts + 1):
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(
                        """
                        CREATE TABLE IF NOT EXISTS TRANSLATION (
                            id INTEGER PRIMARY KEY AUTOINCREMENT,
                            session_id TEXT NOT NULL,
                            entry_id TEXT NOT NULL,
                            text TEXT NOT NULL,
                            confidence REAL,
                            timestamp_ms INTEGER,
                            created_at INTEGER
                        )
                        """
                    )
                    await db.execute(
                        "CREATE INDEX IF NOT EXISTS idx_translation_session ON TRANSLATION (session_id)"
                    )
                    await db.commit()
                break
            except FileNotFoundError:
                # On some platforms a transient missing file error may occur; retry a few times.
                if attempt >= max_attempts:
                    raise
                await asyncio.sleep(0.1 * attempt)

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The database is created/reset on the first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
