from __future__ import annotations

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from ...errors import PersistenceFailure


def _sqlite_busy_timeout_ms() -> int:
    raw = os.getenv("MEMORY_SQLITE_BUSY_TIMEOUT_MS", "5000").strip()
    try:
        timeout = int(raw)
    except ValueError:
        timeout = 5000
    return max(0, min(timeout, 60000))


@asynccontextmanager
async def _sqlite_memory_connection(db_path: str | Path) -> AsyncIterator[aiosqlite.Connection]:
    try:
        async with aiosqlite.connect(db_path) as db:
            await db.execute("PRAGMA foreign_keys=ON")
            timeout_ms = _sqlite_busy_timeout_ms()
            if timeout_ms > 0:
                await db.execute(f"PRAGMA busy_timeout={timeout_ms}")
            yield db
    except aiosqlite.Error as exc:
        raise PersistenceFailure(f"SQLite operation failed: {exc}") from exc
