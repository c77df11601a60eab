from __future__ import annotations

import os
from pathlib import Path

import aiosqlite

from .utils import _sqlite_memory_connection


class MemorySchemaMixin:
    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _allow_destructive_reset_on_mismatch() -> bool:
        raw = os.getenv("MEMORY_SQLITE_RESET_ON_SCHEMA_MISMATCH", "")
        return raw.strip().lower() in {"1", "true", "yes", "y", "on"}

    async def _has_user_tables(self, db: aiosqlite.Connection) -> bool:
        async with db.execute(
            """
            SELECT 1
            FROM sqlite_master
            WHERE type = 'table'
              AND name NOT LIKE 'sqlite_%'
            LIMIT 1
            """
        ) as cursor:
            row = await cursor.fetchone()
        return bool(row)

    async def init(self) -> None:
        async with _sqlite_memory_connection(self.db_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            async with db.execute("PRAGMA user_version") as cursor:
                row = await cursor.fetchone()
            version = int(row[0]) if row else 0
            has_tables = await self._has_user_tables(db)

            if version > self.SCHEMA_VERSION:
                if has_tables and self._allow_destructive_reset_on_mismatch():
                    await self._reset_schema(db)
                    await db.execute(f"PRAGMA user_version = {self.SCHEMA_VERSION}")
                    await db.commit()
                    return
                raise RuntimeError(
                    "SQLite schema version mismatch detected (database is newer than this bot build). "
                    f"Found user_version={version}, supported={self.SCHEMA_VERSION}. "
                    "Set MEMORY_SQLITE_RESET_ON_SCHEMA_MISMATCH=1 to allow destructive reset."
                )

            await self._create_schema(db)
            if version != self.SCHEMA_VERSION:
                await db.execute(f"PRAGMA user_version = {self.SCHEMA_VERSION}")

            await db.commit()

    async def _reset_schema(self, db: aiosqlite.Connection) -> None:
        for table in ("messages", "channel_configs", "guild_configs"):
            await db.execute(f"DROP TABLE IF EXISTS {table}")
        await self._create_schema(db)

    async def _create_schema(self, db: aiosqlite.Connection) -> None:
        await db.executescript(
            """
            CREATE TABLE IF NOT EXISTS guild_configs (
                guild_id TEXT PRIMARY KEY,
                chat_model TEXT NOT NULL,
                image_model TEXT NOT NULL DEFAULT '',
                system_prompt TEXT NOT NULL DEFAULT '',
                updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS channel_configs (
                channel_id TEXT PRIMARY KEY,
                guild_id TEXT NOT NULL DEFAULT '',
                is_listening INTEGER NOT NULL DEFAULT 0,
                shared_scope INTEGER NOT NULL DEFAULT 0,
                secondary_trigger_enabled INTEGER NOT NULL DEFAULT 0,
                updated_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS messages (
                message_id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id TEXT NOT NULL,
                channel_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                author_name TEXT NOT NULL DEFAULT '',
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at INTEGER NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_messages_channel_recent
            ON messages(channel_id, created_at DESC, message_id DESC);

            CREATE INDEX IF NOT EXISTS idx_messages_guild
            ON messages(guild_id);
            """
        )
