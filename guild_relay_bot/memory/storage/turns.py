from __future__ import annotations

from typing import List

import aiosqlite

from ..models import ConversationTurn
from .utils import _sqlite_memory_connection


class MemoryTurnsMixin:
    async def append_turn(self, turn: ConversationTurn) -> int:
        async with _sqlite_memory_connection(self.db_path) as db:
            cursor = await db.execute(
                """
                INSERT INTO messages (guild_id, channel_id, user_id, author_name, role, content, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    turn.guild_id,
                    turn.channel_id,
                    turn.user_id,
                    turn.author_name,
                    turn.role,
                    turn.content,
                    int(turn.created_at),
                ),
            )
            await db.commit()
            return int(cursor.lastrowid)

    async def fetch_history(
        self,
        channel_id: str,
        user_id: str | None,
        limit: int,
    ) -> List[ConversationTurn]:
        """Return the most recent turns of a channel in chronological order.

        With ``user_id`` set, only that user's turns and the assistant's turns are
        returned; ``None`` pools the whole channel.
        """
        if user_id is None:
            query = """
                SELECT guild_id, channel_id, user_id, author_name, role, content, created_at
                FROM messages
                WHERE channel_id = ?
                ORDER BY created_at DESC, message_id DESC
                LIMIT ?
            """
            params: tuple[object, ...] = (channel_id, max(1, int(limit)))
        else:
            query = """
                SELECT guild_id, channel_id, user_id, author_name, role, content, created_at
                FROM messages
                WHERE channel_id = ?
                  AND (user_id = ? OR role = 'assistant')
                ORDER BY created_at DESC, message_id DESC
                LIMIT ?
            """
            params = (channel_id, user_id, max(1, int(limit)))

        async with _sqlite_memory_connection(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(query, params) as cursor:
                rows = await cursor.fetchall()

        return [
            ConversationTurn(
                guild_id=str(row["guild_id"]),
                channel_id=str(row["channel_id"]),
                user_id=str(row["user_id"]),
                author_name=str(row["author_name"] or ""),
                role=str(row["role"]),
                content=str(row["content"]),
                created_at=int(row["created_at"]),
            )
            for row in reversed(rows)
        ]

    async def wipe(self, guild_id: str) -> int:
        async with _sqlite_memory_connection(self.db_path) as db:
            cursor = await db.execute("DELETE FROM messages WHERE guild_id = ?", (guild_id,))
            await db.commit()
            return int(cursor.rowcount or 0)
