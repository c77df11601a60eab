from __future__ import annotations

import aiosqlite

from ..models import ChannelPolicy, GuildPolicy
from .utils import _sqlite_memory_connection

DEFAULT_CHAT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image"
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


class MemoryPoliciesMixin:
    guild_policy_defaults: tuple[str, str, str] = (
        DEFAULT_CHAT_MODEL,
        DEFAULT_IMAGE_MODEL,
        DEFAULT_SYSTEM_PROMPT,
    )

    def default_guild_policy(self, guild_id: str) -> GuildPolicy:
        chat_model, image_model, system_prompt = self.guild_policy_defaults
        return GuildPolicy(
            guild_id=guild_id,
            chat_model=chat_model,
            image_model=image_model,
            system_prompt=system_prompt,
        )

    async def get_guild_policy(self, guild_id: str) -> GuildPolicy:
        async with _sqlite_memory_connection(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                """
                SELECT guild_id, chat_model, image_model, system_prompt
                FROM guild_configs
                WHERE guild_id = ?
                """,
                (guild_id,),
            ) as cursor:
                row = await cursor.fetchone()

        policy = self.default_guild_policy(guild_id)
        if row is None:
            return policy
        # Blank columns fall back to the defaults one by one.
        policy.chat_model = str(row["chat_model"] or "").strip() or policy.chat_model
        policy.image_model = str(row["image_model"] or "").strip() or policy.image_model
        policy.system_prompt = str(row["system_prompt"] or "").strip() or policy.system_prompt
        return policy

    async def put_guild_policy(self, policy: GuildPolicy) -> None:
        async with _sqlite_memory_connection(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO guild_configs (guild_id, chat_model, image_model, system_prompt, updated_at)
                VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(guild_id) DO UPDATE SET
                    chat_model = excluded.chat_model,
                    image_model = excluded.image_model,
                    system_prompt = excluded.system_prompt,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (policy.guild_id, policy.chat_model, policy.image_model, policy.system_prompt),
            )
            await db.commit()

    async def get_channel_policy(self, channel_id: str) -> ChannelPolicy:
        async with _sqlite_memory_connection(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                """
                SELECT channel_id, guild_id, is_listening, shared_scope, secondary_trigger_enabled
                FROM channel_configs
                WHERE channel_id = ?
                """,
                (channel_id,),
            ) as cursor:
                row = await cursor.fetchone()

        if row is None:
            return ChannelPolicy(channel_id=channel_id)
        return ChannelPolicy(
            channel_id=str(row["channel_id"]),
            guild_id=str(row["guild_id"] or ""),
            is_listening=bool(row["is_listening"]),
            shared_scope=bool(row["shared_scope"]),
            secondary_trigger_enabled=bool(row["secondary_trigger_enabled"]),
        )

    async def put_channel_policy(self, policy: ChannelPolicy) -> None:
        async with _sqlite_memory_connection(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO channel_configs (
                    channel_id, guild_id, is_listening, shared_scope, secondary_trigger_enabled, updated_at
                )
                VALUES (?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(channel_id) DO UPDATE SET
                    guild_id = excluded.guild_id,
                    is_listening = excluded.is_listening,
                    shared_scope = excluded.shared_scope,
                    secondary_trigger_enabled = excluded.secondary_trigger_enabled,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    policy.channel_id,
                    policy.guild_id,
                    int(policy.is_listening),
                    int(policy.shared_scope),
                    int(policy.secondary_trigger_enabled),
                ),
            )
            await db.commit()
