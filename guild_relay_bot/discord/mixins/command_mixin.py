from __future__ import annotations

import logging

import discord

from ..commands import (
    Command,
    CommandUsage,
    ForgetGuild,
    Imagine,
    SetChatModel,
    SetImageModel,
    SetPersona,
    SettingsCommand,
    ShowStatus,
    ToggleListening,
    ToggleSecondaryTrigger,
    ToggleSharedScope,
    parse_command,
)
from ..common import collapse_spaces, truncate
from ...memory.models import ChannelPolicy

logger = logging.getLogger("guild_relay_bot")


def _flag(value: bool) -> str:
    return "on" if value else "off"


class CommandMixin:
    async def _try_handle_system_command(self, message: discord.Message, replies) -> bool:
        command = parse_command(message.content or "", self.settings.command_prefix)
        if command is None:
            return False

        if message.guild is None:
            await replies.reply("Commands work only in a server.")
            return True
        if not isinstance(command, Imagine) and not self._is_guild_admin(message):
            await replies.reply("Only server administrators can change bot settings.")
            return True

        await self._run_command(
            command,
            message.guild.id,
            message.channel.id,
            replies,
            requested_by=message.author.name,
        )
        return True

    async def _run_command(
        self,
        command: Command,
        guild_id: int,
        channel_id: int,
        replies,
        *,
        requested_by: str = "",
    ) -> None:
        if isinstance(command, CommandUsage):
            await replies.reply(command.text)
            return
        if isinstance(command, Imagine):
            await self._run_imagine(command, str(guild_id), requested_by, replies)
            return
        text = await self._apply_settings_command(command, guild_id, channel_id)
        logger.info("[command] guild=%s channel=%s %s", guild_id, channel_id, type(command).__name__)
        await replies.reply(text)

    async def _apply_settings_command(self, command: SettingsCommand, guild_id: int, channel_id: int) -> str:
        guild_key = str(guild_id)
        channel_key = str(channel_id)

        if isinstance(command, (ToggleListening, ToggleSharedScope, ToggleSecondaryTrigger)):
            policy = await self.memory.get_channel_policy(channel_key)
            policy.guild_id = guild_key
            if isinstance(command, ToggleListening):
                policy.is_listening = not policy.is_listening
                turned_on = policy.is_listening
            elif isinstance(command, ToggleSecondaryTrigger):
                policy.secondary_trigger_enabled = not policy.secondary_trigger_enabled
                turned_on = policy.secondary_trigger_enabled
            else:
                policy.shared_scope = not policy.shared_scope
                turned_on = False
            await self.memory.put_channel_policy(policy)
            if turned_on:
                self._schedule_mention_refresh(guild_id)
            return self._channel_status(policy)

        if isinstance(command, (SetPersona, SetChatModel, SetImageModel)):
            policy = await self.memory.get_guild_policy(guild_key)
            if isinstance(command, SetPersona):
                policy.system_prompt = command.text
                result = f"✅ Persona updated: {truncate(collapse_spaces(command.text), 100)}"
            elif isinstance(command, SetChatModel):
                policy.chat_model = command.name
                result = f"✅ Chat model set to `{command.name}`."
            else:
                policy.image_model = command.name
                result = f"✅ Image model set to `{command.name}`."
            await self.memory.put_guild_policy(policy)
            return result

        if isinstance(command, ForgetGuild):
            removed = await self.memory.wipe(guild_key)
            return f"🧹 Conversation history cleared ({removed} messages)."

        if isinstance(command, ShowStatus):
            channel_policy = await self.memory.get_channel_policy(channel_key)
            guild_policy = await self.memory.get_guild_policy(guild_key)
            return "\n".join(
                [
                    self._channel_status(channel_policy),
                    f"Chat model: `{guild_policy.chat_model}`",
                    f"Image model: `{guild_policy.image_model}`",
                    f"Persona: {truncate(collapse_spaces(guild_policy.system_prompt), 100)}",
                ]
            )

        raise TypeError(f"Unhandled command: {command!r}")

    def _channel_status(self, policy: ChannelPolicy) -> str:
        return (
            f"Listening: {_flag(policy.is_listening)} | "
            f"Shared history: {_flag(policy.shared_scope)} | "
            f"Keyword '{self.settings.trigger_keyword}': {_flag(policy.secondary_trigger_enabled)}"
        )

    def _schedule_mention_refresh(self, guild_id: int) -> None:
        async def load():
            return await self.directory.snapshot(guild_id)

        self.mention_cache.schedule_refresh(str(guild_id), load)
