from __future__ import annotations

import logging

import discord

from ..common import MessageEvent
from ..events import event_from_message
from ..replies import DiscordReplyChannel, typing_indicator
from ...errors import GENERIC_FAILURE_MESSAGE, RelayError
from .player_mixin import find_player_id

logger = logging.getLogger("guild_relay_bot")


class MessageMixin:
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        replies = DiscordReplyChannel(message)
        try:
            if await self._try_handle_system_command(message, replies):
                return
            await self._handle_event(event_from_message(message, self.user), replies)
        except Exception as exc:
            logger.exception("Message handling failed: %s", exc)

    async def _handle_event(self, event: MessageEvent, replies) -> None:
        channel_policy = await self.memory.get_channel_policy(str(event.channel_id))
        if not self._should_process(event, channel_policy):
            return

        player_id = find_player_id(event.raw_content)
        if player_id is not None:
            await self._reply_player_profile(player_id, replies)
            return

        guild_policy = await self.memory.get_guild_policy(event.guild_key)
        try:
            async with typing_indicator(replies):
                messages = await self._assemble_context(event, guild_policy, channel_policy)
                completion = await self.completion.complete(guild_policy.chat_model, messages)
        except RelayError as exc:
            logger.warning("Text turn failed in channel=%s: %s", event.channel_id, exc)
            await replies.reply(exc.user_message)
            return
        except Exception as exc:
            logger.exception("Text turn failed: %s", exc)
            await replies.reply(GENERIC_FAILURE_MESSAGE)
            return

        await self._emit_reply(event, completion, replies)
