from __future__ import annotations

import discord

from ..common import MessageEvent
from ...memory.models import ChannelPolicy


class IdentityMixin:
    def _should_process(self, event: MessageEvent, policy: ChannelPolicy) -> bool:
        if policy.is_listening:
            return True
        if event.mentions_bot:
            return True
        keyword = self.settings.trigger_keyword.strip().casefold()
        return policy.secondary_trigger_enabled and bool(keyword) and keyword in event.raw_content.casefold()

    @staticmethod
    def _is_guild_admin(message: discord.Message) -> bool:
        if message.guild is None or not isinstance(message.author, discord.Member):
            return False
        return message.author.guild_permissions.administrator

    def _bot_user_key(self) -> str:
        return str(self.user.id) if self.user else "assistant"
