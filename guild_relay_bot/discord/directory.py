from __future__ import annotations

import logging
from typing import Sequence

import discord

from ..errors import TransportFailure, UnresolvedReference
from .common import ChannelRef, GuildSnapshot, RoleRef, UserRef
from .events import user_ref

logger = logging.getLogger("guild_relay_bot")

UNKNOWN_CHANNEL_NAME = "unknown-channel"


class DiscordGuildDirectory:
    """Roster, role and channel enumeration plus delivery through the gateway client.

    Every call goes to the REST API, so each one can fail on its own.
    """

    def __init__(self, client: discord.Client, member_limit: int = 1000) -> None:
        self.client = client
        self.member_limit = member_limit

    async def _guild(self, guild_id: int) -> discord.Guild:
        guild = self.client.get_guild(guild_id)
        if guild is not None:
            return guild
        try:
            return await self.client.fetch_guild(guild_id)
        except discord.HTTPException as exc:
            raise TransportFailure(f"Guild {guild_id} is not reachable: {exc}") from exc

    async def list_channels(self, guild_id: int) -> Sequence[ChannelRef]:
        guild = await self._guild(guild_id)
        channels = await guild.fetch_channels()
        return [ChannelRef(id=channel.id, name=channel.name) for channel in channels]

    async def list_roles(self, guild_id: int) -> Sequence[RoleRef]:
        guild = await self._guild(guild_id)
        roles = await guild.fetch_roles()
        return [RoleRef(id=role.id, name=role.name) for role in roles if not role.is_default()]

    async def list_members(self, guild_id: int) -> Sequence[UserRef]:
        guild = await self._guild(guild_id)
        return [user_ref(member) async for member in guild.fetch_members(limit=self.member_limit)]

    async def snapshot(self, guild_id: int) -> GuildSnapshot:
        roles = await self.list_roles(guild_id)
        channels = await self.list_channels(guild_id)
        try:
            members = await self.list_members(guild_id)
        except (discord.HTTPException, discord.ClientException) as exc:
            # Missing members intent (ClientException) still leaves roles and channels usable.
            logger.warning("Member listing failed for guild=%s: %s", guild_id, exc)
            members = []
        return GuildSnapshot(roles=list(roles), channels=list(channels), members=list(members))

    async def _messageable(self, channel_id: int) -> discord.abc.Messageable:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except discord.NotFound as exc:
                raise UnresolvedReference(f"<#{channel_id}>") from exc
        if not isinstance(channel, discord.abc.Messageable):
            raise TransportFailure(f"Channel {channel_id} does not accept messages")
        return channel

    async def send_message(self, channel_id: int, content: str) -> None:
        channel = await self._messageable(channel_id)
        await channel.send(content)

    async def channel_name(self, channel_id: int) -> str:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(channel_id)
            except discord.HTTPException:
                return UNKNOWN_CHANNEL_NAME
        return str(getattr(channel, "name", "") or UNKNOWN_CHANNEL_NAME)
