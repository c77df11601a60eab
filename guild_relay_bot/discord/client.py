from __future__ import annotations

import asyncio
import logging

import discord

from ..config import Settings
from ..directives.executor import DirectiveExecutor
from ..memory.store import MemoryStore
from ..mentions.cache import MentionCache
from ..services.attachment_fetcher import AttachmentFetcher
from ..services.completion_client import CompletionClient
from ..services.player_lookup import PlayerLookupClient
from .directory import DiscordGuildDirectory
from .mixins.dialogue_mixin import DialogueMixin
from .mixins.identity_mixin import IdentityMixin

logger = logging.getLogger("guild_relay_bot")


class GuildRelayDiscordBot(
    DialogueMixin,
    IdentityMixin,
    discord.Client,
):
    def __init__(
        self,
        settings: Settings,
        memory: MemoryStore,
        completion: CompletionClient,
        attachments: AttachmentFetcher,
        player_lookup: PlayerLookupClient,
        mention_cache: MentionCache | None = None,
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = settings.discord_message_content_intent
        intents.members = settings.discord_members_intent

        super().__init__(intents=intents)

        self.settings = settings
        self.memory = memory
        self.completion = completion
        self.attachments = attachments
        self.player_lookup = player_lookup
        self.mention_cache = mention_cache or MentionCache()
        self._mention_cache_warmed = False
        self.directory = DiscordGuildDirectory(self, member_limit=settings.mention_member_limit)
        self.directives = DirectiveExecutor(
            self.directory,
            self.mention_cache,
            fallback_include_roles=settings.mention_fallback_include_roles,
        )

    async def setup_hook(self) -> None:
        await self.memory.init()
        await self.completion.start()
        await self.attachments.start()
        await self.player_lookup.start()

    async def close(self) -> None:
        await self._run_shutdown_step("mention_cache.close", self.mention_cache.close(), timeout=3.0)
        await self._run_shutdown_step("attachments.close", self.attachments.close(), timeout=6.0)
        await self._run_shutdown_step("player_lookup.close", self.player_lookup.close(), timeout=6.0)
        await self._run_shutdown_step("completion.close", self.completion.close(), timeout=6.0)
        await self._run_shutdown_step("discord.Client.close", super().close(), timeout=6.0)

    async def _run_shutdown_step(self, label: str, coro: object, *, timeout: float) -> None:
        try:
            await asyncio.wait_for(coro, timeout=timeout)  # type: ignore[arg-type]
        except asyncio.TimeoutError:
            logger.warning("Shutdown step timed out: %s", label)
        except Exception as exc:
            logger.warning("Shutdown step failed: %s (%s)", label, exc)

    async def on_ready(self) -> None:
        if self.user:
            logger.info("Connected as %s (%s)", self.user, self.user.id)
        # on_ready repeats after every gateway reconnect.
        if self._mention_cache_warmed:
            return
        self._mention_cache_warmed = True
        for guild in self.guilds:
            await self._warm_mention_cache(guild)

    async def _warm_mention_cache(self, guild: discord.Guild) -> None:
        # Only guilds with a listening or keyword channel get a roster fetch at startup.
        for channel in guild.text_channels:
            policy = await self.memory.get_channel_policy(str(channel.id))
            if policy.is_listening or policy.secondary_trigger_enabled:
                self._schedule_mention_refresh(guild.id)
                return
