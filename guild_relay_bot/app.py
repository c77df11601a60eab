from __future__ import annotations

import asyncio
import logging

from .config import Settings
from .discord.client import GuildRelayDiscordBot
from .memory.store import MemoryStore
from .services.attachment_fetcher import AttachmentFetcher
from .services.completion_client import CompletionClient
from .services.player_lookup import PlayerLookupClient

logger = logging.getLogger("guild_relay_bot")


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    logging.getLogger("discord.gateway").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def build_bot(settings: Settings) -> GuildRelayDiscordBot:
    memory = MemoryStore(
        settings.sqlite_path,
        chat_model=settings.default_chat_model,
        image_model=settings.default_image_model,
        system_prompt=settings.default_system_prompt,
    )
    completion = CompletionClient(
        base_url=settings.completion_base_url,
        api_key=settings.completion_api_key,
        timeout_seconds=settings.completion_timeout_seconds,
        max_tier=settings.completion_max_tier,
    )
    attachments = AttachmentFetcher(timeout_seconds=settings.attachment_timeout_seconds)
    player_lookup = PlayerLookupClient(
        url=settings.player_lookup_url,
        origin=settings.player_lookup_origin,
        secret=settings.player_lookup_secret,
        timeout_seconds=settings.player_lookup_timeout_seconds,
    )
    return GuildRelayDiscordBot(
        settings=settings,
        memory=memory,
        completion=completion,
        attachments=attachments,
        player_lookup=player_lookup,
    )


async def _run_bot(settings: Settings) -> None:
    bot = build_bot(settings)
    async with bot:
        await bot.start(settings.discord_token)


def main() -> None:
    configure_logging()
    settings = Settings.from_env()
    settings.validate()
    try:
        asyncio.run(_run_bot(settings))
    except KeyboardInterrupt:
        logger.info("Shutdown requested, exiting.")
