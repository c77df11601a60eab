from __future__ import annotations

import contextlib
import io
import logging
from typing import Any, AsyncContextManager, AsyncIterator

import discord

from .common import RichBlock

logger = logging.getLogger("guild_relay_bot")


def to_embed(block: RichBlock) -> discord.Embed:
    embed = discord.Embed(
        title=block.title or None,
        description=block.description or None,
        colour=block.colour,
    )
    for item in block.fields:
        embed.add_field(name=item.name, value=item.value, inline=item.inline)
    if block.thumbnail_url:
        embed.set_thumbnail(url=block.thumbnail_url)
    if block.image_url:
        embed.set_image(url=block.image_url)
    if block.footer:
        embed.set_footer(text=block.footer)
    return embed


class DiscordReplyChannel:
    """Replies to one inbound message and posts follow-ups in its channel."""

    def __init__(self, message: discord.Message) -> None:
        self.message = message

    async def reply(self, text: str) -> None:
        await self.message.reply(text)

    async def send(self, text: str) -> None:
        await self.message.channel.send(text)

    async def send_rich(self, block: RichBlock) -> None:
        await self.message.channel.send(embed=to_embed(block))

    async def send_file(self, data: bytes, filename: str, block: RichBlock | None = None) -> None:
        kwargs: dict[str, Any] = {"file": discord.File(io.BytesIO(data), filename=filename)}
        if block is not None:
            kwargs["embed"] = to_embed(block)
        await self.message.channel.send(**kwargs)

    def typing(self) -> AsyncContextManager[None]:
        return self.message.channel.typing()


@contextlib.asynccontextmanager
async def typing_indicator(replies) -> AsyncIterator[None]:
    """Show the typing indicator when Discord accepts it; a refusal only loses the indicator."""
    async with contextlib.AsyncExitStack() as stack:
        try:
            await stack.enter_async_context(replies.typing())
        except discord.HTTPException as exc:
            logger.warning("Typing indicator failed: %s", exc)
        yield
