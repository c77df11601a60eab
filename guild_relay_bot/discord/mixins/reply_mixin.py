from __future__ import annotations

import logging

from ..common import MessageEvent, RichBlock, split_rich_chunks, truncate
from ...memory.models import ConversationTurn

logger = logging.getLogger("guild_relay_bot")

ACTION_PROCESSED_MESSAGE = "✅ Action processed."
RICH_REPLY_COLOUR = 0x3498DB


class ReplyMixin:
    async def _emit_reply(self, event: MessageEvent, completion: str, replies) -> str:
        """Run directives, send the visible text and persist the assistant turn.

        Returns the persisted assistant content.
        """
        run = await self.directives.execute(completion, event)
        visible = run.visible_text.strip()
        if visible and event.guild_id is not None and ("@" in visible or "#" in visible):
            visible = await self.mention_cache.apply(visible, event.guild_key)

        if not visible:
            if not run.outcomes:
                await replies.reply(ACTION_PROCESSED_MESSAGE)
        elif len(visible) <= self.settings.plain_reply_max_chars:
            await replies.reply(visible)
        else:
            for chunk in split_rich_chunks(visible, self.settings.rich_chunk_max_chars):
                if chunk.strip():
                    await replies.send_rich(RichBlock(description=chunk, colour=RICH_REPLY_COLOUR))

        confirmation = run.confirmation()
        if confirmation:
            await replies.send(confirmation)

        persisted = visible
        if run.outcomes:
            persisted = f"{visible}\n[System Report: {run.report_summary()}]"
        await self.memory.append_turn(
            ConversationTurn(
                guild_id=event.guild_key,
                channel_id=str(event.channel_id),
                user_id=self._bot_user_key(),
                author_name="assistant",
                role="assistant",
                content=persisted,
            )
        )
        logger.info("[msg.bot] channel=%s text=\"%s\"", event.channel_id, truncate(persisted, 120))
        return persisted
